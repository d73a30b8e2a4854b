"""Azure infrastructure implementations (Key Vault, Blob Storage)."""

from certforgot.infrastructure.implementations.azure.blob_state_repository import (
    AzureBlobStateRepository,
)
from certforgot.infrastructure.implementations.azure.certificate_installer import (
    KeyVaultCertificateInstaller,
)
from certforgot.infrastructure.implementations.azure.certificate_source import (
    KeyVaultCertificateSource,
)
from certforgot.infrastructure.implementations.azure.key_vault_state_repository import (  # noqa: E501
    AzureKeyVaultStateRepository,
)

__all__ = [
    "AzureBlobStateRepository",
    "AzureKeyVaultStateRepository",
    "KeyVaultCertificateInstaller",
    "KeyVaultCertificateSource",
]
