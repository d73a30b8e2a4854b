"""Backend clients composed by the cloud certificate and state implementations."""

from certforgot.infrastructure.clients.blob_client import AzureBlobClient, BlobClient
from certforgot.infrastructure.clients.key_vault_client import (
    AzureKeyVaultClient,
    KeyVaultClient,
)

__all__ = [
    "AzureBlobClient",
    "AzureKeyVaultClient",
    "BlobClient",
    "KeyVaultClient",
]
