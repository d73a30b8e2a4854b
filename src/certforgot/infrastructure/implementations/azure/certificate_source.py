"""Key vault certificate source."""

from cryptography import x509
from loguru import logger

from certforgot.errors import NotFoundError
from certforgot.infrastructure.clients.key_vault_client import KeyVaultClient
from certforgot.infrastructure.repositories.certificate_source import (
    CertificateSource,
)

BACKEND = "azure-keyvault"


class KeyVaultCertificateSource(CertificateSource):
    """Latest version of a certificate stored in a key vault."""

    def __init__(self, client: KeyVaultClient, certificate_name: str):
        """
        Initialize key vault certificate source.

        Args:
            client: Vault client
            certificate_name: Name of the vault certificate
        """
        self.client = client
        self.certificate_name = certificate_name

        logger.info(f"Initialized KeyVaultCertificateSource for {certificate_name}")

    async def get(self) -> x509.Certificate:
        """Fetch the latest certificate version."""
        certificate = await self.client.get_certificate(self.certificate_name)
        if certificate is None:
            raise NotFoundError(
                "certificate does not exist",
                operation="get",
                backend=BACKEND,
                resource=self.certificate_name,
            )
        return certificate
