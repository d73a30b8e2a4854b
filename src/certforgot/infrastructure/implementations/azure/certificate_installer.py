"""Key vault certificate installer."""

from cryptography import x509
from loguru import logger

from certforgot.infrastructure.clients.key_vault_client import KeyVaultClient
from certforgot.infrastructure.repositories.certificate_installer import (
    CertificateInstaller,
)
from certforgot.utils.keys import PrivateKey


class KeyVaultCertificateInstaller(CertificateInstaller):
    """
    Imports a certificate and key into a key vault.

    Each install creates a new version of the named certificate.
    """

    def __init__(self, client: KeyVaultClient, certificate_name: str):
        self.client = client
        self.certificate_name = certificate_name

        logger.info(
            f"Initialized KeyVaultCertificateInstaller for {certificate_name}"
        )

    async def install(
        self, certificate: x509.Certificate, private_key: PrivateKey
    ) -> None:
        """Import the certificate and key as a PEM bundle."""
        await self.client.import_certificate(
            self.certificate_name, certificate, private_key
        )
