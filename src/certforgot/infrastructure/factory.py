"""
Infrastructure factory for backend selection.

Builds certificate sources, installers and the identity state
repository from configuration descriptors:
- local: PEM/DER files and a YAML state file
- https: live TLS handshake
- azure: Key Vault certificates, Key Vault or Blob Storage state
- sql: relational database state

Usage:
    from certforgot.infrastructure import InfrastructureFactory
    from certforgot.models.config import load_config

    config = load_config("certforgot.yaml")
    factory = InfrastructureFactory()

    state = await factory.get_state_repository(config.state)
    for cert in config.certs:
        source = factory.get_certificate_source(cert.source)
        installer = factory.get_certificate_installer(cert.installer)

    await factory.close()
"""

from typing import TYPE_CHECKING

from certforgot.config import Settings, get_settings
from certforgot.core.logging import intercept_standard_logging, logger
from certforgot.errors import ConfigValidationError
from certforgot.infrastructure.repositories import (
    CertificateInstaller,
    CertificateSource,
    StateRepository,
)
from certforgot.models.config import (
    InstallerDescriptor,
    InstallerType,
    SourceDescriptor,
    SourceType,
    StateConfig,
    file_type_of,
)

if TYPE_CHECKING:
    from azure.core.credentials_async import AsyncTokenCredential

    from certforgot.infrastructure.clients import KeyVaultClient

# Azure SDK, httpx and SQLAlchemy logs go to the loguru sink
intercept_standard_logging()


class InfrastructureFactory:
    """
    Factory for creating backend instances.

    Azure clients share one async credential. Clients and database
    engines created by the factory are released by close().
    """

    def __init__(
        self,
        settings: Settings | None = None,
        credential: "AsyncTokenCredential | None" = None,
    ):
        """
        Initialize infrastructure factory.

        Args:
            settings: Process settings (defaults to get_settings())
            credential: Azure credential; a DefaultAzureCredential is
                created on first use when omitted
        """
        self.settings = settings or get_settings()
        self._credential = credential
        self._owns_credential = credential is None
        self._vault_clients: dict[str, "KeyVaultClient"] = {}
        self._closeables: list = []

        logger.info("Initialized InfrastructureFactory")

    @property
    def credential(self) -> "AsyncTokenCredential":
        if self._credential is None:
            from azure.identity.aio import DefaultAzureCredential

            self._credential = DefaultAzureCredential()
            logger.info("Created DefaultAzureCredential")
        return self._credential

    def _vault_client(self, vault_url: str) -> "KeyVaultClient":
        vault_url = vault_url.rstrip("/")
        if vault_url not in self._vault_clients:
            from certforgot.infrastructure.clients import AzureKeyVaultClient

            client = AzureKeyVaultClient(vault_url, self.credential)
            self._vault_clients[vault_url] = client
            self._closeables.append(client)
        return self._vault_clients[vault_url]

    def _vault_certificate(self, location: str) -> tuple["KeyVaultClient", str]:
        """Vault client and certificate name for a certificate identifier URL."""
        from azure.keyvault.certificates import KeyVaultCertificateIdentifier

        try:
            identifier = KeyVaultCertificateIdentifier(location)
        except ValueError as e:
            raise ConfigValidationError(
                f"'{location}' is not a Key Vault certificate URL "
                "(https://<vault>/certificates/<name>)",
                resource=location,
            ) from e
        return self._vault_client(identifier.vault_url), identifier.name

    def get_certificate_source(self, descriptor: SourceDescriptor) -> CertificateSource:
        """
        Get certificate source for a source descriptor.

        Raises:
            ConfigValidationError: If the source type is not supported
        """
        kind = descriptor.type

        if kind in (SourceType.LOCAL_PEM, SourceType.LOCAL_DER):
            from certforgot.infrastructure.implementations.local import (
                LocalCertificateSource,
            )

            return LocalCertificateSource(descriptor.location, file_type_of(kind))

        elif kind is SourceType.HTTPS:
            from certforgot.infrastructure.implementations.https import (
                HttpsCertificateSource,
            )

            return HttpsCertificateSource(
                descriptor.location, timeout=self.settings.http_timeout
            )

        elif kind is SourceType.AZURE_KEYVAULT:
            from certforgot.infrastructure.implementations.azure import (
                KeyVaultCertificateSource,
            )

            client, name = self._vault_certificate(descriptor.location)
            return KeyVaultCertificateSource(client, name)

        else:
            raise ConfigValidationError(f"Unsupported source type: {kind}")

    def get_certificate_installer(
        self, descriptor: InstallerDescriptor
    ) -> CertificateInstaller:
        """
        Get certificate installer for an installer descriptor.

        Raises:
            ConfigValidationError: If the installer type is not supported
        """
        kind = descriptor.type

        if kind in (InstallerType.LOCAL_PEM, InstallerType.LOCAL_DER):
            from certforgot.infrastructure.implementations.local import (
                LocalCertificateInstaller,
            )

            return LocalCertificateInstaller(descriptor.location, file_type_of(kind))

        elif kind is InstallerType.AZURE_KEYVAULT:
            from certforgot.infrastructure.implementations.azure import (
                KeyVaultCertificateInstaller,
            )

            client, name = self._vault_certificate(descriptor.location)
            return KeyVaultCertificateInstaller(client, name)

        else:
            raise ConfigValidationError(f"Unsupported installer type: {kind}")

    async def get_state_repository(self, state: StateConfig) -> StateRepository:
        """
        Get identity state repository for the configured backend.

        The SQL backend connects and pings the database before returning.

        Raises:
            ConfigValidationError: If no supported backend is configured
            StorageIOError: If the database cannot be reached
        """
        if state.local is not None:
            from certforgot.infrastructure.implementations.local import (
                LocalStateRepository,
            )

            return LocalStateRepository(state.local.directory)

        elif state.sql is not None:
            from certforgot.infrastructure.implementations.sql import (
                SqlStateRepository,
            )

            repository = await SqlStateRepository.connect(
                state.sql.url, schema=state.sql.schema_name
            )
            self._closeables.append(repository)
            return repository

        elif state.azure_blob is not None:
            from certforgot.infrastructure.clients import AzureBlobClient
            from certforgot.infrastructure.implementations.azure import (
                AzureBlobStateRepository,
            )

            client = AzureBlobClient(
                str(state.azure_blob.url),
                self.settings.state_blob_name,
                self.credential,
            )
            self._closeables.append(client)
            return AzureBlobStateRepository(client)

        elif state.azure_key_vault is not None:
            from certforgot.infrastructure.implementations.azure import (
                AzureKeyVaultStateRepository,
            )

            vault = state.azure_key_vault
            names = {
                name: value
                for name, value in (
                    ("key_name", vault.key_name),
                    ("email_secret_name", vault.email_secret_name),
                )
                if value is not None
            }
            return AzureKeyVaultStateRepository(
                self._vault_client(str(vault.url)), **names
            )

        else:
            raise ConfigValidationError("No state backend configured")

    async def close(self) -> None:
        """Close every client and engine created by this factory."""
        for closeable in self._closeables:
            await closeable.close()
        self._closeables.clear()
        self._vault_clients.clear()

        if self._owns_credential and self._credential is not None:
            await self._credential.close()
            self._credential = None

        logger.info("Closed InfrastructureFactory resources")
