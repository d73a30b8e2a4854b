"""Tests for the infrastructure factory."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from certforgot.config import Settings
from certforgot.errors import ConfigValidationError
from certforgot.infrastructure import InfrastructureFactory
from certforgot.infrastructure.implementations.azure import (
    AzureBlobStateRepository,
    AzureKeyVaultStateRepository,
    KeyVaultCertificateInstaller,
    KeyVaultCertificateSource,
)
from certforgot.infrastructure.implementations.azure.key_vault_state_repository import (
    DEFAULT_EMAIL_SECRET_NAME,
    DEFAULT_KEY_NAME,
)
from certforgot.infrastructure.implementations.https import HttpsCertificateSource
from certforgot.infrastructure.implementations.local import (
    LocalCertificateInstaller,
    LocalCertificateSource,
    LocalStateRepository,
)
from certforgot.models.config import InstallerDescriptor, SourceDescriptor, StateConfig
from certforgot.models.file_type import FileType

VAULT = "https://myvault.vault.azure.net"


@pytest.fixture
def credential():
    """Injected Azure credential."""
    return AsyncMock()


@pytest.fixture
def factory(credential):
    """Create a factory with an injected credential."""
    return InfrastructureFactory(
        settings=Settings(_env_file=None, http_timeout=7.5), credential=credential
    )


@pytest.fixture
def mock_vault_client():
    """Mock the Azure Key Vault client class."""
    with patch("certforgot.infrastructure.clients.AzureKeyVaultClient") as mock_class:
        mock_class.side_effect = lambda url, credential: AsyncMock(vault_url=url)
        yield mock_class


class TestCertificateSources:
    """Tests for get_certificate_source."""

    @pytest.mark.parametrize(
        "kind,file_type", [("local-pem", FileType.PEM), ("local-der", FileType.DER)]
    )
    def test_local(self, factory, kind, file_type):
        """Test local file sources."""
        source = factory.get_certificate_source(
            SourceDescriptor(type=kind, location="/etc/ssl/cert")
        )

        assert isinstance(source, LocalCertificateSource)
        assert source.file_type is file_type

    def test_https(self, factory):
        """Test that the HTTPS source uses the configured timeout."""
        source = factory.get_certificate_source(
            SourceDescriptor(type="https", location="https://www.example.com")
        )

        assert isinstance(source, HttpsCertificateSource)
        assert source.timeout == 7.5

    def test_key_vault(self, factory, credential, mock_vault_client):
        """Test that the certificate URL selects vault and name."""
        source = factory.get_certificate_source(
            SourceDescriptor(
                type="azure-keyvault", location=f"{VAULT}/certificates/www"
            )
        )

        assert isinstance(source, KeyVaultCertificateSource)
        assert source.certificate_name == "www"
        mock_vault_client.assert_called_once_with(VAULT, credential)

    def test_key_vault_invalid_location(self, factory, mock_vault_client):
        """Test that a vault URL without certificate name is rejected."""
        with pytest.raises(ConfigValidationError):
            factory.get_certificate_source(
                SourceDescriptor(type="azure-keyvault", location=VAULT)
            )

    def test_unsupported_type(self, factory):
        """Test that unknown source types are rejected."""
        with pytest.raises(ConfigValidationError):
            factory.get_certificate_source(MagicMock(type="ftp", location="x"))


class TestCertificateInstallers:
    """Tests for get_certificate_installer."""

    def test_local(self, factory, temp_dir):
        """Test local file installers."""
        installer = factory.get_certificate_installer(
            InstallerDescriptor(type="local-der", location=str(temp_dir))
        )

        assert isinstance(installer, LocalCertificateInstaller)
        assert installer.file_type is FileType.DER
        assert installer.directory == temp_dir

    def test_key_vault_shares_client(self, factory, mock_vault_client):
        """Test that sources and installers on one vault share a client."""
        location = f"{VAULT}/certificates/www"
        source = factory.get_certificate_source(
            SourceDescriptor(type="azure-keyvault", location=location)
        )
        installer = factory.get_certificate_installer(
            InstallerDescriptor(type="azure-keyvault", location=location)
        )

        assert isinstance(installer, KeyVaultCertificateInstaller)
        assert installer.client is source.client
        mock_vault_client.assert_called_once()

    def test_unsupported_type(self, factory):
        """Test that unknown installer types are rejected."""
        with pytest.raises(ConfigValidationError):
            factory.get_certificate_installer(MagicMock(type="ftp", location="x"))


class TestStateRepositories:
    """Tests for get_state_repository."""

    @pytest.mark.asyncio
    async def test_local(self, factory, temp_dir):
        """Test the local state backend."""
        state = StateConfig.model_validate({"local": {"directory": str(temp_dir)}})

        repository = await factory.get_state_repository(state)

        assert isinstance(repository, LocalStateRepository)

    @pytest.mark.asyncio
    async def test_sql_connects(self, factory):
        """Test that the SQL backend is connected before it is returned."""
        state = StateConfig.model_validate(
            {
                "sql": {
                    "driver": "postgresql+asyncpg",
                    "connectionString": "user:pw@db/certs",
                    "schema": "certforgot",
                }
            }
        )
        repository = AsyncMock()

        with patch(
            "certforgot.infrastructure.implementations.sql.SqlStateRepository.connect",
            AsyncMock(return_value=repository),
        ) as connect:
            result = await factory.get_state_repository(state)

        assert result is repository
        connect.assert_awaited_once_with(
            "postgresql+asyncpg://user:pw@db/certs", schema="certforgot"
        )

    @pytest.mark.asyncio
    async def test_azure_blob(self, factory, credential):
        """Test the blob backend uses the configured blob name."""
        state = StateConfig.model_validate(
            {"azureBlob": {"url": "https://acct.blob.core.windows.net/state"}}
        )

        with patch("certforgot.infrastructure.clients.AzureBlobClient") as mock_class:
            repository = await factory.get_state_repository(state)

        assert isinstance(repository, AzureBlobStateRepository)
        mock_class.assert_called_once_with(
            "https://acct.blob.core.windows.net/state",
            "certforgot_state.yaml",
            credential,
        )

    @pytest.mark.asyncio
    async def test_azure_key_vault(self, factory, mock_vault_client):
        """Test the key vault backend with custom names."""
        state = StateConfig.model_validate(
            {"azureKeyVault": {"url": VAULT, "keyName": "k", "emailSecretName": "e"}}
        )

        repository = await factory.get_state_repository(state)

        assert isinstance(repository, AzureKeyVaultStateRepository)
        assert repository.key_name == "k"
        assert repository.email_secret_name == "e"
        mock_vault_client.assert_called_once_with(VAULT, factory.credential)

    @pytest.mark.asyncio
    async def test_azure_key_vault_default_names(self, factory, mock_vault_client):
        """Test that unset vault names fall back to the backend defaults."""
        state = StateConfig.model_validate({"azureKeyVault": {"url": VAULT}})

        repository = await factory.get_state_repository(state)

        assert repository.key_name == DEFAULT_KEY_NAME
        assert repository.email_secret_name == DEFAULT_EMAIL_SECRET_NAME
        assert repository.key_name == "certforgot-userkey"

    @pytest.mark.asyncio
    async def test_no_backend(self, factory):
        """Test that an empty state configuration is rejected."""
        with pytest.raises(ConfigValidationError):
            await factory.get_state_repository(StateConfig.model_construct())


class TestLifecycle:
    """Tests for credential handling and close."""

    @pytest.mark.asyncio
    async def test_close_releases_clients(self, factory, credential, mock_vault_client):
        """Test that close releases created clients but not an injected credential."""
        source = factory.get_certificate_source(
            SourceDescriptor(type="azure-keyvault", location=f"{VAULT}/certificates/www")
        )

        await factory.close()

        source.client.close.assert_awaited_once()
        credential.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_credential_created_lazily(self):
        """Test that DefaultAzureCredential is created on first use and closed."""
        with patch("azure.identity.aio.DefaultAzureCredential") as mock_class:
            mock_class.return_value = AsyncMock()
            factory = InfrastructureFactory(settings=Settings(_env_file=None))
            mock_class.assert_not_called()

            credential = factory.credential
            assert factory.credential is credential
            await factory.close()

        mock_class.assert_called_once_with()
        credential.close.assert_awaited_once()
