"""
Unit tests for the Azure Key Vault client.

The Key Vault SDK clients are mocked so no vault is needed.
"""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import josepy as jose
import pytest
from azure.core.exceptions import ClientAuthenticationError, ResourceNotFoundError
from azure.keyvault.certificates import CertificateContentType
from azure.keyvault.keys import JsonWebKey
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from certforgot.errors import AuthError, CertificateParseError, IdentityDecodeError
from certforgot.infrastructure.clients.key_vault_client import (
    AzureKeyVaultClient,
    azure_to_jwk,
    jwk_to_azure,
)

VAULT_URL = "https://myvault.vault.azure.net"
MODULE = "certforgot.infrastructure.clients.key_vault_client"


def _sdk_client():
    client = MagicMock()
    for method in (
        "get_secret",
        "set_secret",
        "get_key",
        "import_key",
        "get_certificate",
        "get_certificate_version",
        "import_certificate",
        "close",
    ):
        setattr(client, method, AsyncMock())
    return client


@pytest.fixture
def sdk():
    """Mock the secret, key and certificate SDK clients."""
    secrets, keys, certificates = _sdk_client(), _sdk_client(), _sdk_client()
    with patch(f"{MODULE}.SecretClient", return_value=secrets), patch(
        f"{MODULE}.KeyClient", return_value=keys
    ), patch(f"{MODULE}.CertificateClient", return_value=certificates):
        yield MagicMock(secrets=secrets, keys=keys, certificates=certificates)


@pytest.fixture
def vault_client(sdk):
    """Create a vault client over the mocked SDK."""
    return AzureKeyVaultClient(VAULT_URL, MagicMock())


class TestSecrets:
    """Tests for secret operations."""

    @pytest.mark.asyncio
    async def test_get_secret(self, sdk, vault_client):
        """Test fetching the latest secret version."""
        sdk.secrets.get_secret.return_value = MagicMock(value="admin@example.com")

        assert await vault_client.get_secret("email") == "admin@example.com"
        sdk.secrets.get_secret.assert_awaited_once_with("email", version=None)

    @pytest.mark.asyncio
    async def test_get_secret_version(self, sdk, vault_client):
        """Test fetching a specific secret version."""
        sdk.secrets.get_secret.return_value = MagicMock(value="v")

        await vault_client.get_secret("email", "abc123")

        sdk.secrets.get_secret.assert_awaited_once_with("email", version="abc123")

    @pytest.mark.asyncio
    async def test_get_secret_not_found(self, sdk, vault_client):
        """Test that a missing secret is None, not an error."""
        sdk.secrets.get_secret.side_effect = ResourceNotFoundError(message="missing")

        assert await vault_client.get_secret("email") is None

    @pytest.mark.asyncio
    async def test_get_secret_auth_failure(self, sdk, vault_client):
        """Test that credential failures are auth errors."""
        sdk.secrets.get_secret.side_effect = ClientAuthenticationError(message="no")

        with pytest.raises(AuthError) as exc_info:
            await vault_client.get_secret("email")

        assert exc_info.value.resource == f"{VAULT_URL}/secrets/email"

    @pytest.mark.asyncio
    async def test_set_secret(self, sdk, vault_client):
        """Test setting a secret."""
        await vault_client.set_secret("email", "admin@example.com")

        sdk.secrets.set_secret.assert_awaited_once_with("email", "admin@example.com")


class TestKeys:
    """Tests for key operations."""

    @pytest.mark.asyncio
    async def test_import_key(self, sdk, vault_client, rsa_key):
        """Test that the JWK is converted to a JsonWebKey."""
        await vault_client.import_key("userkey", jose.JWKRSA(key=rsa_key))

        name, key = sdk.keys.import_key.await_args[0]
        assert name == "userkey"
        assert isinstance(key, JsonWebKey)
        assert key.kty == "RSA"
        numbers = rsa_key.private_numbers()
        assert int.from_bytes(key.n, "big") == numbers.public_numbers.n
        assert int.from_bytes(key.d, "big") == numbers.d

    @pytest.mark.asyncio
    async def test_get_key(self, sdk, vault_client, rsa_key):
        """Test that the vault key is returned as a public JWK."""
        public = rsa_key.public_key().public_numbers()
        sdk.keys.get_key.return_value = MagicMock(
            key=JsonWebKey(
                kty="RSA-HSM",
                n=public.n.to_bytes(256, "big"),
                e=public.e.to_bytes(3, "big"),
            )
        )

        key = await vault_client.get_key("userkey")

        assert key == jose.JWKRSA(key=rsa_key.public_key())

    @pytest.mark.asyncio
    async def test_get_key_not_found(self, sdk, vault_client):
        """Test that a missing key is None, not an error."""
        sdk.keys.get_key.side_effect = ResourceNotFoundError(message="missing")

        assert await vault_client.get_key("userkey") is None


class TestCertificates:
    """Tests for certificate operations."""

    @pytest.mark.asyncio
    async def test_get_certificate(self, sdk, vault_client, certificate):
        """Test parsing the raw certificate."""
        sdk.certificates.get_certificate.return_value = MagicMock(
            cer=certificate.public_bytes(serialization.Encoding.DER)
        )

        assert await vault_client.get_certificate("www") == certificate
        sdk.certificates.get_certificate.assert_awaited_once_with("www")

    @pytest.mark.asyncio
    async def test_get_certificate_version(self, sdk, vault_client, certificate):
        """Test fetching a specific certificate version."""
        sdk.certificates.get_certificate_version.return_value = MagicMock(
            cer=certificate.public_bytes(serialization.Encoding.DER)
        )

        await vault_client.get_certificate("www", "v2")

        sdk.certificates.get_certificate_version.assert_awaited_once_with("www", "v2")

    @pytest.mark.asyncio
    async def test_get_certificate_not_found(self, sdk, vault_client):
        """Test that a missing certificate is None."""
        sdk.certificates.get_certificate.side_effect = ResourceNotFoundError(
            message="missing"
        )

        assert await vault_client.get_certificate("www") is None

    @pytest.mark.asyncio
    async def test_get_certificate_invalid(self, sdk, vault_client):
        """Test that an undecodable certificate is a parse error."""
        sdk.certificates.get_certificate.return_value = MagicMock(cer=b"garbage")

        with pytest.raises(CertificateParseError):
            await vault_client.get_certificate("www")

    @pytest.mark.asyncio
    async def test_import_certificate(self, sdk, vault_client, certificate, rsa_key):
        """Test that the PEM bundle holds the key then the certificate."""
        await vault_client.import_certificate("www", certificate, rsa_key)

        call = sdk.certificates.import_certificate.await_args
        name, bundle = call[0]
        assert name == "www"
        assert bundle.index(b"BEGIN PRIVATE KEY") < bundle.index(b"BEGIN CERTIFICATE")
        assert x509.load_pem_x509_certificates(bundle)[0] == certificate
        assert call[1]["policy"].content_type == CertificateContentType.pem

    @pytest.mark.asyncio
    async def test_close(self, sdk, vault_client):
        """Test that close releases every SDK client."""
        await vault_client.close()

        sdk.secrets.close.assert_awaited_once()
        sdk.keys.close.assert_awaited_once()
        sdk.certificates.close.assert_awaited_once()


class TestJwkConversion:
    """Tests for JWK <-> JsonWebKey conversion."""

    def test_symmetric_round_trip(self):
        """Test that a symmetric key survives both conversions."""
        key = jose.JWKOct(key=b"test")

        converted = jwk_to_azure(key)

        assert converted.k == b"test"
        assert azure_to_jwk(converted) == key

    def test_rsa_round_trip(self, rsa_key):
        """Test that a private RSA key survives both conversions."""
        key = jose.JWKRSA(key=rsa_key)

        assert azure_to_jwk(jwk_to_azure(key)) == key

    def test_ec_round_trip(self, ec_key):
        """Test that an EC key survives both conversions."""
        key = jose.JWKEC(key=ec_key)

        converted = jwk_to_azure(key)

        assert converted.crv == "P-256"
        assert azure_to_jwk(converted) == key

    def test_missing_key_type(self):
        """Test that a key without type is rejected."""
        with pytest.raises(IdentityDecodeError):
            azure_to_jwk(JsonWebKey(n=b"\x01"))

    def test_incomplete_key(self):
        """Test that an incomplete key is rejected."""
        with pytest.raises(IdentityDecodeError):
            azure_to_jwk(JsonWebKey(kty="RSA", n=base64.b64decode("AQAB")))
