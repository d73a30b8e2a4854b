"""
Key vault client.

Secret, key and certificate operations on one vault. A missing secret,
key or certificate is reported as None rather than an error so callers
can tell "absent" from "unreachable".
"""

import json
from abc import ABC, abstractmethod

import josepy as jose
from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.keyvault.certificates import (
    CertificateContentType,
    CertificatePolicy,
    WellKnownIssuerNames,
)
from azure.keyvault.certificates.aio import CertificateClient
from azure.keyvault.keys import JsonWebKey
from azure.keyvault.keys.aio import KeyClient
from azure.keyvault.secrets.aio import SecretClient
from cryptography import x509

from certforgot.core.logging import logger
from certforgot.errors import CertificateParseError, EncodeError, IdentityDecodeError
from certforgot.infrastructure.clients.azure_errors import translate_azure_error
from certforgot.utils.keys import PrivateKey, pem_bundle

BACKEND = "azure-keyvault"

# JWK members carrying base64url-encoded binary values
_BINARY_FIELDS = ("n", "e", "d", "dp", "dq", "qi", "p", "q", "k", "t", "x", "y")


class KeyVaultClient(ABC):
    """Vault operations used by certificate and state backends."""

    @abstractmethod
    async def get_key(self, name: str, version: str = "") -> jose.JWK | None:
        """Fetch a key; version "" means latest. None if absent."""
        pass

    @abstractmethod
    async def import_key(self, name: str, key: jose.JWK) -> None:
        """Import a key, creating a new version."""
        pass

    @abstractmethod
    async def get_secret(self, name: str, version: str = "") -> str | None:
        """Fetch a secret value; version "" means latest. None if absent."""
        pass

    @abstractmethod
    async def set_secret(self, name: str, value: str) -> None:
        """Set a secret value, creating a new version."""
        pass

    @abstractmethod
    async def get_certificate(
        self, name: str, version: str = ""
    ) -> x509.Certificate | None:
        """Fetch a certificate; version "" means latest. None if absent."""
        pass

    @abstractmethod
    async def import_certificate(
        self, name: str, certificate: x509.Certificate, private_key: PrivateKey
    ) -> None:
        """Import a certificate with its private key, creating a new version."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass


class AzureKeyVaultClient(KeyVaultClient):
    """Azure Key Vault implementation of KeyVaultClient."""

    def __init__(self, vault_url: str, credential: AsyncTokenCredential):
        """
        Initialize Azure Key Vault client.

        Args:
            vault_url: Vault URL (https://<vault>.vault.azure.net)
            credential: Async Azure credential
        """
        self.vault_url = vault_url
        self._secrets = SecretClient(vault_url=vault_url, credential=credential)
        self._keys = KeyClient(vault_url=vault_url, credential=credential)
        self._certificates = CertificateClient(
            vault_url=vault_url, credential=credential
        )

        logger.info(f"Initialized AzureKeyVaultClient for {vault_url}")

    def _resource(self, kind: str, name: str) -> str:
        return f"{self.vault_url.rstrip('/')}/{kind}/{name}"

    async def get_key(self, name: str, version: str = "") -> jose.JWK | None:
        resource = self._resource("keys", name)
        try:
            key = await self._keys.get_key(name, version=version or None)
        except ResourceNotFoundError:
            logger.debug(f"Key not found: {resource}")
            return None
        except AzureError as e:
            raise translate_azure_error(
                e, operation="get_key", backend=BACKEND, resource=resource
            ) from e

        logger.debug(f"Retrieved key: {resource}")
        return azure_to_jwk(key.key)

    async def import_key(self, name: str, key: jose.JWK) -> None:
        resource = self._resource("keys", name)
        try:
            await self._keys.import_key(name, jwk_to_azure(key))
        except AzureError as e:
            raise translate_azure_error(
                e, operation="import_key", backend=BACKEND, resource=resource
            ) from e

        logger.info(f"Imported key: {resource}")

    async def get_secret(self, name: str, version: str = "") -> str | None:
        resource = self._resource("secrets", name)
        try:
            secret = await self._secrets.get_secret(name, version=version or None)
        except ResourceNotFoundError:
            logger.debug(f"Secret not found: {resource}")
            return None
        except AzureError as e:
            raise translate_azure_error(
                e, operation="get_secret", backend=BACKEND, resource=resource
            ) from e

        logger.debug(f"Retrieved secret: {resource}")
        return secret.value

    async def set_secret(self, name: str, value: str) -> None:
        resource = self._resource("secrets", name)
        try:
            await self._secrets.set_secret(name, value)
        except AzureError as e:
            raise translate_azure_error(
                e, operation="set_secret", backend=BACKEND, resource=resource
            ) from e

        logger.info(f"Set secret: {resource}")

    async def get_certificate(
        self, name: str, version: str = ""
    ) -> x509.Certificate | None:
        resource = self._resource("certificates", name)
        try:
            if version:
                bundle = await self._certificates.get_certificate_version(
                    name, version
                )
            else:
                bundle = await self._certificates.get_certificate(name)
        except ResourceNotFoundError:
            logger.debug(f"Certificate not found: {resource}")
            return None
        except AzureError as e:
            raise translate_azure_error(
                e, operation="get_certificate", backend=BACKEND, resource=resource
            ) from e

        try:
            certificate = x509.load_der_x509_certificate(bytes(bundle.cer or b""))
        except ValueError as e:
            raise CertificateParseError(
                f"vault returned an invalid certificate: {e}",
                operation="get_certificate",
                backend=BACKEND,
                resource=resource,
            ) from e

        logger.debug(f"Retrieved certificate: {resource}")
        return certificate

    async def import_certificate(
        self, name: str, certificate: x509.Certificate, private_key: PrivateKey
    ) -> None:
        resource = self._resource("certificates", name)
        bundle = pem_bundle(certificate, private_key)
        policy = CertificatePolicy(
            issuer_name=WellKnownIssuerNames.unknown,
            content_type=CertificateContentType.pem,
        )
        try:
            # The SDK base64-encodes the bundle on the wire
            await self._certificates.import_certificate(name, bundle, policy=policy)
        except AzureError as e:
            raise translate_azure_error(
                e, operation="import_certificate", backend=BACKEND, resource=resource
            ) from e

        logger.info(f"Imported certificate: {resource}")

    async def close(self) -> None:
        await self._secrets.close()
        await self._keys.close()
        await self._certificates.close()


def jwk_to_azure(key: jose.JWK) -> JsonWebKey:
    """
    Convert a josepy JWK to a Key Vault JsonWebKey.

    Raises:
        EncodeError: If the key cannot be represented
    """
    try:
        members = json.loads(key.json_dumps())
        fields = {
            name: jose.b64decode(value) if name in _BINARY_FIELDS else value
            for name, value in members.items()
        }
    except (ValueError, TypeError) as e:
        raise EncodeError(f"cannot convert signing key: {e}") from e
    return JsonWebKey(**fields)


def azure_to_jwk(key: JsonWebKey) -> jose.JWK:
    """
    Convert a Key Vault JsonWebKey to a josepy JWK.

    HSM key types ("RSA-HSM", "EC-HSM", "oct-HSM") map to their software
    counterparts. Key Vault never returns private material of a stored
    key, so the result holds the public part only for asymmetric keys.

    Raises:
        IdentityDecodeError: If the key type is unsupported or incomplete
    """
    kty = getattr(key.kty, "value", key.kty)
    if not kty:
        raise IdentityDecodeError("vault key has no key type")
    members: dict[str, str] = {"kty": str(kty).removesuffix("-HSM")}

    crv = getattr(key, "crv", None)
    if crv:
        members["crv"] = str(getattr(crv, "value", crv))
    for name in _BINARY_FIELDS:
        value = getattr(key, name, None)
        if value:
            members[name] = jose.b64encode(bytes(value)).decode("ascii")

    try:
        return jose.JWK.from_json(members)
    except (ValueError, TypeError, KeyError, jose.Error) as e:
        raise IdentityDecodeError(f"vault key is not a valid JWK: {e}") from e
