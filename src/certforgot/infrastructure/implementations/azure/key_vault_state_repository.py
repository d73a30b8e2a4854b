"""
Key vault identity state repository.

The identity is split across two vault objects:
- a secret holding the registration mailbox
- a key holding the signing key

Updating writes the secret then the key. The two writes are not atomic:
a failure between them leaves the vault partially updated, and the
whole update should be retried (both writes are idempotent).
"""

from loguru import logger

from certforgot.errors import CertforgotError, NotFoundError
from certforgot.infrastructure.clients.key_vault_client import KeyVaultClient
from certforgot.infrastructure.repositories.state_repository import StateRepository
from certforgot.models.identity import Identity
from certforgot.utils.identity_codec import IdentityCodec

BACKEND = "azure-keyvault"

DEFAULT_KEY_NAME = "certforgot-userkey"
DEFAULT_EMAIL_SECRET_NAME = "certforgot-useremail"


class AzureKeyVaultStateRepository(StateRepository):
    """Identity stored as a vault secret and a vault key."""

    def __init__(
        self,
        client: KeyVaultClient,
        key_name: str = DEFAULT_KEY_NAME,
        email_secret_name: str = DEFAULT_EMAIL_SECRET_NAME,
    ):
        """
        Initialize key vault state repository.

        Args:
            client: Vault client
            key_name: Name of the vault key holding the signing key
            email_secret_name: Name of the vault secret holding the mailbox
        """
        self.client = client
        self.key_name = key_name
        self.email_secret_name = email_secret_name
        self.codec = IdentityCodec()

        logger.info(
            f"Initialized AzureKeyVaultStateRepository "
            f"(secret={email_secret_name}, key={key_name})"
        )

    async def update(self, identity: Identity) -> None:
        """Set the mailbox secret, then import the signing key."""
        await self.client.set_secret(
            self.email_secret_name, self.codec.encode_mailbox(identity.email)
        )
        try:
            await self.client.import_key(self.key_name, identity.signing_key)
        except CertforgotError as e:
            logger.error(
                f"Key import failed after the mailbox secret was updated: {e}"
            )
            raise type(e)(
                f"identity update may be partially applied, retry the update: "
                f"{e.message}",
                operation="update",
                backend=BACKEND,
                resource=self.key_name,
            ) from e

        logger.info(f"Stored identity for {identity.email.address}")

    async def get(self) -> Identity:
        """Fetch the mailbox secret and the signing key."""
        email = await self.client.get_secret(self.email_secret_name)
        if email is None:
            raise NotFoundError(
                "mailbox secret does not exist",
                operation="get",
                backend=BACKEND,
                resource=self.email_secret_name,
            )

        key = await self.client.get_key(self.key_name)
        if key is None:
            raise NotFoundError(
                "signing key does not exist",
                operation="get",
                backend=BACKEND,
                resource=self.key_name,
            )

        return Identity(email=self.codec.decode_mailbox(email), signing_key=key)

    async def exists(self) -> bool:
        """True only if both the secret and the key are present."""
        if await self.client.get_secret(self.email_secret_name) is None:
            return False
        return await self.client.get_key(self.key_name) is not None
