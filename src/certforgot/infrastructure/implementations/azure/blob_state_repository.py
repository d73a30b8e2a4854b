"""
Blob storage identity state repository.

The identity is stored as a YAML document in a single blob, in the same
format as the local state file.
"""

from loguru import logger

from certforgot.infrastructure.clients.blob_client import BlobClient
from certforgot.infrastructure.repositories.state_repository import StateRepository
from certforgot.models.identity import Identity
from certforgot.utils.identity_codec import IdentityCodec


class AzureBlobStateRepository(StateRepository):
    """Identity stored in one blob."""

    def __init__(self, client: BlobClient):
        """
        Initialize blob state repository.

        Args:
            client: Client bound to the state blob
        """
        self.client = client
        self.codec = IdentityCodec()

        logger.info("Initialized AzureBlobStateRepository")

    async def update(self, identity: Identity) -> None:
        """Upload the identity document, overwriting the blob."""
        await self.client.upload(self.codec.dump_yaml(identity))
        logger.info(f"Stored identity for {identity.email.address}")

    async def get(self) -> Identity:
        """Download and decode the identity document."""
        identity = self.codec.load_yaml(await self.client.download())
        logger.debug(f"Loaded identity for {identity.email.address}")
        return identity

    async def exists(self) -> bool:
        """Probe the blob without downloading it."""
        return await self.client.exists()
