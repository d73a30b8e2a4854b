"""
Local file-based identity state repository.

Stores the identity as a YAML document:
    {directory}/certforgot_state.yaml

    userEmail: admin@example.com
    userPrivateKey: <base64 of the JWK JSON>
"""

import asyncio
from pathlib import Path

from loguru import logger

from certforgot.errors import NotFoundError, StorageIOError
from certforgot.infrastructure.repositories.state_repository import StateRepository
from certforgot.models.identity import Identity
from certforgot.utils.files import atomic_write
from certforgot.utils.identity_codec import IdentityCodec

BACKEND = "local"

STATE_FILE_NAME = "certforgot_state.yaml"


class LocalStateRepository(StateRepository):
    """
    File-based identity storage.

    The state file holds the signing key unencrypted and is written with
    owner-only permissions.
    """

    def __init__(self, directory: str | Path, file_name: str = STATE_FILE_NAME):
        """
        Initialize local state repository.

        Args:
            directory: State directory, created if absent
            file_name: Name of the state file
        """
        self.directory = Path(directory)
        self.state_path = self.directory / file_name
        self.codec = IdentityCodec()

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(
                f"cannot create state directory: {e}",
                operation="init",
                backend=BACKEND,
                resource=str(self.directory),
            ) from e

        logger.info(f"Initialized LocalStateRepository at {self.state_path}")

    async def update(self, identity: Identity) -> None:
        """Serialize the identity and replace the state file."""
        data = self.codec.dump_yaml(identity)
        try:
            await asyncio.to_thread(atomic_write, self.state_path, data, 0o600)
        except OSError as e:
            logger.error(f"Failed to write state {self.state_path}: {e}")
            raise StorageIOError(
                f"cannot write state file: {e}",
                operation="update",
                backend=BACKEND,
                resource=str(self.state_path),
            ) from e

        logger.info(f"Stored identity for {identity.email.address}")

    async def get(self) -> Identity:
        """Read and decode the state file."""
        try:
            data = await asyncio.to_thread(self.state_path.read_bytes)
        except FileNotFoundError as e:
            raise NotFoundError(
                "state file does not exist",
                operation="get",
                backend=BACKEND,
                resource=str(self.state_path),
            ) from e
        except OSError as e:
            logger.error(f"Failed to read state {self.state_path}: {e}")
            raise StorageIOError(
                f"cannot read state file: {e}",
                operation="get",
                backend=BACKEND,
                resource=str(self.state_path),
            ) from e

        identity = self.codec.load_yaml(data)
        logger.debug(f"Loaded identity for {identity.email.address}")
        return identity

    async def exists(self) -> bool:
        """Check that the state file is present."""
        return self.state_path.is_file()
