"""
Abstract interface for identity state storage.

A state repository persists exactly one Identity record (registration
mailbox and signing key) and can report whether one is stored without
fetching it.
"""

from abc import ABC, abstractmethod

from certforgot.models.identity import Identity


class StateRepository(ABC):
    """
    Abstract interface for the singleton identity record.

    Implementations:
    - LocalStateRepository: YAML file in a directory
    - SqlStateRepository: singleton row in a relational table
    - AzureBlobStateRepository: YAML blob
    - AzureKeyVaultStateRepository: email secret plus signing key
    """

    @abstractmethod
    async def update(self, identity: Identity) -> None:
        """
        Store the identity, replacing any previous one.

        Args:
            identity: Identity to persist

        Raises:
            CertforgotError: If the write fails; the caller may retry
                the whole call
        """
        pass

    @abstractmethod
    async def get(self) -> Identity:
        """
        Retrieve the stored identity.

        Returns:
            Stored identity

        Raises:
            NotFoundError: If no identity is stored
            IdentityDecodeError: If the stored record is malformed
        """
        pass

    @abstractmethod
    async def exists(self) -> bool:
        """
        Check whether an identity is stored.

        Returns:
            True if a complete identity is stored, False otherwise
        """
        pass
