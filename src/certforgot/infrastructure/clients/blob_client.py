"""
Blob storage client.

Thin upload/download/exists operations on one blob, used by the blob
identity state repository.
"""

from abc import ABC, abstractmethod

from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob.aio import ContainerClient

from certforgot.core.logging import logger
from certforgot.infrastructure.clients.azure_errors import translate_azure_error

BACKEND = "azure-blob"


class BlobClient(ABC):
    """Operations on a single blob."""

    @abstractmethod
    async def upload(self, data: bytes) -> None:
        """Upload the blob, overwriting any existing content."""
        pass

    @abstractmethod
    async def download(self) -> bytes:
        """
        Download the blob.

        Raises:
            NotFoundError: If the blob does not exist
        """
        pass

    @abstractmethod
    async def exists(self) -> bool:
        """Check whether the blob exists; other failures propagate."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass


class AzureBlobClient(BlobClient):
    """
    Azure Storage block blob client.

    The blob URL is the container URL joined with the blob name.
    """

    def __init__(
        self,
        container_url: str,
        blob_name: str,
        credential: AsyncTokenCredential,
    ):
        """
        Initialize Azure blob client.

        Args:
            container_url: Container URL (https://<account>.blob.core.windows.net/<container>)
            blob_name: Blob name inside the container
            credential: Async Azure credential
        """
        self.container_url = container_url.rstrip("/")
        self.blob_name = blob_name
        self._container = ContainerClient.from_container_url(
            self.container_url, credential=credential
        )
        self._blob = self._container.get_blob_client(blob_name)

        logger.info(f"Initialized AzureBlobClient for {self.blob_url}")

    @property
    def blob_url(self) -> str:
        return f"{self.container_url}/{self.blob_name}"

    async def upload(self, data: bytes) -> None:
        try:
            await self._blob.upload_blob(data, overwrite=True)
        except AzureError as e:
            raise translate_azure_error(
                e, operation="upload", backend=BACKEND, resource=self.blob_url
            ) from e

        logger.debug(f"Uploaded {len(data)} bytes to {self.blob_url}")

    async def download(self) -> bytes:
        try:
            downloader = await self._blob.download_blob()
            data = await downloader.readall()
        except AzureError as e:
            raise translate_azure_error(
                e, operation="download", backend=BACKEND, resource=self.blob_url
            ) from e

        logger.debug(f"Downloaded {len(data)} bytes from {self.blob_url}")
        return data

    async def exists(self) -> bool:
        try:
            await self._blob.get_blob_properties()
        except ResourceNotFoundError as e:
            if getattr(e, "error_code", None) == "BlobNotFound":
                return False
            raise translate_azure_error(
                e, operation="exists", backend=BACKEND, resource=self.blob_url
            ) from e
        except AzureError as e:
            raise translate_azure_error(
                e, operation="exists", backend=BACKEND, resource=self.blob_url
            ) from e
        return True

    async def close(self) -> None:
        await self._blob.close()
        await self._container.close()
