"""
Local file certificate source.

Reads a certificate from a PEM or DER file. A PEM file may hold several
blocks (chain, key); the first CERTIFICATE block is returned.
"""

import asyncio
from pathlib import Path

from cryptography import x509
from loguru import logger

from certforgot.errors import CertificateParseError, StorageIOError
from certforgot.infrastructure.repositories.certificate_source import (
    CertificateSource,
)
from certforgot.models.file_type import FileType

BACKEND = "local"


class LocalCertificateSource(CertificateSource):
    """Certificate read from a local file."""

    def __init__(self, path: str | Path, file_type: FileType):
        """
        Initialize local certificate source.

        Args:
            path: Certificate file
            file_type: Encoding of the file
        """
        self.path = Path(path)
        self.file_type = file_type

        logger.info(
            f"Initialized LocalCertificateSource for {self.path} ({file_type.value})"
        )

    async def get(self) -> x509.Certificate:
        """Read and parse the certificate file."""
        try:
            data = await asyncio.to_thread(self.path.read_bytes)
        except OSError as e:
            logger.error(f"Failed to read certificate {self.path}: {e}")
            raise StorageIOError(
                f"cannot read certificate file: {e}",
                operation="get",
                backend=BACKEND,
                resource=str(self.path),
            ) from e

        certificate = self._parse(data)
        logger.debug(f"Read certificate {certificate.subject.rfc4514_string()}")
        return certificate

    def _parse(self, data: bytes) -> x509.Certificate:
        try:
            if self.file_type is FileType.PEM:
                # First CERTIFICATE block; later blocks are never parsed
                return x509.load_pem_x509_certificate(data)
            return x509.load_der_x509_certificate(data)
        except ValueError as e:
            raise CertificateParseError(
                f"no valid {self.file_type.value.upper()} certificate found: {e}",
                operation="get",
                backend=BACKEND,
                resource=str(self.path),
            ) from e
