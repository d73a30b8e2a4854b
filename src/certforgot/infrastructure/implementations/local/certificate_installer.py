"""
Local file certificate installer.

Writes the certificate and key under a directory:
    DER: {directory}/{cert_name}.der and {directory}/{key_name}.der
    PEM: {directory}/{cert_name}.pem holding CERTIFICATE then PRIVATE KEY

Each file is replaced atomically, so a concurrent reader never sees a
partially written certificate.
"""

import asyncio
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from loguru import logger

from certforgot.errors import StorageIOError
from certforgot.infrastructure.repositories.certificate_installer import (
    CertificateInstaller,
)
from certforgot.models.file_type import FileType
from certforgot.utils.files import atomic_write
from certforgot.utils.keys import PrivateKey, certificate_bytes, private_key_bytes

BACKEND = "local"

DEFAULT_CERT_NAME = "cert"
DEFAULT_KEY_NAME = "key"


class LocalCertificateInstaller(CertificateInstaller):
    """Certificate and key written to a local directory."""

    def __init__(
        self,
        directory: str | Path,
        file_type: FileType,
        cert_name: str = DEFAULT_CERT_NAME,
        key_name: str = DEFAULT_KEY_NAME,
    ):
        """
        Initialize local certificate installer.

        Args:
            directory: Destination directory, created on install if absent
            file_type: Encoding of the written files
            cert_name: Base name of the certificate file
            key_name: Base name of the key file (DER only)
        """
        self.directory = Path(directory)
        self.file_type = file_type
        self.cert_name = cert_name
        self.key_name = key_name

        logger.info(
            f"Initialized LocalCertificateInstaller at {self.directory} "
            f"({file_type.value})"
        )

    @property
    def cert_path(self) -> Path:
        return self.directory / f"{self.cert_name}.{self.file_type.extension}"

    @property
    def key_path(self) -> Path:
        return self.directory / f"{self.key_name}.{self.file_type.extension}"

    async def install(
        self, certificate: x509.Certificate, private_key: PrivateKey
    ) -> None:
        """Write the certificate and key files."""
        if self.file_type is FileType.DER:
            files = [
                (
                    self.cert_path,
                    certificate_bytes(certificate, serialization.Encoding.DER),
                    0o644,
                ),
                (
                    self.key_path,
                    private_key_bytes(private_key, serialization.Encoding.DER),
                    0o600,
                ),
            ]
        else:
            bundle = certificate_bytes(
                certificate, serialization.Encoding.PEM
            ) + private_key_bytes(private_key, serialization.Encoding.PEM)
            files = [(self.cert_path, bundle, 0o600)]

        await asyncio.to_thread(self._write, files)

        logger.info(
            f"Installed certificate {certificate.subject.rfc4514_string()} "
            f"to {self.directory}"
        )

    def _write(self, files: list[tuple[Path, bytes, int]]) -> None:
        for path, data, mode in files:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                atomic_write(path, data, mode=mode)
            except OSError as e:
                logger.error(f"Failed to write {path}: {e}")
                raise StorageIOError(
                    f"cannot write file: {e}",
                    operation="install",
                    backend=BACKEND,
                    resource=str(path),
                ) from e
