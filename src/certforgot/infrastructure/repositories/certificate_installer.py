"""Abstract interface for certificate installers."""

from abc import ABC, abstractmethod

from cryptography import x509

from certforgot.utils.keys import PrivateKey


class CertificateInstaller(ABC):
    """
    Places a certificate and its private key into a destination.

    The certificate bytes are written exactly as received; the private
    key is serialized as PKCS#8.
    """

    @abstractmethod
    async def install(
        self, certificate: x509.Certificate, private_key: PrivateKey
    ) -> None:
        """
        Install a certificate and private key.

        Args:
            certificate: Certificate to install
            private_key: Private key matching the certificate's public key

        Raises:
            StorageIOError: If a local destination cannot be written
            EncodeError: If the key or certificate cannot be serialized
            NetworkError: On transport failure
            AuthError: If credentials are rejected
        """
        pass
