"""
Abstract interface for certificate sources.

A source is bound at construction to one origin and returns the
certificate found there:
- local PEM/DER file
- live TLS handshake against an HTTPS endpoint
- Azure Key Vault certificate
"""

from abc import ABC, abstractmethod

from cryptography import x509


class CertificateSource(ABC):
    """Retrieves the X.509 certificate a backend is bound to."""

    @abstractmethod
    async def get(self) -> x509.Certificate:
        """
        Retrieve the certificate.

        Returns:
            Certificate, unmodified from its origin

        Raises:
            StorageIOError: If a local file cannot be read
            CertificateParseError: If the content is not a certificate
            NotFoundError: If the certificate does not exist
            NetworkError: On transport failure
            AuthError: If credentials are rejected
        """
        pass
