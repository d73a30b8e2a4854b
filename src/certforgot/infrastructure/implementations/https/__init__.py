"""Live TLS handshake implementations."""

from certforgot.infrastructure.implementations.https.certificate_source import (
    HttpsCertificateSource,
)

__all__ = ["HttpsCertificateSource"]
