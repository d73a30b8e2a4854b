"""Abstract repository interfaces for certificate and identity operations."""

from certforgot.infrastructure.repositories.certificate_installer import (
    CertificateInstaller,
)
from certforgot.infrastructure.repositories.certificate_source import (
    CertificateSource,
)
from certforgot.infrastructure.repositories.state_repository import StateRepository

__all__ = [
    "CertificateInstaller",
    "CertificateSource",
    "StateRepository",
]
