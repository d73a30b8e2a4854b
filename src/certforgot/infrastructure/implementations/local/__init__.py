"""Local file-based infrastructure implementations."""

from certforgot.infrastructure.implementations.local.certificate_installer import (
    LocalCertificateInstaller,
)
from certforgot.infrastructure.implementations.local.certificate_source import (
    LocalCertificateSource,
)
from certforgot.infrastructure.implementations.local.state_repository import (
    LocalStateRepository,
)

__all__ = [
    "LocalCertificateInstaller",
    "LocalCertificateSource",
    "LocalStateRepository",
]
