"""
Models package.

Contains the identity record and the certificate file-type tag.
The configuration file schema lives in certforgot.models.config.
"""

from certforgot.models.file_type import FileType
from certforgot.models.identity import Identity, Mailbox

__all__ = [
    "FileType",
    "Identity",
    "Mailbox",
]
