"""
Error taxonomy for certificate sources, installers and state stores.

Every backend failure is raised as a subclass of CertforgotError carrying
enough context (operation, backend, resource) to diagnose it from the
message alone. The original exception is always chained as __cause__.

Kinds:
- StorageIOError: local filesystem or database unreadable/unwritable
- ParseError: malformed certificate, key, mailbox or state document
- NotFoundError: absent secret/key/certificate/blob/file/row
- NetworkError: connectivity, TLS negotiation or HTTP-layer failure
- AuthError: credential or permission failure against a cloud backend
- ConfigValidationError: malformed configuration
- ConflictError: concurrent-write race in the database upsert (retryable)
- EncodeError: a key or certificate could not be serialized
"""


class CertforgotError(Exception):
    """
    Base class for all certforgot errors.

    Attributes:
        message: Human-readable description
        operation: Operation that failed (e.g. "get", "install")
        backend: Backend identity (e.g. "azure-keyvault")
        resource: Resource name or path involved
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        backend: str | None = None,
        resource: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.backend = backend
        self.resource = resource

    def __str__(self) -> str:
        context = [
            f"{label}={value}"
            for label, value in (
                ("operation", self.operation),
                ("backend", self.backend),
                ("resource", self.resource),
            )
            if value
        ]
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class StorageIOError(CertforgotError):
    """Local filesystem or database could not be read or written."""


class ParseError(CertforgotError):
    """Content could not be decoded."""


class CertificateParseError(ParseError):
    """Bytes do not contain a valid X.509 certificate."""


class IdentityDecodeError(ParseError):
    """Mailbox, signing key or state document is malformed."""


class NotFoundError(CertforgotError):
    """The requested resource does not exist."""


class NetworkError(CertforgotError):
    """Transport-level failure talking to a remote backend."""


class InsecureSourceError(NetworkError):
    """No TLS layer was negotiated with the remote peer."""


class AuthError(CertforgotError):
    """Credentials were rejected or lack permission."""


class ConfigValidationError(CertforgotError, ValueError):
    """
    Configuration value is malformed or unsupported.

    Also a ValueError so that pydantic validators report it as a field error.
    """


class ConflictError(CertforgotError):
    """
    Concurrent write detected.

    Raised when two writers race on the singleton state row. The caller
    should retry the whole operation.
    """


class EncodeError(CertforgotError):
    """A key or certificate could not be serialized."""
