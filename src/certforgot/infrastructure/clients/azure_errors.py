"""Translation of Azure SDK exceptions into certforgot errors."""

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)

from certforgot.core.logging import logger
from certforgot.errors import AuthError, CertforgotError, NetworkError, NotFoundError


def translate_azure_error(
    error: AzureError, *, operation: str, backend: str, resource: str
) -> CertforgotError:
    """
    Map an Azure SDK exception to the matching certforgot error.

    The error is logged; the caller raises the returned exception
    chained from the original.

    Args:
        error: Exception raised by the Azure SDK
        operation: Operation that failed
        backend: Backend identity
        resource: Resource name or URL involved

    Returns:
        NotFoundError, AuthError or NetworkError
    """
    context = {"operation": operation, "backend": backend, "resource": resource}
    status = getattr(error, "status_code", None)

    if isinstance(error, ResourceNotFoundError):
        return NotFoundError(f"resource not found: {error.message}", **context)

    logger.error(f"Azure {operation} on {resource} failed: {error.message}")

    if isinstance(error, ClientAuthenticationError) or status in (401, 403):
        return AuthError(f"access denied: {error.message}", **context)
    if isinstance(error, HttpResponseError):
        return NetworkError(
            f"request failed with status {status}: {error.message}", **context
        )
    return NetworkError(f"transport failure: {error.message}", **context)
