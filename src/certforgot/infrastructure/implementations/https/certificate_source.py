"""
Live TLS handshake certificate source.

Sends a HEAD request to an HTTPS endpoint and returns the leaf
certificate the server presented during the TLS handshake. Redirects
are followed; if the final hop is not TLS the source refuses to answer.
"""

import ssl
from urllib.parse import urlsplit

import httpx
from cryptography import x509

from certforgot.core.logging import logger
from certforgot.errors import (
    CertificateParseError,
    ConfigValidationError,
    InsecureSourceError,
    NetworkError,
)
from certforgot.infrastructure.repositories.certificate_source import (
    CertificateSource,
)

BACKEND = "https"

DEFAULT_TIMEOUT = 30.0


class HttpsCertificateSource(CertificateSource):
    """Certificate presented by a remote HTTPS server."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        verify: ssl.SSLContext | bool = True,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize HTTPS certificate source.

        Args:
            url: Target URL, must use the https scheme
            timeout: Connect/read timeout in seconds
            verify: TLS verification setting passed to httpx
            client: Preconfigured client, otherwise one is created per call

        Raises:
            ConfigValidationError: If the URL is not an https URL
        """
        parts = urlsplit(url)
        if parts.scheme.lower() != "https" or not parts.hostname:
            raise ConfigValidationError(
                f"'{url}' is not an https URL",
                operation="init",
                backend=BACKEND,
                resource=url,
            )

        self.url = url
        self.timeout = timeout
        self.verify = verify
        self._client = client

        logger.info(f"Initialized HttpsCertificateSource for {url}")

    async def get(self) -> x509.Certificate:
        """Connect to the server and return its leaf certificate."""
        if self._client is not None:
            return await self._fetch(self._client)

        async with httpx.AsyncClient(
            verify=self.verify, timeout=self.timeout, follow_redirects=True
        ) as client:
            return await self._fetch(client)

    async def _fetch(self, client: httpx.AsyncClient) -> x509.Certificate:
        try:
            async with client.stream("HEAD", self.url) as response:
                final_url = str(response.url)
                peer_der = _peer_certificate(response)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error(f"Failed to reach {self.url}: {e!r}")
            raise NetworkError(
                f"cannot reach server: {e!r}",
                operation="get",
                backend=BACKEND,
                resource=self.url,
            ) from e

        if peer_der is None:
            logger.error(f"No TLS layer negotiated with {final_url}")
            raise InsecureSourceError(
                f"no TLS connection was negotiated with {final_url}",
                operation="get",
                backend=BACKEND,
                resource=self.url,
            )

        try:
            certificate = x509.load_der_x509_certificate(peer_der)
        except ValueError as e:
            raise CertificateParseError(
                f"server presented an invalid certificate: {e}",
                operation="get",
                backend=BACKEND,
                resource=self.url,
            ) from e

        logger.info(
            f"Retrieved certificate {certificate.subject.rfc4514_string()} "
            f"from {final_url}"
        )
        return certificate


def _peer_certificate(response: httpx.Response) -> bytes | None:
    """DER leaf certificate of the connection that served the response."""
    network_stream = response.extensions.get("network_stream")
    if network_stream is None:
        return None
    ssl_object = network_stream.get_extra_info("ssl_object")
    if ssl_object is None:
        return None
    return ssl_object.getpeercert(binary_form=True)
