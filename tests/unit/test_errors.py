"""Tests for the error taxonomy."""

import pytest

from certforgot.errors import (
    CertforgotError,
    CertificateParseError,
    ConfigValidationError,
    IdentityDecodeError,
    InsecureSourceError,
    NetworkError,
    ParseError,
)


def test_message_without_context():
    """Test that an error without context renders only its message."""
    assert str(CertforgotError("boom")) == "boom"


def test_message_with_context():
    """Test that operation, backend and resource are rendered."""
    error = NetworkError(
        "cannot reach server",
        operation="get",
        backend="https",
        resource="https://example.com",
    )

    assert str(error) == (
        "cannot reach server "
        "(operation=get, backend=https, resource=https://example.com)"
    )
    assert error.message == "cannot reach server"


def test_partial_context():
    """Test that unset context fields are omitted."""
    error = CertforgotError("missing", resource="cert.pem")

    assert str(error) == "missing (resource=cert.pem)"


def test_hierarchy():
    """Test the subclass relationships callers rely on."""
    assert issubclass(CertificateParseError, ParseError)
    assert issubclass(IdentityDecodeError, ParseError)
    assert issubclass(InsecureSourceError, NetworkError)
    assert issubclass(ConfigValidationError, ValueError)


def test_cause_is_chained():
    """Test that wrapped exceptions keep their cause."""
    with pytest.raises(ParseError) as exc_info:
        try:
            raise ValueError("bad bytes")
        except ValueError as e:
            raise CertificateParseError("not a certificate") from e

    assert isinstance(exc_info.value.__cause__, ValueError)
