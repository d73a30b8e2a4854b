"""Private key and certificate serialization helpers."""

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from certforgot.errors import EncodeError

PrivateKey = PrivateKeyTypes


def private_key_bytes(
    private_key: PrivateKey, encoding: serialization.Encoding
) -> bytes:
    """
    Serialize a private key as unencrypted PKCS#8.

    Args:
        private_key: Key to serialize
        encoding: serialization.Encoding.PEM or serialization.Encoding.DER

    Returns:
        Encoded key

    Raises:
        EncodeError: If the key cannot be serialized
    """
    try:
        return private_key.private_bytes(
            encoding=encoding,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    except (ValueError, TypeError, AttributeError) as e:
        raise EncodeError(f"cannot serialize private key: {e}") from e


def certificate_bytes(
    certificate: x509.Certificate, encoding: serialization.Encoding
) -> bytes:
    """
    Serialize a certificate.

    Raises:
        EncodeError: If the certificate cannot be serialized
    """
    try:
        return certificate.public_bytes(encoding)
    except (ValueError, TypeError, AttributeError) as e:
        raise EncodeError(f"cannot serialize certificate: {e}") from e


def pem_bundle(certificate: x509.Certificate, private_key: PrivateKey) -> bytes:
    """PEM PRIVATE KEY block followed by the CERTIFICATE block."""
    return private_key_bytes(
        private_key, serialization.Encoding.PEM
    ) + certificate_bytes(certificate, serialization.Encoding.PEM)
