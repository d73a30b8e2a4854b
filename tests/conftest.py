"""Global pytest configuration and fixtures for all tests."""

import datetime
import ipaddress
import shutil
import tempfile
from pathlib import Path

import josepy as jose
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from certforgot.models.identity import Identity, Mailbox


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def build_certificate(
    subject_key,
    common_name: str,
    issuer_key=None,
    issuer_name: x509.Name | None = None,
    is_ca: bool = False,
    san: list[x509.GeneralName] | None = None,
) -> x509.Certificate:
    """Build a certificate, self-signed unless an issuer is given."""
    now = datetime.datetime.now(datetime.UTC)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name))
        .issuer_name(issuer_name or _name(common_name))
        .public_key(subject_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
    )
    if san:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
    return builder.sign(issuer_key or subject_key, hashes.SHA256())


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path)


@pytest.fixture(scope="session")
def rsa_key():
    """RSA private key shared by the test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key():
    """EC P-256 private key shared by the test session."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def certificate(rsa_key):
    """Self-signed certificate for rsa_key."""
    return build_certificate(rsa_key, "www.example.com")


@pytest.fixture(scope="session")
def certificate_authority():
    """Test CA key and certificate."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key, build_certificate(key, "certforgot test CA", is_ca=True)


@pytest.fixture(scope="session")
def server_credentials(certificate_authority):
    """Server key and CA-signed certificate valid for 127.0.0.1 and localhost."""
    ca_key, ca_certificate = certificate_authority
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    server_certificate = build_certificate(
        key,
        "localhost",
        issuer_key=ca_key,
        issuer_name=ca_certificate.subject,
        san=[
            x509.DNSName("localhost"),
            x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
        ],
    )
    return key, server_certificate


@pytest.fixture
def identity(rsa_key):
    """Identity with an RSA signing key."""
    return Identity(
        email=Mailbox(address="admin@example.com", name="Cert Admin"),
        signing_key=jose.JWKRSA(key=rsa_key),
    )


@pytest.fixture(scope="session")
def make_certificate():
    """Certificate builder for tests that need their own key pair."""
    return build_certificate
