"""
Shared fixtures: throwaway MSP material generated with `cryptography`.
"""
import datetime
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from qrledger.config import Config, Timeouts

PKCS8 = serialization.PrivateFormat.PKCS8
TRADITIONAL = serialization.PrivateFormat.TraditionalOpenSSL


def make_key(kind: str = "ec"):
    if kind == "rsa":
        return rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return ec.generate_private_key(ec.SECP256R1())


def make_cert(key, common_name: str = "User1@org1.example.com") -> x509.Certificate:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(key, hashes.SHA256())
    )


def cert_pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def key_pem(key, fmt=PKCS8) -> bytes:
    return key.private_bytes(serialization.Encoding.PEM, fmt, serialization.NoEncryption())


def write_msp(base, key, cert, fmt=PKCS8):
    """Lay out keystore/ and signcerts/ the way cryptogen does."""
    keystore = base / "msp" / "keystore"
    signcerts = base / "msp" / "signcerts"
    keystore.mkdir(parents=True)
    signcerts.mkdir(parents=True)
    (keystore / "priv_sk").write_bytes(key_pem(key, fmt))
    (signcerts / "cert.pem").write_bytes(cert_pem(cert))
    return keystore, signcerts


@pytest.fixture
def ec_key():
    return make_key("ec")


@pytest.fixture
def crypto_tree(tmp_path, ec_key):
    """A minimal org1 crypto tree: one user MSP and one peer TLS CA."""
    cert = make_cert(ec_key)
    keystore, signcerts = write_msp(tmp_path / "users" / "User1@org1.example.com", ec_key, cert)
    tls_dir = tmp_path / "peers" / "peer0.org1.example.com" / "tls"
    tls_dir.mkdir(parents=True)
    (tls_dir / "ca.crt").write_bytes(cert_pem(make_cert(make_key(), "tlsca.org1.example.com")))
    return tmp_path, keystore, signcerts, cert


@pytest.fixture
def config(crypto_tree):
    base, keystore, signcerts, _ = crypto_tree
    return Config(
        crypto_path=base,
        key_directory=keystore,
        cert_directory=signcerts,
        tls_cert_path=base / "peers" / "peer0.org1.example.com" / "tls" / "ca.crt",
        peer_endpoint="127.0.0.1:1",
        timeouts=Timeouts(connect=0.2),
    )
