from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.x509.oid import NameOID

from netcard_core.card import CardArchive, ConnectionProfile, Identity


def _self_signed(common_name):
    key = ed25519.Ed25519PrivateKey.generate()
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(key, None)
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM).decode("utf-8")
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("utf-8")
    return cert_pem, key_pem


@pytest.fixture
def make_cert():
    return _self_signed


@pytest.fixture
def make_card():
    def _make(user, secret=None, network="bond-network", profile="defaultProfile", **identity):
        return CardArchive(
            Identity(user_name=user, enrollment_secret=secret, business_network=network, **identity),
            ConnectionProfile(profile, {"x-type": "embedded"}),
        )
    return _make
