from __future__ import annotations
from typing import Tuple, Dict
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ed25519
from .constants import SIGNATURE_ALG
from .utils import b64e, b64d, canonical_json
import binascii

"""
netcard_core.crypto
-------------------
Signing and certificate helpers for card archives:

- Ed25519: signatures over an archive's canonical manifest
- X.509: PEM certificate parsing and fingerprinting for card credentials
"""

# --------- Ed25519 (sign/verify) ----------
def ed25519_generate() -> Tuple[bytes, bytes]:
    sk = ed25519.Ed25519PrivateKey.generate()
    pk = sk.public_key()
    return sk.private_bytes_raw(), pk.public_bytes_raw()

def ed25519_sign(priv_raw: bytes, data: bytes) -> bytes:
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(priv_raw)
    return sk.sign(data)

def ed25519_verify(pub_raw: bytes, sig: bytes, data: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(pub_raw).verify(sig, data)
        return True
    except (InvalidSignature, ValueError):
        return False

# --------- Manifest helpers ----------
def sign_manifest(manifest: Dict, priv_raw: bytes, key_id: str = "") -> Dict[str, str]:
    sig = ed25519_sign(priv_raw, canonical_json(manifest))
    return {"key_id": key_id, "alg": SIGNATURE_ALG, "sig": b64e(sig)}

def verify_manifest(manifest: Dict, signature: Dict, pub_raw: bytes) -> bool:
    if signature.get("alg") != SIGNATURE_ALG or not signature.get("sig"):
        return False
    try:
        sig = b64d(signature["sig"])
    except (binascii.Error, ValueError, TypeError, AttributeError):
        return False
    return ed25519_verify(pub_raw, sig, canonical_json(manifest))

# --------- X.509 ----------
def load_certificate(pem: str) -> x509.Certificate:
    """Parse a PEM certificate; raises ValueError when it is not one."""
    return x509.load_pem_x509_certificate(pem.encode("utf-8"))

def certificate_fingerprint(pem: str) -> str:
    """Hex SHA256 over the DER encoding of a PEM certificate."""
    return load_certificate(pem).fingerprint(hashes.SHA256()).hex()
