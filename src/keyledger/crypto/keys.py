"""Ed25519 key generation, DER export, and PEM loading."""

from __future__ import annotations

from datetime import datetime, timezone

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    load_pem_private_key,
    load_pem_public_key,
)

from keyledger.config import DEFAULT_ROTATION_WARNING_DAYS
from keyledger.observability import get_logger

logger = get_logger(__name__)

PRIVATE_KEY_LABEL = "PRIVATE KEY"
PUBLIC_KEY_LABEL = "PUBLIC KEY"


def generate_keypair() -> tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    private_key = Ed25519PrivateKey.generate()
    public_key = private_key.public_key()
    return (private_key, public_key)


def private_key_to_der(key: Ed25519PrivateKey) -> bytes:
    """DER (PKCS#8, unencrypted)."""
    der: bytes = key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return der


def public_key_to_der(key: Ed25519PublicKey) -> bytes:
    """DER (SubjectPublicKeyInfo)."""
    der: bytes = key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return der


def load_private_key_from_pem(pem: str | bytes) -> Ed25519PrivateKey:
    """From PEM. Raises ValueError if invalid or not Ed25519."""
    if isinstance(pem, str):
        pem = pem.encode("ascii")
    key = load_pem_private_key(pem, password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError("Key is not an Ed25519 private key")
    return key


def load_public_key_from_pem(pem: str | bytes) -> Ed25519PublicKey:
    """From PEM. Raises ValueError if invalid or not Ed25519."""
    if isinstance(pem, str):
        pem = pem.encode("ascii")
    key = load_pem_public_key(pem)
    if not isinstance(key, Ed25519PublicKey):
        raise ValueError("Key is not an Ed25519 public key")
    return key


def warn_if_key_old(
    created_at: datetime,
    version: int,
    max_age_days: int = DEFAULT_ROTATION_WARNING_DAYS,
) -> bool:
    """Log ``key_rotation_recommended`` when the key is at least ``max_age_days`` old.

    Returns True when the warning was emitted.
    """
    now = datetime.now(timezone.utc)
    age_days = (now - created_at).days
    if age_days < max_age_days:
        return False
    logger.warning(
        "key_rotation_recommended",
        version=version,
        age_days=age_days,
        max_age_days=max_age_days,
        created_at=created_at.isoformat(),
    )
    return True
