"""Persistent, versioned Ed25519 key store."""

from keyledger.store.manager import KeyStoreManager
from keyledger.store.models import GeneratedKeyPair, KeyPair, KeyStore

__all__ = [
    "GeneratedKeyPair",
    "KeyPair",
    "KeyStore",
    "KeyStoreManager",
]
