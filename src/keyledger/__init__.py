"""Keyledger: versioned Ed25519 signing key store with rotation."""

from keyledger.config import KeyStoreConfig
from keyledger.errors import (
    KeyGenerationError,
    KeyLedgerError,
    KeyNotFoundError,
    MalformedPemError,
    PersistenceError,
    StoreReadError,
)
from keyledger.store import GeneratedKeyPair, KeyPair, KeyStore, KeyStoreManager

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "GeneratedKeyPair",
    "KeyGenerationError",
    "KeyLedgerError",
    "KeyNotFoundError",
    "KeyPair",
    "KeyStore",
    "KeyStoreConfig",
    "KeyStoreManager",
    "MalformedPemError",
    "PersistenceError",
    "StoreReadError",
]
