"""Ed25519 primitives and PEM encoding used by the key store.

Public exports:
    keys: Key generation, DER export and PEM loading
    pem: PEM encode/decode
"""

from keyledger.crypto import keys
from keyledger.crypto import pem

__all__ = [
    "keys",
    "pem",
]
