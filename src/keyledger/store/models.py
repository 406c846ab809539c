"""Pydantic models for the versioned key store.

The on-disk JSON uses camelCase field names (``currentVersion``,
``createdAt``, ...); Python code uses the snake_case attribute names.
Models are frozen: appending a key produces a new ``KeyStore``.
"""

from __future__ import annotations

from typing import NamedTuple

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from keyledger.errors import KeyNotFoundError


class GeneratedKeyPair(NamedTuple):
    """PEM text of a freshly generated Ed25519 key pair."""

    private_key: str
    public_key: str


class KeyPair(BaseModel):
    """One stored key version. ``private_key`` is never included in repr."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    private_key: str = Field(
        ...,
        alias="privateKey",
        repr=False,
        description="PKCS#8 private key, PEM encoded.",
    )
    public_key: str = Field(..., alias="publicKey", description="SPKI public key, PEM encoded.")
    created_at: AwareDatetime = Field(..., alias="createdAt")
    version: int = Field(..., ge=1)


class KeyStore(BaseModel):
    """Append-only sequence of key pairs plus the active version.

    Invariants (checked on every construction, including JSON decode):
    versions are exactly 1..n in order and ``current_version`` is n (0 when
    empty).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    current_version: int = Field(default=0, alias="currentVersion", ge=0)
    keys: tuple[KeyPair, ...] = ()

    @model_validator(mode="after")
    def _check_versions(self) -> KeyStore:
        versions = [k.version for k in self.keys]
        expected = list(range(1, len(versions) + 1))
        if versions != expected:
            raise ValueError(f"key versions must be contiguous from 1, got {versions}")
        if self.current_version != len(versions):
            raise ValueError(
                f"currentVersion {self.current_version} does not match latest version "
                f"{len(versions)}"
            )
        return self

    @classmethod
    def empty(cls) -> KeyStore:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.keys

    @property
    def next_version(self) -> int:
        return self.current_version + 1

    @property
    def current(self) -> KeyPair | None:
        """The active signing key pair, or None for an empty store."""
        if not self.keys:
            return None
        return self.keys[-1]

    def get(self, version: int) -> KeyPair:
        """Return the key pair with ``version``; raises KeyNotFoundError."""
        if 1 <= version <= len(self.keys):
            return self.keys[version - 1]
        raise KeyNotFoundError(version)

    def append(self, key_pair: KeyPair) -> KeyStore:
        """Return a new store with ``key_pair`` promoted to current."""
        return KeyStore(current_version=key_pair.version, keys=(*self.keys, key_pair))
