"""Versioned Ed25519 key store: generation, persistence and rotation.

The store is append-only. Rotation promotes a freshly generated key pair to
current and keeps every earlier pair so that tokens signed before the
rotation can still be verified.

Single writer only: there is no lock around the read-modify-write of the
store file, so two concurrent rotations can lose one of the appended keys.
All I/O is blocking.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from pydantic import ValidationError

from keyledger.config import KeyStoreConfig
from keyledger.crypto import pem
from keyledger.crypto.keys import (
    PRIVATE_KEY_LABEL,
    PUBLIC_KEY_LABEL,
    generate_keypair,
    load_private_key_from_pem,
    load_public_key_from_pem,
    private_key_to_der,
    public_key_to_der,
    warn_if_key_old,
)
from keyledger.errors import (
    KeyGenerationError,
    KeyNotFoundError,
    PersistenceError,
    StoreReadError,
)
from keyledger.observability import get_logger
from keyledger.store.io import atomic_write_text, ensure_directory, write_new_file
from keyledger.store.models import GeneratedKeyPair, KeyPair, KeyStore

logger = get_logger(__name__)

LIST_RULE = "─" * 70


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_validation_error(exc: ValidationError) -> str:
    # Never echo input values: they may contain private key PEM.
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors(include_url=False, include_input=False)
    )


class KeyStoreManager:
    """Owns the store file and the per-version PEM files under ``config.keys_dir``.

    Example:
        >>> manager = KeyStoreManager(KeyStoreConfig(keys_dir=Path("/tmp/keys")))
        >>> store = manager.rotate()
        >>> store.current_version
        1
    """

    def __init__(
        self,
        config: KeyStoreConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config or KeyStoreConfig()
        self._clock = clock

    def load_store(self) -> KeyStore:
        """Read the persisted store, or return an empty one.

        A missing file is normal (first use). A corrupt or unparsable file is
        logged as a warning and treated as absent. Permission errors are not
        recovered and raise PersistenceError.
        """
        try:
            store = self._read_store()
        except StoreReadError as exc:
            logger.warning(
                "keystore.load_failed",
                path=exc.path,
                reason=exc.reason,
                message="Could not load keystore, starting from an empty one",
            )
            return KeyStore.empty()
        if store is None:
            logger.debug("keystore.not_found", path=str(self.config.store_path))
            return KeyStore.empty()
        return store

    def _read_store(self) -> KeyStore | None:
        path = self.config.store_path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except PermissionError as exc:
            raise PersistenceError(str(path), "read", str(exc)) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreReadError(str(path), str(exc)) from exc
        try:
            return KeyStore.model_validate_json(raw, strict=True)
        except ValidationError as exc:
            raise StoreReadError(str(path), _format_validation_error(exc)) from exc

    def save_store(self, store: KeyStore) -> None:
        """Atomically replace the store file with ``store`` (2-space JSON)."""
        data = store.model_dump(mode="json", by_alias=True)
        text = json.dumps(data, indent=2) + "\n"
        atomic_write_text(self.config.store_path, text, self.config.private_key_mode)
        logger.debug(
            "keystore.saved",
            path=str(self.config.store_path),
            current_version=store.current_version,
        )

    def generate_key_pair(self) -> GeneratedKeyPair:
        """Generate an Ed25519 pair as PKCS#8 / SPKI PEM text."""
        try:
            private_key, public_key = generate_keypair()
            private_der = private_key_to_der(private_key)
            public_der = public_key_to_der(public_key)
        except (UnsupportedAlgorithm, ValueError, TypeError) as exc:
            raise KeyGenerationError(str(exc) or type(exc).__name__) from exc
        return GeneratedKeyPair(
            private_key=pem.encode(private_der, PRIVATE_KEY_LABEL),
            public_key=pem.encode(public_der, PUBLIC_KEY_LABEL),
        )

    def create_new_key_pair(self) -> KeyStore:
        """Append a new key pair at ``current_version + 1`` and persist it.

        Writes ``private-v{N}.pem`` and ``public-v{N}.pem`` (never overwriting
        existing files), then the updated store file.
        """
        ensure_directory(self.config.keys_dir)
        logger.debug("keystore.directory_ready", keys_dir=str(self.config.keys_dir))

        store = self.load_store()
        version = store.next_version
        logger.info("keystore.generating", version=version)

        generated = self.generate_key_pair()
        key_files = [
            (
                self.config.private_key_path(version),
                generated.private_key,
                self.config.private_key_mode,
            ),
            (
                self.config.public_key_path(version),
                generated.public_key,
                self.config.public_key_mode,
            ),
        ]
        created: list[Path] = []
        try:
            for path, text, mode in key_files:
                write_new_file(path, text, mode)
                created.append(path)

            key_pair = KeyPair(
                private_key=generated.private_key,
                public_key=generated.public_key,
                created_at=self._clock(),
                version=version,
            )
            store = store.append(key_pair)
            self.save_store(store)
        except Exception:
            # Files of an unrecorded version would block every later rotation.
            for path in created:
                path.unlink(missing_ok=True)
            logger.warning("keystore.create_rolled_back", version=version, removed=len(created))
            raise
        logger.info("keystore.key_created", version=version, keys_dir=str(self.config.keys_dir))
        return store

    def rotate(self) -> KeyStore:
        """Promote a new key to current, keeping all earlier keys.

        Rotating an empty store is the same as creating the first key.
        """
        store = self.load_store()
        if store.is_empty:
            logger.info(
                "keystore.bootstrap",
                message="No existing keys found, creating first key pair",
            )
            return self.create_new_key_pair()

        logger.info(
            "keystore.rotating",
            from_version=store.current_version,
            preserved_keys=len(store.keys),
        )
        new_store = self.create_new_key_pair()
        logger.info(
            "keystore.rotated",
            current_version=new_store.current_version,
            total_keys=len(new_store.keys),
            previous_versions=format_versions(new_store.keys[:-1]),
        )
        return new_store

    def list_keys(self) -> str:
        """Human-readable table of stored keys in creation order."""
        return render_key_table(self.load_store())

    def check_key_age(self) -> bool:
        """Warn when the current key is older than ``config.rotation_warning_days``."""
        current = self.load_store().current
        if current is None:
            return False
        return warn_if_key_old(
            current.created_at, current.version, self.config.rotation_warning_days
        )

    def get_current_key(self) -> KeyPair:
        store = self.load_store()
        if store.current is None:
            raise KeyNotFoundError(None)
        return store.current

    def get_key(self, version: int) -> KeyPair:
        return self.load_store().get(version)

    def get_signing_key(self) -> Ed25519PrivateKey:
        """Private key of the current version; the only key that should sign."""
        return load_private_key_from_pem(self.get_current_key().private_key)

    def get_verification_keys(self) -> dict[int, Ed25519PublicKey]:
        """Public keys of every stored version, for verifying older tokens."""
        return {
            key.version: load_public_key_from_pem(key.public_key)
            for key in self.load_store().keys
        }


def format_versions(keys: tuple[KeyPair, ...]) -> str:
    return ", ".join(f"v{k.version}" for k in keys) or "none"


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def render_key_table(store: KeyStore) -> str:
    if store.is_empty:
        return "No keys found in keystore"
    lines = ["Stored Keys:", LIST_RULE]
    for key in store.keys:
        marker = "  Current " if key.version == store.current_version else "  Archived"
        lines.append(
            f"{marker} │ Version {key.version} │ Created: {format_timestamp(key.created_at)}"
        )
    lines.append(LIST_RULE)
    lines.append(f"Total: {len(store.keys)} key pair(s)")
    return "\n".join(lines)
