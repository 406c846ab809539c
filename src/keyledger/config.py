"""Key store configuration.

All filesystem locations the key store manager touches are derived from a
single ``KeyStoreConfig`` instance passed in at construction, so tests and
embedding services can point the store at an isolated directory.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

ENV_KEYS_DIR = "KEYLEDGER_KEYS_DIR"
ENV_ROTATION_WARNING_DAYS = "KEYLEDGER_ROTATION_WARNING_DAYS"

DEFAULT_KEYS_DIR = Path(".keys")
DEFAULT_STORE_FILENAME = "keystore.json"
# Age in days after which the current key triggers a rotation warning.
DEFAULT_ROTATION_WARNING_DAYS = 365
# Owner read/write only; the store file embeds private keys too.
PRIVATE_FILE_MODE = 0o600
PUBLIC_FILE_MODE = 0o644


class KeyStoreConfig(BaseModel):
    """Where and how the key store is persisted."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    keys_dir: Path = Field(default=DEFAULT_KEYS_DIR, description="Directory holding all key files.")
    store_filename: str = Field(default=DEFAULT_STORE_FILENAME, min_length=1)
    private_key_mode: int = Field(default=PRIVATE_FILE_MODE, ge=0, le=0o777)
    public_key_mode: int = Field(default=PUBLIC_FILE_MODE, ge=0, le=0o777)
    rotation_warning_days: int = Field(default=DEFAULT_ROTATION_WARNING_DAYS, ge=1)

    @property
    def store_path(self) -> Path:
        return self.keys_dir / self.store_filename

    def private_key_path(self, version: int) -> Path:
        return self.keys_dir / f"private-v{version}.pem"

    def public_key_path(self, version: int) -> Path:
        return self.keys_dir / f"public-v{version}.pem"

    @classmethod
    def from_env(cls, keys_dir: Path | None = None) -> KeyStoreConfig:
        """Build config from KEYLEDGER_* environment variables.

        An explicit ``keys_dir`` (e.g. from a CLI option) wins over the
        environment.
        """
        values: dict[str, object] = {}
        env_dir = os.environ.get(ENV_KEYS_DIR)
        if keys_dir is not None:
            values["keys_dir"] = keys_dir
        elif env_dir:
            values["keys_dir"] = Path(env_dir)
        warning_days = os.environ.get(ENV_ROTATION_WARNING_DAYS)
        if warning_days:
            values["rotation_warning_days"] = warning_days
        return cls.model_validate(values)
