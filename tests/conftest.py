"""Shared pytest fixtures for keyledger tests.

Every test gets its own key directory under ``tmp_path`` through
``KeyStoreConfig``; nothing touches the working directory's ``.keys``.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import pytest

from keyledger.config import ENV_KEYS_DIR, ENV_ROTATION_WARNING_DAYS, KeyStoreConfig
from keyledger.observability import configure_logging
from keyledger.store.manager import KeyStoreManager

# Fixed start time for deterministic createdAt values.
FIXED_START = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_clock(start: datetime = FIXED_START, step: timedelta = timedelta(minutes=1)) -> Callable[[], datetime]:
    """Clock returning start, start + step, start + 2*step, ... on successive calls."""
    ticks = (start + step * i for i in itertools.count())
    return lambda: next(ticks)


@pytest.fixture(autouse=True, scope="session")
def _configure_logging() -> None:
    configure_logging(log_format="console", log_level="DEBUG", force=True)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv(ENV_KEYS_DIR, raising=False)
    monkeypatch.delenv(ENV_ROTATION_WARNING_DAYS, raising=False)
    yield


@pytest.fixture
def keys_dir(tmp_path: Path) -> Path:
    return tmp_path / "keys"


@pytest.fixture
def config(keys_dir: Path) -> KeyStoreConfig:
    return KeyStoreConfig(keys_dir=keys_dir)


@pytest.fixture
def manager(config: KeyStoreConfig) -> KeyStoreManager:
    return KeyStoreManager(config, clock=make_clock())


@pytest.fixture
def clock_factory() -> Callable[..., Callable[[], datetime]]:
    return make_clock
