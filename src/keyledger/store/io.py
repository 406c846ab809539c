"""Blocking filesystem helpers for the key store.

Every ``OSError`` is converted to ``PersistenceError``; nothing here retries.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from keyledger.errors import PersistenceError


def ensure_directory(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PersistenceError(str(path), "create directory", str(exc)) from exc


def atomic_write_text(path: Path, text: str, mode: int) -> None:
    """Replace ``path`` with ``text`` so readers see either old or new content.

    Writes to a temporary file in the same directory, fsyncs it and renames
    it over the target. The temporary file is removed if anything fails.
    """
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise PersistenceError(str(path), "write", str(exc)) from exc


def write_new_file(path: Path, text: str, mode: int) -> None:
    """Create ``path`` with ``text``; an existing file is never overwritten.

    A partially written file is removed before the error is raised.
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    except FileExistsError as exc:
        raise PersistenceError(str(path), "create", "file already exists") from exc
    except OSError as exc:
        raise PersistenceError(str(path), "create", str(exc)) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        # os.open applies the umask; force the requested mode.
        os.chmod(path, mode)
    except OSError as exc:
        path.unlink(missing_ok=True)
        raise PersistenceError(str(path), "write", str(exc)) from exc
