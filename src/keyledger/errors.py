"""Keyledger Error Taxonomy.

This module defines the error hierarchy for the key store, providing
structured error handling with specific error codes and context
information.

Recoverable conditions (a missing or corrupt store file) are handled where
they occur and never reach the caller. Everything else propagates to the
CLI, which reports it and exits non-zero.
"""
from __future__ import annotations

from typing import Any


class KeyLedgerError(Exception):
    """Base exception for all keyledger errors.

    Attributes:
        code: Error code following the keyledger:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class StoreReadError(KeyLedgerError):
    """Raised when the store file exists but cannot be read or parsed.

    The key store manager catches this itself and substitutes an empty
    store, emitting a warning so the operator notices the data loss.
    """

    def __init__(self, path: str, reason: str, details: dict[str, Any] | None = None) -> None:
        message = f"Could not load keystore {path}: {reason}"
        super().__init__(
            code="keyledger:store/read_failed",
            message=message,
            details={"path": path, "reason": reason, **(details or {})},
        )
        self.path = path
        self.reason = reason


class KeyGenerationError(KeyLedgerError):
    """Raised when the Ed25519 primitive fails to produce a key pair.

    The store is never mutated when this is raised.
    """

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        message = f"Ed25519 key generation failed: {reason}"
        super().__init__(
            code="keyledger:crypto/keygen_failed", message=message, details=details or {}
        )
        self.reason = reason


class PersistenceError(KeyLedgerError):
    """Raised when a directory or file cannot be created, read or written.

    Attributes:
        path: Filesystem path involved in the failed operation
        operation: Short name of the failed operation (mkdir, write, read, ...)
    """

    def __init__(
        self,
        path: str,
        operation: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = f"Failed to {operation} {path}: {reason}"
        super().__init__(
            code="keyledger:store/persistence_failed",
            message=message,
            details={"path": path, "operation": operation, **(details or {})},
        )
        self.path = path
        self.operation = operation
        self.reason = reason


class MalformedPemError(KeyLedgerError):
    """Raised when text does not match the PEM delimiter/body structure."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        message = f"Malformed PEM: {reason}"
        super().__init__(
            code="keyledger:crypto/malformed_pem", message=message, details=details or {}
        )
        self.reason = reason


class KeyNotFoundError(KeyLedgerError):
    """Raised when a requested key version is not present in the store."""

    def __init__(self, version: int | None, details: dict[str, Any] | None = None) -> None:
        if version is None:
            message = "Keystore is empty: no current key"
        else:
            message = f"Key version not found: {version}"
        super().__init__(
            code="keyledger:store/key_not_found",
            message=message,
            details={"version": version, **(details or {})},
        )
        self.version = version
