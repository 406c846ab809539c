"""Observability module for keyledger.

Structured logging via structlog, with console output for operators and JSON
output for log shipping. Sensitive fields are redacted before rendering.

Example:
    >>> from keyledger.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("keystore.rotated", current_version=2, total_keys=2)
"""

from keyledger.observability.logging import (
    configure_logging,
    get_logger,
    is_debug_mode,
    sanitize_for_logging,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "is_debug_mode",
    "sanitize_for_logging",
]
