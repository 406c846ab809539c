"""structlog setup for keyledger.

Every event goes through one processor chain that stamps the level, logger
name and ISO timestamp, then masks private key material before rendering.
Output goes to stderr so that CLI output on stdout (key listings, public key
PEM) stays machine-readable.

Environment Variables:
    KEYLEDGER_LOG_FORMAT: "json" for one JSON object per line, "console" (default)
    KEYLEDGER_LOG_LEVEL: DEBUG, INFO (default), WARNING or ERROR
    KEYLEDGER_DEBUG: "true" or "1" turns redaction off for local debugging

Example:
    >>> configure_logging(log_format="json", log_level="INFO")
    >>> get_logger("keyledger.store.manager").info("keystore.rotated", current_version=3)
"""

import logging
import os
import sys
from typing import IO, Any, MutableMapping

import structlog
from structlog.typing import Processor

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"

ENV_LOG_FORMAT = "KEYLEDGER_LOG_FORMAT"
ENV_LOG_LEVEL = "KEYLEDGER_LOG_LEVEL"
ENV_DEBUG = "KEYLEDGER_DEBUG"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

REDACTED_PLACEHOLDER = "***REDACTED***"

# Case-insensitive substrings of field names whose values are never logged.
# "key" alone is not listed: key_version, public_key_path etc. are safe to log.
_SENSITIVE_KEY_PATTERNS = frozenset({"private", "secret", "password", "token", "passphrase"})

_logging_configured = False


def _is_sensitive_key(key: str) -> bool:
    lower = key.lower()
    return any(pattern in lower for pattern in _SENSITIVE_KEY_PATTERNS)


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``data`` with sensitive values replaced by REDACTED_PLACEHOLDER.

    Recurses into nested dicts and lists of dicts, so a dumped key store
    (``{"keys": [{"privateKey": ...}]}``) is safe to log.

    Example:
        >>> sanitize_for_logging({"version": 2, "private_key": "-----BEGIN..."})
        {'version': 2, 'private_key': '***REDACTED***'}
    """
    result: dict[str, Any] = {}
    for k, v in data.items():
        if _is_sensitive_key(k):
            result[k] = REDACTED_PLACEHOLDER
        elif isinstance(v, dict):
            result[k] = sanitize_for_logging(v)
        elif isinstance(v, list):
            result[k] = [
                sanitize_for_logging(item) if isinstance(item, dict) else item for item in v
            ]
        else:
            result[k] = v
    return result


def is_debug_mode() -> bool:
    """True if KEYLEDGER_DEBUG is set to a truthy value (true, 1, yes, on)."""
    value = os.environ.get(ENV_DEBUG, "").strip().lower()
    return value in ("true", "1", "yes", "on")


def redact_sensitive_fields(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor applying sanitize_for_logging unless debug mode is on."""
    if is_debug_mode():
        return event_dict
    event = event_dict.pop("event", None)
    sanitized = sanitize_for_logging(dict(event_dict))
    if event is not None:
        sanitized["event"] = event
    return sanitized


def _resolve_level(log_level: str | None) -> int:
    if log_level is None:
        # Unknown environment values fall back to the default level.
        name = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).strip().upper()
        return logging.getLevelName(name if name in LOG_LEVELS else DEFAULT_LOG_LEVEL)
    name = log_level.strip().upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {name!r}; expected one of {', '.join(LOG_LEVELS)}")
    return logging.getLevelName(name)


def _build_renderer(log_format: str | None) -> Processor:
    name = (log_format or os.environ.get(ENV_LOG_FORMAT) or DEFAULT_LOG_FORMAT).lower()
    if name == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> None:
    """Route keyledger's structlog events through a single stderr handler.

    Args:
        log_format: "json" or "console". Defaults to KEYLEDGER_LOG_FORMAT, then "console".
        log_level: Minimum level name. Defaults to KEYLEDGER_LOG_LEVEL, then "INFO";
            an unknown environment value falls back to "INFO".
        stream: Destination of rendered lines. Defaults to ``sys.stderr``.
        force: Reconfigure even if logging was already set up.

    Raises:
        ValueError: An explicit ``log_level`` is not one of LOG_LEVELS.
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level = _resolve_level(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            redact_sensitive_fields,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _build_renderer(log_format),
        ],
    )
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    # The root logger belongs to the embedding application.
    package_logger = logging.getLogger("keyledger")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for ``name``; configures defaults on first use."""
    if not _logging_configured:
        configure_logging()
    return structlog.stdlib.get_logger(name)
