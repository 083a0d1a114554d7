"""Logging utilities for dnshook."""

import logging
import sys
import time
from contextvars import ContextVar, Token
from datetime import UTC, datetime

from pythonjsonlogger import json as jsonlogger

# NullHandler on root logger (library best practice)
_root = logging.getLogger("dnshook")
_root.addHandler(logging.NullHandler())

# Domain under validation for the current invocation
_current_domain: ContextVar[str | None] = ContextVar("current_domain", default=None)

# Handler installed by configure_logging(), replaced on reconfiguration
_cli_handler: logging.Handler | None = None


def set_domain(domain: str | None) -> Token[str | None]:
    """Set the challenge domain for logging context.

    Args:
        domain: The domain being validated.

    Returns:
        Token to reset the context.
    """
    return _current_domain.set(domain)


def reset_domain(token: Token[str | None]) -> None:
    """Reset domain context.

    Args:
        token: Token from set_domain() call.
    """
    _current_domain.reset(token)


def get_domain_extra() -> dict[str, str]:
    """Get domain info for log extra fields.

    Returns:
        Dict with 'domain', or empty dict when no domain is set.
    """
    domain = _current_domain.get()
    if domain is None:
        return {}
    return {"domain": domain}


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the dnshook namespace.

    Args:
        name: The module name (typically __name__).

    Returns:
        A logger instance for the module.
    """
    return logging.getLogger(name)


class Timer:
    """Context manager for timing operations.

    Usage:
        with Timer() as t:
            # do work
        print(f"Elapsed: {t.elapsed_ms}ms")
    """

    def __init__(self) -> None:
        self.elapsed_ms: float = 0
        self._start: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000


class JsonFormatter(jsonlogger.JsonFormatter):
    """Render records as single-line JSON objects, extra fields included."""

    def __init__(self) -> None:
        super().__init__("%(message)s", json_default=str)

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["ts"] = datetime.fromtimestamp(record.created, UTC).isoformat()
        log_record["level"] = record.levelname.lower()
        log_record["logger"] = record.name
        log_record["msg"] = log_record.pop("message", record.getMessage())


def configure_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Attach a stderr handler to the dnshook logger.

    Stdout is reserved for the auth output consumed by certbot, so
    everything goes to stderr.

    Args:
        level: Log level name.
        fmt: "json" for JSON lines, "text" for plain text.

    Returns:
        The installed handler.
    """
    global _cli_handler
    if _cli_handler is not None:
        _root.removeHandler(_cli_handler)

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    _root.addHandler(handler)
    _root.setLevel(level.upper())
    _cli_handler = handler
    return handler
