"""Structured logging for the session extraction library.

This module provides:
- A correlation id per conversation, carried in a ContextVar across awaits
- Log field redaction driven by `core.security_config`
- `setup_logging()`: JSON lines in production, readable text elsewhere
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from core.config import get_settings
from core.security_config import is_sensitive_key


REDACTED = "[REDACTED]"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str:
    """Bound correlation id, or a fresh unbound one outside any scope."""
    return _correlation_id.get() or str(uuid.uuid4())


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[None]:
    """Bind `correlation_id` for the duration of the block, then restore."""
    token = _correlation_id.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id.reset(token)


def redact(value: Any) -> Any:
    """Copy of `value` with every sensitive mapping key masked, at any depth."""
    if isinstance(value, dict):
        return {
            key: REDACTED if is_sensitive_key(str(key)) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list | tuple):
        return [redact(item) for item in value]
    return value


class StructuredLogger:
    """Thin wrapper over a stdlib logger that attaches structured fields.

    Keyword arguments become fields of the record (`structured_data`); in
    non-production environments they are also appended to the message text
    as ``key=value`` pairs.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _emit(
        self,
        level: int,
        message: str,
        fields: dict[str, Any],
        exc_info: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        correlation_id = get_correlation_id()
        safe_fields = redact(fields)
        payload = {"correlation_id": correlation_id, "message": message, **safe_fields}

        if get_settings().ENVIRONMENT != "production":
            pairs = " ".join(f"{key}={value}" for key, value in safe_fields.items())
            message = f"[{correlation_id}] {message}"
            if pairs:
                message = f"{message} {pairs}"

        self.logger.log(
            level, message, extra={"structured_data": payload}, exc_info=exc_info
        )

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit(logging.ERROR, message, fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._emit(logging.ERROR, message, fields, exc_info=True)


def _resolve_level() -> int:
    settings = get_settings()
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL)
    return logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO


def setup_logging() -> None:
    """Install one stdout handler on the root logger (idempotent)."""
    root = logging.getLogger()
    if root.handlers:
        return

    settings = get_settings()
    level = _resolve_level()

    handler = logging.StreamHandler(sys.stdout)
    if settings.ENVIRONMENT == "production":
        from pythonjsonlogger.json import JsonFormatter

        handler.setFormatter(
            JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
        # Provider SDKs are chatty below WARNING
        for noisy in ("httpx", "google_genai"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    handler.setLevel(level)

    root.setLevel(level)
    root.addHandler(handler)
