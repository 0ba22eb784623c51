"""Encoding of records into the bytes pushed onto the Redis list."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict

import orjson

from .exceptions import RecordEncodingError

_EXCEPTION_FORMATTER = logging.Formatter()


def log_record_to_event(record: logging.LogRecord) -> Dict[str, Any]:
    """Flatten a ``logging.LogRecord`` into a JSON-friendly event."""
    event: Dict[str, Any] = {
        "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
        "thread": record.threadName,
        "process": record.process,
    }
    if record.exc_info:
        event["exception"] = _EXCEPTION_FORMATTER.formatException(record.exc_info)
    return event


def encode_record(record: Any) -> bytes:
    """
    Encode ``record`` for the wire.

    Bytes pass through, text is UTF-8 encoded, mappings and log records are
    serialized as JSON.

    Raises:
        RecordEncodingError: If the record type is unsupported or not serializable
    """
    if isinstance(record, bytes):
        return record
    if isinstance(record, str):
        return record.encode("utf-8")
    if isinstance(record, logging.LogRecord):
        record = log_record_to_event(record)
    if isinstance(record, Mapping):
        try:
            return orjson.dumps(dict(record), option=orjson.OPT_NON_STR_KEYS)
        except TypeError as exc:
            raise RecordEncodingError(f"Record is not JSON serializable: {exc}") from exc
    raise RecordEncodingError(f"Unsupported record type {type(record).__name__}")


__all__ = ["encode_record", "log_record_to_event"]
