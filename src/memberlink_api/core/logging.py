"""Structured JSON logging for the bridge, with credential redaction.

Every log line is one JSON object. Extra fields bound through loguru (or passed
by stdlib loggers such as uvicorn and python-socketio) are merged into it, after
PINs are dropped and phone numbers are masked.
"""

from __future__ import annotations

import inspect
import json
import logging
import re
import sys
from logging import LogRecord
from typing import Any, Dict, Iterable, Mapping

from loguru import logger
from opentelemetry import trace

# Attributes every stdlib LogRecord carries; anything else is caller context.
_STDLIB_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_MASKABLE_DIGIT = re.compile(r"\d(?=\d{4})")

REDACTED_FIELDS = frozenset({"pin", "password"})
MASKED_FIELDS = frozenset({"phone", "tel"})

# engineio logs every polling packet at INFO
NOISY_LOGGERS: tuple[str, ...] = ("uvicorn.access", "engineio.client", "socketio.client")


def mask_phone(phone: str | None) -> str:
    """Mask every digit except the trailing four (``0812345678`` -> ``******5678``)."""

    if not phone:
        return ""
    return _MASKABLE_DIGIT.sub("*", phone)


def redact_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    redacted: Dict[str, Any] = {}
    for key, value in fields.items():
        if key in REDACTED_FIELDS:
            continue
        if key in MASKED_FIELDS and isinstance(value, str):
            value = mask_phone(value)
        redacted[key] = value
    return redacted


class InterceptHandler(logging.Handler):
    """Route stdlib records (uvicorn, socketio, engineio) into loguru."""

    def emit(self, record: LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that called the stdlib logger.
        frame, depth = inspect.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        context = {key: value for key, value in vars(record).items() if key not in _STDLIB_RECORD_ATTRS}
        context["stdlib_logger"] = record.name
        logger.bind(**context).opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def build_log_payload(record: Mapping[str, Any], metadata: Mapping[str, str]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name.lower(),
        "message": record["message"],
        "logger": record["name"],
        "service": metadata.get("service_name", "unknown"),
        "environment": metadata.get("environment", "unknown"),
        "version": metadata.get("version", "unknown"),
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        payload["trace_id"] = f"{span_context.trace_id:032x}"
        payload["span_id"] = f"{span_context.span_id:016x}"

    payload.update(redact_fields(record["extra"]))

    exception = record.get("exception")
    if exception is not None:
        payload["exception"] = repr(exception.value)
    return payload


def configure_logging(
    *,
    service_name: str,
    environment: str,
    version: str,
    level: str = "INFO",
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Install the JSON sink and route stdlib logging through it."""

    metadata = {"service_name": service_name, "environment": environment, "version": version}

    def _sink(message: "logger.Message") -> None:
        # Thai names and upstream messages stay readable.
        sys.stdout.write(json.dumps(build_log_payload(message.record, metadata), default=str, ensure_ascii=False) + "\n")

    logger.remove()
    logger.add(_sink, level=level.upper(), backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["InterceptHandler", "build_log_payload", "configure_logging", "mask_phone", "redact_fields"]
