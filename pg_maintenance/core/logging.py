import logging
import re
import sys
from typing import Any, Dict

import structlog

_FIELD_ORDER = ("timestamp", "level", "message", "context")


def _below_error(record: logging.LogRecord) -> bool:
    return record.levelno < logging.ERROR


class _SysStreamHandler(logging.StreamHandler):
    """Writes to whatever sys.stdout or sys.stderr is at emit time."""

    def __init__(self, stream_name: str) -> None:
        self._stream_name = stream_name
        super().__init__()

    @property
    def stream(self):
        return getattr(sys, self._stream_name)

    @stream.setter
    def stream(self, _value) -> None:
        pass


def _configure_stdlib_logging() -> None:
    # INFO lines go to stdout, ERROR lines to stderr
    stdout_handler = _SysStreamHandler("stdout")
    stdout_handler.addFilter(_below_error)
    stderr_handler = _SysStreamHandler("stderr")
    stderr_handler.setLevel(logging.ERROR)

    logging.basicConfig(
        format="%(message)s",
        level=logging.INFO,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )


def configure_structlog() -> None:
    _configure_stdlib_logging()

    # Redaction processor for credentials
    secret_keys = {"password", "db_password", "conninfo"}

    def _redact_event_logger(_logger, _name, event_dict: Dict[str, Any]):  # type: ignore[override]
        for k in list(event_dict.keys()):
            if str(k).lower() in secret_keys:
                event_dict[k] = "[REDACTED]"
        for k, v in list(event_dict.items()):
            if isinstance(v, str) and "password=" in v:
                event_dict[k] = re.sub(r"password=\S+", "password=[REDACTED]", v)
        return event_dict

    def _uppercase_level(_logger, _name, event_dict: Dict[str, Any]):
        event_dict["level"] = str(event_dict.get("level", "")).upper()
        return event_dict

    def _order_fields(_logger, _name, event_dict: Dict[str, Any]):
        ordered = {k: event_dict.pop(k) for k in _FIELD_ORDER if k in event_dict}
        ordered.update(event_dict)
        return ordered

    structlog.configure(
        processors=[
            _redact_event_logger,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            _uppercase_level,
            structlog.processors.EventRenamer("message"),
            _order_fields,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
