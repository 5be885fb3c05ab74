"""Structured JSON logging for herald and the processes embedding it."""

import json
import logging
import sys
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import IO, Any

# Attributes every LogRecord has; anything else came from `extra={...}`.
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    | {"message", "asctime"}
)

DEFAULT_SUPPRESS = ("httpx", "httpcore", "celery", "kombu", "confluent_kafka")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with `extra` context merged in.

    ``static_fields`` are added to every entry, e.g. ``{"service": "worker"}``.
    """

    def __init__(self, static_fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.static_fields,
        }
        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    suppress: Sequence[str] = DEFAULT_SUPPRESS,
    *,
    stream: IO[str] | None = None,
    static_fields: Mapping[str, Any] | None = None,
) -> None:
    """Point the root logger at a single JSON handler.

    Loggers named in ``suppress`` are raised to WARNING to keep client
    library chatter out of the stream.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter(static_fields))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for name in suppress:
        logging.getLogger(name).setLevel(logging.WARNING)
