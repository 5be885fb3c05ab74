"""Tests for JSON log formatting."""

import io
import json
import logging
import sys
from collections.abc import Generator

import pytest

from herald.log import JsonFormatter, setup_logging


@pytest.fixture()
def restore_root_logger() -> Generator[None, None, None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("herald.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.__dict__.update(extra)
    return record


class TestJsonFormatter:
    def test_core_fields(self) -> None:
        entry = json.loads(JsonFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "herald.test"
        assert entry["message"] == "hello world"
        assert "timestamp" in entry

    def test_extra_and_static_fields(self) -> None:
        formatter = JsonFormatter(static_fields={"service": "herald-worker"})

        entry = json.loads(formatter.format(_record(channel="email", _private="x")))

        assert entry["service"] == "herald-worker"
        assert entry["channel"] == "email"
        assert "_private" not in entry

    def test_exception(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "herald.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        entry = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    def test_single_json_handler(self) -> None:
        stream = io.StringIO()

        setup_logging("DEBUG", stream=stream, static_fields={"service": "api"})
        logging.getLogger("herald.test").debug("ready", extra={"channel": "sms"})

        entry = json.loads(stream.getvalue().splitlines()[-1])
        assert entry["message"] == "ready"
        assert entry["service"] == "api"
        assert entry["channel"] == "sms"
        assert len(logging.getLogger().handlers) == 1

    def test_suppresses_client_loggers(self) -> None:
        setup_logging(stream=io.StringIO(), suppress=("noisy.client",))
        assert logging.getLogger("noisy.client").level == logging.WARNING
