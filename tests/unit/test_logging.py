from __future__ import annotations

import json
import logging

from redis_accessor.utils.logging import (
    ConsoleFormatter,
    _json_formatter,
    configure_logging,
    get_logger,
)

EXPECTED_COUNT = 3
EXPECTED_TTL_MS = 1000


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.count = EXPECTED_COUNT
    record.model = "person"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["count"] == EXPECTED_COUNT
    assert payload["model"] == "person"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"ttl_ms": EXPECTED_TTL_MS}

    payload = json.loads(_json_formatter(record))

    assert payload["ttl_ms"] == EXPECTED_TTL_MS


def test_console_formatter_appends_record_context() -> None:
    formatter = ConsoleFormatter(fmt="%(levelname)s | %(message)s")
    record = _record("Skipping unreadable record")
    record.model = "person"
    record.id = "7"

    assert formatter.format(record) == "INFO | Skipping unreadable record | model=person id=7"


def test_console_formatter_without_context_is_plain() -> None:
    formatter = ConsoleFormatter(fmt="%(levelname)s | %(message)s")

    assert formatter.format(_record()) == "INFO | hello"


def test_configure_logging_keeps_module_loggers_enabled() -> None:
    module_logger = get_logger("redis_accessor.accessor")

    configure_logging(level="DEBUG", json_logs=True)

    assert module_logger.disabled is False
    assert logging.getLogger().level == logging.DEBUG
