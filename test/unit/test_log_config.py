"""Unit tests for logging configuration and context."""

import json
import logging
import sys

import log_config


def _record(message: str) -> logging.LogRecord:
    record = logging.LogRecord("ledgers.archival", logging.INFO, __file__, 1, message, None, None)
    log_config.ContextFilter().filter(record)
    return record


def test_log_context_is_scoped_and_nested() -> None:
    """Bound values nest and disappear when their block exits."""
    assert _record("before").context == {}

    with log_config.log_context({"ledger": "access", "skipped": None}):
        with log_config.log_context({"stage": "rendering"}):
            assert _record("inner").context == {"ledger": "access", "stage": "rendering"}
        assert _record("outer").context == {"ledger": "access"}

    assert _record("after").context == {}


def test_json_formatter_includes_context() -> None:
    """JSON output carries core fields and bound context."""
    with log_config.log_context({"ledger": "presence"}):
        record = _record("Archived 3 records")

    payload = json.loads(log_config.JsonFormatter().format(record))

    assert payload["message"] == "Archived 3 records"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "ledgers.archival"
    assert payload["ledger"] == "presence"


def test_plain_formatter_appends_context() -> None:
    """Plain output ends with sorted key=value context pairs."""
    with log_config.log_context({"ledger": "access", "run": 2}):
        record = _record("Archiving")

    line = log_config.PlainFormatter().format(record)

    assert line.endswith("Archiving ledger=access run=2")


def test_configure_logging_replaces_root_handlers() -> None:
    """Repeated configuration leaves exactly one stdout handler."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        log_config.configure_logging(level="debug", json_output=True)
        log_config.configure_logging(level="warning", json_output=True)

        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, log_config.JsonFormatter)
        assert handler.stream is sys.stdout
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
