"""Structured Logging — JSON formatter surfaces store-specific extras."""

import json
import logging

from msgcache.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "msgcache.services.schema_manager", logging.INFO, __file__, 1,
        "Migrating cache database schema: from %d to %d", (1, 2), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_core_fields():
    out = json.loads(JSONFormatter().format(_record()))
    assert out["level"] == "INFO"
    assert out["logger"] == "msgcache.services.schema_manager"
    assert out["message"] == "Migrating cache database schema: from 1 to 2"
    assert "timestamp" in out


def test_json_formatter_surfaces_extras_when_present():
    out = json.loads(JSONFormatter().format(_record(from_version=1, to_version=2, topic=None)))
    assert out["from_version"] == 1
    assert out["to_version"] == 2
    assert "topic" not in out


def test_setup_logging_installs_handler():
    previous_level = logging.root.level
    handler = setup_logging("debug", "text")
    try:
        assert handler in logging.root.handlers
        assert logging.root.level == logging.DEBUG
        assert not isinstance(handler.formatter, JSONFormatter)
    finally:
        logging.root.removeHandler(handler)
        logging.root.setLevel(previous_level)


def test_setup_logging_twice_keeps_one_handler():
    previous_level = logging.root.level
    first = setup_logging("info", "json")
    second = setup_logging("info", "json")
    try:
        assert first not in logging.root.handlers
        assert logging.root.handlers.count(second) == 1
    finally:
        logging.root.removeHandler(second)
        logging.root.setLevel(previous_level)


def test_setup_logging_defaults_come_from_settings(monkeypatch):
    monkeypatch.setenv("MSGCACHE_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("MSGCACHE_LOG_FORMAT", "json")
    previous_level = logging.root.level
    handler = setup_logging()
    try:
        assert logging.root.level == logging.WARNING
        assert isinstance(handler.formatter, JSONFormatter)
    finally:
        logging.root.removeHandler(handler)
        logging.root.setLevel(previous_level)
