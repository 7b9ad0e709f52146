"""
Unit tests for core.logger module.

Tests:
- Logger initialization and JSON mode
- format_kv_pairs() quoting, escaping and truncation
- StructuredFormatter output for Logger and plain logging records
- Level methods and the structured_kv extra
"""

import json
import logging

import pytest

from curator.core import Logger
from curator.core.logger import StructuredFormatter, format_kv_pairs


class TestInit:
    """Logger initialization."""

    def test_name(self):
        assert Logger("curator.feed").name == "curator.feed"

    def test_default_not_json(self):
        assert Logger("test")._json_output is False

    def test_json_mode(self):
        assert Logger("test", json_output=True)._json_output is True

    def test_default_max_value_length(self):
        assert Logger("test")._max_value_length == 1000

    def test_custom_max_value_length(self):
        assert Logger("test", max_value_length=10)._max_value_length == 10


class TestFormatKvPairs:
    """Key-value formatting and escaping."""

    def test_simple(self):
        assert format_kv_pairs({"relay": "wss://a.example"}) == " relay=wss://a.example"
        assert format_kv_pairs({"count": 48}) == " count=48"

    def test_with_spaces(self):
        assert format_kv_pairs({"reason": "rate limited"}) == ' reason="rate limited"'

    def test_with_equals(self):
        assert format_kv_pairs({"key": "a=b"}) == ' key="a=b"'

    def test_with_double_quotes(self):
        assert format_kv_pairs({"key": 'say "hi"'}) == ' key="say \\"hi\\""'

    def test_empty_value(self):
        assert format_kv_pairs({"key": ""}) == ' key=""'

    def test_empty_dict(self):
        assert format_kv_pairs({}) == ""

    def test_custom_prefix(self):
        assert format_kv_pairs({"a": 1}, prefix="") == "a=1"

    def test_truncation(self):
        result = format_kv_pairs({"key": "x" * 1500}, max_value_length=1000)
        assert "truncated 500 chars" in result
        assert len(result) < 1500

    def test_truncation_disabled(self):
        result = format_kv_pairs({"key": "x" * 1500}, max_value_length=None)
        assert "truncated" not in result


class TestStructuredFormatter:
    """Formatter output."""

    def _record(self, msg, **extra):
        record = logging.LogRecord("curator.sync", logging.INFO, __file__, 1, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_plain_record(self):
        assert StructuredFormatter().format(self._record("started")) == "info curator.sync started"

    def test_structured_fields(self):
        record = self._record("sync_started", structured_kv={"source": "wss://a", "kinds": 3})
        line = StructuredFormatter().format(record)
        assert line == "info curator.sync sync_started source=wss://a kinds=3"


class TestLevels:
    """Level methods and emitted records."""

    @pytest.mark.parametrize(
        ("method", "level"),
        [
            ("debug", logging.DEBUG),
            ("info", logging.INFO),
            ("warning", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def test_level(self, caplog, method, level):
        logger = Logger("curator.test_levels")
        with caplog.at_level(logging.DEBUG, logger="curator.test_levels"):
            getattr(logger, method)("something_happened", relay="wss://a.example")

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.levelno == level
        assert record.getMessage() == "something_happened"
        assert record.structured_kv == {"relay": "wss://a.example"}

    def test_no_kwargs_no_extra(self, caplog):
        with caplog.at_level(logging.INFO, logger="curator.test_plain"):
            Logger("curator.test_plain").info("plain")
        assert not hasattr(caplog.records[0], "structured_kv")

    def test_disabled_level_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="curator.test_disabled"):
            Logger("curator.test_disabled").info("hidden", a=1)
        assert caplog.records == []

    def test_exception_attaches_traceback(self, caplog):
        logger = Logger("curator.test_exc")
        with caplog.at_level(logging.ERROR, logger="curator.test_exc"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("failed", step="publish")
        assert caplog.records[0].exc_info is not None

    def test_long_values_truncated(self, caplog):
        logger = Logger("curator.test_trunc", max_value_length=10)
        with caplog.at_level(logging.INFO, logger="curator.test_trunc"):
            logger.info("long", content="y" * 50, short="ok")
        fields = caplog.records[0].structured_kv
        assert fields["content"].startswith("y" * 10 + "...<truncated 40")
        assert fields["short"] == "ok"


class TestJsonOutput:
    """JSON mode."""

    def test_json_message(self, caplog):
        logger = Logger("curator.test_json", json_output=True)
        with caplog.at_level(logging.INFO, logger="curator.test_json"):
            logger.info("sync_started", source="wss://a.example", kinds=[0, 1])

        data = json.loads(caplog.records[0].getMessage())
        assert data["level"] == "info"
        assert data["logger"] == "curator.test_json"
        assert data["message"] == "sync_started"
        assert data["source"] == "wss://a.example"
        assert data["kinds"] == [0, 1]
        assert "timestamp" in data
