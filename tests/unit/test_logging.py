"""
Unit tests for advisor logging configuration.
"""

from __future__ import annotations

import io
import json
import logging

from advisor.observability import (
    HumanReadableFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def make_record(msg: str = "generated policy", level: int = logging.INFO, **extra):
    record = logging.LogRecord("advisor.network", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_basic_fields(self):
        data = json.loads(StructuredFormatter().format(make_record()))
        assert data["level"] == "info"
        assert data["logger"] == "advisor.network"
        assert data["message"] == "generated policy"
        assert "timestamp" in data
        assert "location" not in data

    def test_extra_fields(self):
        formatter = StructuredFormatter(extra_fields={"component": "advisor"})
        data = json.loads(formatter.format(make_record(url="http://broker/pod/traffic/web-0")))
        assert data["url"] == "http://broker/pod/traffic/web-0"
        assert data["component"] == "advisor"

    def test_location(self):
        data = json.loads(StructuredFormatter(include_location=True).format(make_record()))
        assert data["location"]["line"] == 10


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter."""

    def test_plain(self):
        formatter = HumanReadableFormatter(use_colors=False, include_timestamp=False)
        assert formatter.format(make_record(level=logging.WARNING)) == " WARNING generated policy"

    def test_colors(self):
        formatter = HumanReadableFormatter(use_colors=True, include_timestamp=False)
        assert "\033[32m" in formatter.format(make_record())


class TestConfigureLogging:
    """Tests for configure_logging and get_logger."""

    def test_text_output(self):
        stream = io.StringIO()
        configure_logging("DEBUG", stream=stream)

        get_logger("broker").debug("fetching traffic")

        assert "fetching traffic" in stream.getvalue()

    def test_json_output(self):
        stream = io.StringIO()
        configure_logging(logging.INFO, format="json", stream=stream)

        get_logger("advisor.seccomp").info("wrote profile", extra={"pod": "web-0"})

        data = json.loads(stream.getvalue().strip())
        assert data["message"] == "wrote profile"
        assert data["pod"] == "web-0"
        assert data["logger"] == "advisor.seccomp"

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging("WARNING", stream=stream)
        get_logger("cli").info("hidden")
        assert stream.getvalue() == ""

    def test_reconfigure_replaces_handler(self):
        configure_logging(stream=io.StringIO())
        logger = configure_logging(stream=io.StringIO())
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_get_logger_namespacing(self):
        assert get_logger("cli").name == "advisor.cli"
        assert get_logger("advisor.cli").name == "advisor.cli"
        assert get_logger("advisor").name == "advisor"
