"""Tests for process logging configuration."""

from __future__ import annotations

import io
import json
import logging

from rulesync.logging_setup import ROOT_LOGGER, configure_logging


class TestConfigureLogging:
    def test_json_lines(self):
        stream = io.StringIO()
        configure_logging("info", "json", stream=stream)
        logging.getLogger("rulesync.rules.dedup").info("dropped %d rules", 2)
        entry = json.loads(stream.getvalue().strip())
        assert entry["level"] == "info"
        assert entry["logger"] == "rulesync.rules.dedup"
        assert entry["msg"] == "dropped 2 rules"

    def test_text_format(self):
        stream = io.StringIO()
        configure_logging("info", "text", stream=stream)
        logging.getLogger(ROOT_LOGGER).warning("careful")
        assert "WARNING [rulesync] careful" in stream.getvalue()

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging("warning", "json", stream=stream)
        logging.getLogger(ROOT_LOGGER).info("hidden")
        assert stream.getvalue() == ""

    def test_reconfigure_replaces_handler(self):
        configure_logging("info", "json", stream=io.StringIO())
        logger = configure_logging("info", "json", stream=io.StringIO())
        assert len(logger.handlers) == 1

    def test_exception_included(self):
        stream = io.StringIO()
        configure_logging("info", "json", stream=stream)
        try:
            raise ValueError("bad")
        except ValueError:
            logging.getLogger(ROOT_LOGGER).exception("failed")
        entry = json.loads(stream.getvalue().strip())
        assert "ValueError: bad" in entry["exc_info"]
