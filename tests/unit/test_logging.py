# tests/unit/test_logging.py
"""Unit tests for logging setup."""

import logging

import pytest
import structlog

from newsingest.utils.logging import run_context, setup_logging


@pytest.mark.unit
class TestLogging:
    def test_run_context_binds_and_clears(self):
        with run_context("20240313_120000_abcd1234"):
            assert structlog.contextvars.get_contextvars()["run_id"] == "20240313_120000_abcd1234"

        assert "run_id" not in structlog.contextvars.get_contextvars()

    def test_setup_is_repeatable(self, tmp_path):
        setup_logging("DEBUG", "console", log_dir=tmp_path)
        setup_logging("WARNING", "json", log_dir=tmp_path)

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert root.level == logging.WARNING
        assert (tmp_path / "newsingest.log").exists()
        assert logging.getLogger("httpx").level == logging.WARNING
