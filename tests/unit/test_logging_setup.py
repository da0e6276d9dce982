"""Unit tests for logging configuration."""
from __future__ import annotations

import logging

import pytest

from money.logging_setup import configure_logging


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_levels(self):
        root = logging.getLogger()
        aiohttp_logger = logging.getLogger("aiohttp")
        saved = root.level, aiohttp_logger.level
        yield
        root.setLevel(saved[0])
        aiohttp_logger.setLevel(saved[1])

    def test_sets_level(self) -> None:
        configure_logging("debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_falls_back(self) -> None:
        configure_logging("LOUD")
        assert logging.getLogger().level == logging.INFO

    def test_silences_aiohttp(self) -> None:
        configure_logging("DEBUG")
        assert logging.getLogger("aiohttp").level == logging.WARNING
