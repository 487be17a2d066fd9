"""Tests for the shared logging setup."""

import logging

import pytest

from fundscope.core.config import settings
from fundscope.core.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging("INFO")


class TestSetupLogging:
    def test_root_level_from_argument(self):
        setup_logging("debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_library_loggers_quieted(self, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", False)
        monkeypatch.setattr(settings, "DB_ECHO", False)
        setup_logging("INFO")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("celery.beat").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_db_echo_enables_sql_logging(self, monkeypatch):
        monkeypatch.setattr(settings, "DB_ECHO", True)
        setup_logging("INFO")
        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO

    def test_debug_opens_library_loggers(self, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)
        setup_logging("INFO")
        assert logging.getLogger("httpcore").level == logging.DEBUG
