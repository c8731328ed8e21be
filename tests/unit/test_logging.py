"""Tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler

import pytest
import structlog

from dotdotdot.config import Settings
from dotdotdot.logging import QUIET_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo global logging configuration after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet_levels = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}

    yield

    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    for name, quiet_level in quiet_levels.items():
        logging.getLogger(name).setLevel(quiet_level)
    structlog.reset_defaults()


class TestSetupLogging:
    def test_console_only_by_default(self) -> None:
        setup_logging(Settings(_env_file=None, log_level="debug"))

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

    def test_quiet_loggers_raised_to_warning(self) -> None:
        setup_logging(Settings(_env_file=None))

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging(Settings(_env_file=None, log_level="chatty"))
        assert logging.getLogger().level == logging.INFO

    def test_file_handler_added(self, tmp_path) -> None:
        settings = Settings(
            _env_file=None, log_to_file=True, log_directory=str(tmp_path / "logs")
        )

        setup_logging(settings)

        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert (tmp_path / "logs").is_dir()

    def test_unusable_log_directory_keeps_console(self, tmp_path, capsys) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        settings = Settings(_env_file=None, log_to_file=True, log_directory=str(blocker))

        setup_logging(settings)

        assert len(logging.getLogger().handlers) == 1
        assert "file logging disabled" in capsys.readouterr().err
