"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from fixfly.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    SIMPLE_FORMAT,
    get_logger,
    module_levels,
    setup_logging,
)
from fixfly.server.core.config import LoggingConfig, settings


@pytest.fixture(autouse=True)
def _restore_levels():
    yield
    setup_logging(config=LoggingConfig(file_enabled=False))


def _console_handler():
    root_logger = logging.getLogger()
    return next(
        (
            h
            for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ),
        None,
    )


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("CRITICAL", logging.CRITICAL),
            ("debug", logging.DEBUG),  # Test lowercase
            ("info", logging.INFO),
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        console_handler = _console_handler()
        assert console_handler is not None
        assert console_handler.level == expected_level

    def test_unknown_level_is_rejected(self):
        with pytest.raises(ValidationError):
            setup_logging(log_level="LOUD", enable_file=False)

    def test_root_logger_captures_everything(self):
        setup_logging(log_level="ERROR", enable_file=False)

        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    """Test setup_logging with different log formats."""

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_setup_logging_with_different_formats(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        console_handler = _console_handler()
        assert console_handler is not None
        assert console_handler.formatter._fmt == expected_format

    def test_setup_logging_format_with_timestamp(self):
        setup_logging(log_format="detailed", enable_file=False)

        assert _console_handler().formatter.datefmt == "%Y-%m-%d %H:%M:%S"


class TestSetupLoggingFileHandling:
    """Test setup_logging file logging functionality."""

    def test_setup_logging_with_file_enabled(self, tmp_path):
        log_dir = tmp_path / "logs"

        setup_logging(config=LoggingConfig(file_enabled=True, file_dir=str(log_dir)))

        root_logger = logging.getLogger()
        file_handler = next((h for h in root_logger.handlers if isinstance(h, logging.FileHandler)), None)
        assert file_handler is not None
        assert file_handler.level == logging.DEBUG
        assert Path(file_handler.baseFilename) == log_dir / "fixfly.log"
        file_handler.close()
        root_logger.removeHandler(file_handler)

    def test_setup_logging_with_file_disabled(self):
        setup_logging(enable_file=False)

        root_logger = logging.getLogger()
        assert not any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)

    def test_settings_switch_disables_file_logging(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "enable_file_logging", False)
        monkeypatch.setattr(settings, "log_file_dir", str(tmp_path / "logs"))

        applied = setup_logging(enable_file=True)

        assert applied.file_enabled is False
        assert not (tmp_path / "logs").exists()
        root_logger = logging.getLogger()
        assert not any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)


class TestSetupLoggingHandlerManagement:
    def test_setup_logging_removes_existing_handlers(self):
        root_logger = logging.getLogger()
        root_logger.addHandler(logging.NullHandler())

        setup_logging(enable_file=False)

        assert not any(isinstance(h, logging.NullHandler) for h in root_logger.handlers)
        assert len(root_logger.handlers) == 1

    def test_setup_logging_called_multiple_times(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1


class TestModuleLevels:
    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("fixfly", logging.INFO),
            ("fixfly.server.services.auto_reject", logging.INFO),
            ("sqlalchemy.engine", logging.WARNING),
            ("httpx", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        setup_logging(log_level="INFO", enable_file=False)

        assert logging.getLogger(module_name).level == expected_level

    def test_debug_keeps_busy_loggers_at_info(self):
        levels = module_levels(LoggingConfig(level="DEBUG"))

        assert levels["fixfly"] == "DEBUG"
        assert levels["fixfly.server.services.auto_reject"] == "INFO"
        assert levels["uvicorn.access"] == "INFO"
        assert levels["httpx"] == "WARNING"

    def test_strict_level_applies_to_libraries(self):
        levels = module_levels(LoggingConfig(level="error"))

        assert levels["fixfly"] == "ERROR"
        assert levels["fixfly.server.middleware"] == "ERROR"
        assert levels["sqlalchemy"] == "ERROR"

    def test_sql_echo(self):
        assert module_levels(LoggingConfig(sql_echo=True))["sqlalchemy.engine"] == "INFO"
        assert module_levels(LoggingConfig())["sqlalchemy.engine"] == "WARNING"

    def test_settings_drive_levels(self, monkeypatch):
        monkeypatch.setattr(settings, "log_level", "WARNING")
        monkeypatch.setattr(settings, "log_sql", True)

        setup_logging(enable_file=False)

        assert logging.getLogger("fixfly").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO


class TestGetLogger:
    def test_get_logger_returns_logger_instance(self):
        assert isinstance(get_logger("fixfly.test"), logging.Logger)

    def test_get_logger_same_name_returns_same_instance(self):
        assert get_logger("fixfly.server.services.wallet") is get_logger("fixfly.server.services.wallet")

    def test_get_logger_inherits_module_level(self):
        setup_logging(log_level="DEBUG", enable_file=False)

        logger = get_logger("fixfly.server.services.wallet")
        assert logger.getEffectiveLevel() == logging.DEBUG

    def test_logger_can_be_used_for_logging(self, caplog):
        logger = get_logger("fixfly.server.services.bookings")

        with caplog.at_level(logging.INFO, logger="fixfly.server.services.bookings"):
            logger.info("Created booking FIX0000AB12")

        assert "Created booking FIX0000AB12" in caplog.text
