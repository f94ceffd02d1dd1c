"""
Logging setup for the Fixfly backend.

Everything comes from ``settings.logging`` (``LoggingConfig``): the console
level, the line format and the optional ``fixfly.log`` file. Fixfly loggers
follow the configured level; library loggers never go below WARNING unless
``LOG_SQL`` asks for the SQL statements.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from fixfly.server.core.config import LoggingConfig, settings

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

FORMATS = {"simple": SIMPLE_FORMAT, "detailed": DETAILED_FORMAT, "json": JSON_FORMAT}
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "fixfly.log"

# The auto-reject sweep and the request logger fire on every tick and request.
BUSY_LOGGERS = ("fixfly.server.services.auto_reject", "fixfly.server.middleware", "uvicorn", "uvicorn.access")
LIBRARY_LOGGERS = ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "httpx", "httpcore", "asyncio")


def module_levels(config: LoggingConfig) -> Dict[str, str]:
    """Level of every logger ``setup_logging`` pins, derived from ``config``."""
    level = logging.getLevelName(config.level)
    levels = {"fixfly": config.level}
    levels.update({name: logging.getLevelName(max(level, logging.INFO)) for name in BUSY_LOGGERS})
    levels.update({name: logging.getLevelName(max(level, logging.WARNING)) for name in LIBRARY_LOGGERS})
    if config.sql_echo:
        levels["sqlalchemy.engine"] = "INFO"
    return levels


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
    config: Optional[LoggingConfig] = None,
) -> LoggingConfig:
    """
    Configure the root logger and the per-module levels.

    Args:
        log_level: Override the configured console level
        log_format: Override the configured format (simple, detailed, json)
        enable_file: Set to ``False`` to skip the log file even when configured
        config: Use this instead of ``settings.logging``

    Returns:
        The configuration that was applied
    """
    config = config or settings.logging
    overrides = {"level": log_level, "format": log_format}
    config = LoggingConfig.model_validate({**config.model_dump(), **{k: v for k, v in overrides.items() if v}})

    formatter = logging.Formatter(FORMATS.get(config.format, DETAILED_FORMAT), datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(config.level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    write_file = enable_file and config.file_enabled
    if write_file:
        log_dir = Path(config.file_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name, level in module_levels(config).items():
        logging.getLogger(name).setLevel(level)

    root_logger.info(f"Logging configured: level={config.level}, format={config.format}, file_logging={write_file}")
    return config


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
