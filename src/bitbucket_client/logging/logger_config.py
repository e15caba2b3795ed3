"""
Logger configuration and setup for the Bitbucket client.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict
from dataclasses import dataclass

from ..config import LoggingConfig
from .log_formatter import StructuredFormatter, ColoredFormatter, SecretRedactingFilter

PACKAGE_LOGGER = "bitbucket_client"

THIRD_PARTY_LOGGERS = ("urllib3", "requests", "keyring")

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}


@dataclass
class LoggerConfig:
    """Configuration for logging system."""
    level: str = "WARNING"
    file_path: Optional[str] = None
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    enable_structured: bool = False
    enable_colors: bool = True

    @classmethod
    def from_app_config(cls, config: LoggingConfig, level: Optional[str] = None) -> "LoggerConfig":
        """
        Build a logger config from the application's logging section.

        Args:
            config: Logging section of the application config
            level: Level overriding the configured one (e.g. from -v flags)
        """
        return cls(
            level=level or config.level,
            file_path=config.file,
            format_string=config.format,
            max_file_size=config.max_file_size,
            backup_count=config.backup_count,
            enable_structured=config.structured
        )


def get_log_level(level: str) -> int:
    """Convert string log level to logging constant."""
    return LEVELS.get(level.upper(), logging.WARNING)


class LoggingManager:
    """
    Configures the package logger once per process.

    Console output goes to stderr so command output on stdout stays
    machine-readable.
    """

    def __init__(self):
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.config: Optional[LoggerConfig] = None

    @property
    def configured(self) -> bool:
        return self._configured

    def setup_logging(self, config: Optional[LoggerConfig] = None) -> None:
        """
        Set up the logging system with the specified configuration.

        Args:
            config: Logging configuration (defaults when not provided)
        """
        if self._configured:
            self.close_handlers()

        config = config or LoggerConfig()
        self.config = config
        level = get_log_level(config.level)

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(level)
        package_logger.propagate = False

        redactor = SecretRedactingFilter()

        console_handler = self._create_console_handler(config)
        console_handler.addFilter(redactor)
        package_logger.addHandler(console_handler)
        self._handlers['console'] = console_handler

        if config.file_path:
            file_handler = self._create_file_handler(config)
            file_handler.addFilter(redactor)
            package_logger.addHandler(file_handler)
            self._handlers['file'] = file_handler

        for logger_name in THIRD_PARTY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

        self._configured = True
        package_logger.debug(f"Logging system initialized with level: {config.level}")

    def _create_console_handler(self, config: LoggerConfig) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)

        if config.enable_structured:
            formatter = StructuredFormatter()
        elif config.enable_colors and sys.stderr.isatty():
            formatter = ColoredFormatter(config.format_string)
        else:
            formatter = logging.Formatter(config.format_string)

        handler.setFormatter(formatter)
        return handler

    def _create_file_handler(self, config: LoggerConfig) -> logging.Handler:
        log_path = Path(config.file_path).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config.max_file_size * 1024 * 1024,
            backupCount=config.backup_count,
            encoding='utf-8'
        )

        if config.enable_structured:
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(logging.Formatter(config.format_string))
        return handler

    def close_handlers(self) -> None:
        """Detach and close all handlers installed by this manager."""
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in self._handlers.values():
            package_logger.removeHandler(handler)
            handler.close()

        self._handlers.clear()
        self._configured = False


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggerConfig] = None) -> None:
    """
    Set up the global logging system.

    Args:
        config: Logging configuration
    """
    _logging_manager.setup_logging(config)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def close_logging() -> None:
    """Close logging system and clean up resources."""
    _logging_manager.close_handlers()
