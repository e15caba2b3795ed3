"""
Logging system for the Bitbucket client.
"""

from .logger_config import setup_logging, get_logger, close_logging, LoggerConfig
from .log_formatter import StructuredFormatter, ColoredFormatter, SecretRedactingFilter

__all__ = [
    "setup_logging",
    "get_logger",
    "close_logging",
    "LoggerConfig",
    "StructuredFormatter",
    "ColoredFormatter",
    "SecretRedactingFilter"
]
