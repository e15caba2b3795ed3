"""
Configuration management for the Bitbucket client.
"""

from .config_manager import (
    ConfigManager, AppConfig, BitbucketConfig, SessionConfig,
    ConfirmationConfig, LoggingConfig, DEFAULT_CONFIG_FILE, DEFAULT_SESSION_FILE
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "BitbucketConfig",
    "SessionConfig",
    "ConfirmationConfig",
    "LoggingConfig",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_SESSION_FILE"
]
