"""
Configuration management system for the Bitbucket client.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields, asdict
import logging

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "bitbucket-client"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "config.yaml"
DEFAULT_SESSION_FILE = CONFIG_DIR / "session.json"

VALID_STORAGE = {"keyring", "file"}
VALID_THRESHOLDS = {"low", "medium", "high"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class BitbucketConfig:
    """Bitbucket API endpoints."""
    api_base_url: str = "https://api.bitbucket.org/2.0/"
    internal_api_base_url: str = "https://api.bitbucket.org/internal/"
    oauth_token_url: str = "https://bitbucket.org/site/oauth2/access_token"
    timeout: Optional[float] = None  # None leaves the HTTP client default


@dataclass
class SessionConfig:
    """Where the persisted session is kept."""
    storage: str = "keyring"  # keyring, file
    keyring_service: str = "bitbucket-client"
    file_path: str = str(DEFAULT_SESSION_FILE)


@dataclass
class ConfirmationConfig:
    """Impact level from which mutating commands ask before proceeding."""
    threshold: str = "medium"  # low, medium, high


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "WARNING"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    structured: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    bitbucket: BitbucketConfig = field(default_factory=BitbucketConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    confirmation: ConfirmationConfig = field(default_factory=ConfirmationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


SECTION_TYPES = {f.name: f.type for f in fields(AppConfig)}


class ConfigManager:
    """
    Manages application configuration from multiple sources.

    Configuration is loaded in the following order (later sources override earlier):
    1. Default configuration
    2. Configuration file
    3. Environment variables
    """

    ENV_VAR_MAPPING = {
        # Bitbucket configuration
        "BITBUCKET_API_URL": "bitbucket.api_base_url",
        "BITBUCKET_INTERNAL_API_URL": "bitbucket.internal_api_base_url",
        "BITBUCKET_OAUTH_TOKEN_URL": "bitbucket.oauth_token_url",
        "BITBUCKET_TIMEOUT": "bitbucket.timeout",

        # Session configuration
        "BITBUCKET_SESSION_STORAGE": "session.storage",
        "BITBUCKET_KEYRING_SERVICE": "session.keyring_service",
        "BITBUCKET_SESSION_FILE": "session.file_path",

        # Confirmation configuration
        "BITBUCKET_CONFIRM_THRESHOLD": "confirmation.threshold",

        # Logging configuration
        "LOG_LEVEL": "logging.level",
        "LOG_FILE": "logging.file",
        "LOG_FORMAT": "logging.format",
        "LOG_MAX_SIZE": "logging.max_file_size",
        "LOG_BACKUP_COUNT": "logging.backup_count",
        "LOG_STRUCTURED": "logging.structured",
    }

    # Values that must stay strings even when they look numeric or boolean
    STRING_PATHS = {
        "bitbucket.api_base_url",
        "bitbucket.internal_api_base_url",
        "bitbucket.oauth_token_url",
        "session.keyring_service",
        "session.file_path",
        "logging.file",
        "logging.format",
    }

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to configuration file; the per-user default
                is used when it exists and no file is given
        """
        if config_file:
            self.config_file = Path(config_file)
        elif DEFAULT_CONFIG_FILE.exists():
            self.config_file = DEFAULT_CONFIG_FILE
        else:
            self.config_file = None
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Complete application configuration

        Raises:
            ValueError: If a configured value is invalid
        """
        if self._config is not None:
            return self._config

        config_dict = AppConfig().to_dict()

        if self.config_file and self.config_file.exists():
            file_config = self._load_config_file(self.config_file)
            file_config = self._substitute_env_vars(file_config)
            config_dict = self._merge_configs(config_dict, file_config)

        env_config = self._load_env_config()
        config_dict = self._merge_configs(config_dict, env_config)

        self._validate_config(config_dict)

        self._config = self._dict_to_config(config_dict)
        return self._config

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary
        """
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
        logger.info(f"Loaded configuration from {config_path}")
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        return config

    def _load_env_config(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        Returns:
            Configuration dictionary from environment variables
        """
        env_config: Dict[str, Any] = {}

        for env_var, config_path in self.ENV_VAR_MAPPING.items():
            value = os.getenv(env_var)
            if value is None:
                continue
            if config_path not in self.STRING_PATHS:
                value = self._convert_env_value(value)
            self._set_nested_value(env_config, config_path, value)

        return env_config

    def _convert_env_value(self, value: str) -> Any:
        """
        Convert environment variable string to appropriate type.

        Args:
            value: String value from environment variable

        Returns:
            Converted value
        """
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False

        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        return value

    def _set_nested_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a nested configuration value using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'bitbucket.timeout')
            value: Value to set
        """
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def _substitute_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Substitute ``${VAR}`` values with environment variables.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with environment variables substituted
        """
        def substitute_recursive(obj):
            if isinstance(obj, dict):
                return {k: substitute_recursive(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [substitute_recursive(item) for item in obj]
            elif isinstance(obj, str) and obj.startswith('${') and obj.endswith('}'):
                env_var = obj[2:-1]
                return os.getenv(env_var, obj)
            else:
                return obj

        return substitute_recursive(config)

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge two configuration dictionaries.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        for section_name, value in config.items():
            if section_name not in SECTION_TYPES:
                raise ValueError(
                    f"Unknown configuration section: {section_name}. Valid sections: {sorted(SECTION_TYPES)}"
                )
            if not isinstance(value, dict):
                raise ValueError(f"Configuration section '{section_name}' must be a mapping")
            known = {f.name for f in fields(SECTION_TYPES[section_name])}
            unknown = sorted(set(value) - known)
            if unknown:
                raise ValueError(
                    f"Unknown keys in configuration section '{section_name}': {', '.join(map(str, unknown))}. "
                    f"Valid keys: {sorted(known)}"
                )

        storage = config.get("session", {}).get("storage")
        if storage not in VALID_STORAGE:
            raise ValueError(f"Invalid session storage: {storage}. Valid storage: {VALID_STORAGE}")

        threshold = str(config.get("confirmation", {}).get("threshold", "")).lower()
        if threshold not in VALID_THRESHOLDS:
            raise ValueError(f"Invalid confirmation threshold: {threshold}. Valid thresholds: {VALID_THRESHOLDS}")

        log_level = str(config.get("logging", {}).get("level", "")).upper()
        if log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {log_level}. Valid levels: {VALID_LOG_LEVELS}")

        timeout = config.get("bitbucket", {}).get("timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
            raise ValueError(f"Invalid timeout: {timeout}. Timeout must be a positive number")

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """
        Convert configuration dictionary to AppConfig object.

        Args:
            config_dict: Configuration dictionary

        Returns:
            AppConfig object
        """
        return AppConfig(
            bitbucket=BitbucketConfig(**config_dict.get("bitbucket", {})),
            session=SessionConfig(**config_dict.get("session", {})),
            confirmation=ConfirmationConfig(**config_dict.get("confirmation", {})),
            logging=LoggingConfig(**config_dict.get("logging", {}))
        )

    def get_config(self) -> AppConfig:
        """
        Get the current configuration.

        Returns:
            Application configuration
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_config(self) -> AppConfig:
        """
        Reload configuration from all sources.

        Returns:
            Reloaded application configuration
        """
        self._config = None
        return self.load_config()

    def save_config(self, config_path: Optional[Path] = None) -> None:
        """
        Save current configuration to file.

        Args:
            config_path: Path to save configuration file
        """
        if config_path is None:
            config_path = self.config_file or DEFAULT_CONFIG_FILE

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.get_config().to_dict(), f, default_flow_style=False, indent=2)

        logger.info(f"Configuration saved to {config_path}")
