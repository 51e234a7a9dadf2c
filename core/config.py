# ipgate/core/config.py

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from schemas.config import AppConfig
from utils.exceptions import ConfigError
import logging
logger = logging.getLogger(f"ipgate.{__name__}")

CONFIG_ENV_VAR = "IPGATE_CONFIG_PATH"
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class ValidationResult:
    def __init__(self, valid: bool, errors: List[str] = None, config: Optional[AppConfig] = None):
        self.valid = valid
        self.errors = errors or []
        self.config = config

    def __bool__(self):
        return self.valid


class ConfigValidator:
    """
    Validate the raw configuration mapping against the AppConfig schema.
    """
    def validate(self, config: Dict) -> ValidationResult:
        if not isinstance(config, dict):
            return ValidationResult(False, [f"Configuration root must be a mapping, got {type(config).__name__}"])
        try:
            return ValidationResult(True, config=AppConfig.model_validate(config))
        except PydanticValidationError as e:
            errors = []
            for error in e.errors():
                field_name = ".".join(str(item) for item in error["loc"])
                errors.append(f"{field_name}: {error['msg']}")
            return ValidationResult(False, errors)


class ConfigLoader:
    """
    Configuration loading interface.
    """
    def load(self) -> Dict:
        raise NotImplementedError


class FileConfigLoader(ConfigLoader):
    """
    Load configuration from a YAML or JSON file.
    The format is taken from the file extension unless given explicitly.
    """
    def __init__(self, file_path: str, file_format: Optional[str] = None):
        self._file_path = str(file_path)
        if file_format is None:
            file_format = "json" if self._file_path.lower().endswith(".json") else "yaml"
        self._format = file_format.lower()
        if not os.path.exists(self._file_path):
            raise ConfigError(f"Configuration file not found: {self._file_path}")

    def load(self) -> Dict:
        """Load configuration from a file"""
        try:
            with open(self._file_path, 'r', encoding='utf-8') as f:
                if self._format in ("yaml", "yml"):
                    return yaml.safe_load(f) or {}
                elif self._format == "json":
                    return json.load(f)
                else:
                    raise ConfigError(f"Unsupported configuration file format: {self._format}")
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load configuration file '{self._file_path}': {e}")
            raise ConfigError(f"Failed to load configuration file '{self._file_path}': {e}") from e


class ConfigManager:
    """
    Central holder of the loaded configuration.
    Offers the validated AppConfig and dotted-path access to its values.
    """
    _instance = None

    def __new__(cls, *args, **kwargs):
        if not cls._instance:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    def __init__(self, loader: ConfigLoader = None, validator: ConfigValidator = None):
        # Prevent duplicate initialization
        if hasattr(self, '_initialized') and self._initialized:
            return

        self._app_config: Optional[AppConfig] = None
        self._loader = loader
        self._validator = validator or ConfigValidator()
        self._initialized = False

        if self._loader:
            self.load_config()
            self._initialized = True

    @classmethod
    def reset(cls):
        """Drop the singleton so the next get_config_manager() reloads from disk."""
        cls._instance = None

    def load_config(self) -> AppConfig:
        """Load and validate configuration. Raises ConfigError on failure."""
        if not self._loader:
            raise ConfigError("No configuration loader provided.")
        new_config = self._loader.load()
        validation_result = self._validator.validate(new_config)
        if not validation_result:
            logger.error(f"Configuration validation failed: {validation_result.errors}")
            raise ConfigError("Configuration validation failed", details={"errors": validation_result.errors})
        self._app_config = validation_result.config
        logger.info("Configuration loaded and validated successfully.")
        return self._app_config

    @property
    def app_config(self) -> AppConfig:
        if self._app_config is None:
            raise ConfigError("Configuration has not been loaded.")
        return self._app_config

    def get_config(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration item by path, e.g. "whitelist.timeout".
        Values come from the validated config, so schema defaults apply.
        """
        if self._app_config is None:
            logger.warning("Configuration data is empty. Possibly not loaded or loading failed.")
            return default

        value: Any = self._app_config.model_dump()
        for key in path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value


def find_config_file() -> Optional[Path]:
    """
    Locate the configuration file:
    1. the file named by IPGATE_CONFIG_PATH
    2. config.yaml / config.json in the working directory
    3. config/config.yaml in the project directory
    """
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path and os.path.isfile(env_path):
        return Path(env_path)
    if env_path:
        logger.warning(f"{CONFIG_ENV_VAR} points to '{env_path}', which is not a file.")

    cwd = Path.cwd()
    for name in ("config.yaml", "config.yml", "config.json"):
        candidate = cwd / name
        if candidate.is_file():
            return candidate

    candidate = PROJECT_ROOT / "config" / "config.yaml"
    if candidate.is_file():
        return candidate
    return None


def get_config_manager(config_file_path: str = None) -> ConfigManager:
    """
    Get the singleton instance of ConfigManager.
    On first call the configuration file is located and loaded.
    """
    if ConfigManager._instance is None or not ConfigManager._instance._initialized:
        if config_file_path is None:
            found = find_config_file()
            if found is None:
                raise ConfigError(
                    f"Configuration file not found. Set {CONFIG_ENV_VAR} or place config.yaml in the working directory."
                )
            config_file_path = str(found)
        logger.info(f"Configuration file: {config_file_path}")
        loader = FileConfigLoader(file_path=config_file_path)
        ConfigManager(loader=loader) # Initialize singleton

    return ConfigManager._instance
