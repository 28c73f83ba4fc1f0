# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for Dead Project Finder."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".dead_project_finder.yml"


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for a Dead Project Finder run.

    Loads configuration from .dead_project_finder.yml with validation and defaults.
    Values given on the command line are applied afterwards with override().
    """

    DEFAULTS: Dict[str, Any] = {
        "enable_file_caching": True,
        "cache_dir": ".cache",
        "project_extensions": [".csproj", ".vcxproj", ".bproj"],
        "inventory_excluded_prefixes": [".git", "packages"],
        "ignore_paths": [],
        "detect_reference_cycles": True,
        "max_workers": 0,  # 0 means one worker per top-level project
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _defaults(self) -> Dict[str, Any]:
        # Copy list values so instances never share mutable defaults
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in self.DEFAULTS.items()
        }

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self._defaults()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self._defaults()
                return

            self._config = self._defaults()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
        except OSError as e:
            logger.warning(
                f"Unable to read configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        expected_type = type(self.DEFAULTS[key])
        # bool is a subclass of int; reject True/False for integer settings
        if expected_type is int and isinstance(value, bool):
            return False
        if not isinstance(value, expected_type):
            return False

        if key == "max_workers":
            return value >= 0
        elif key == "cache_dir":
            return bool(value.strip())
        elif key in ("project_extensions", "inventory_excluded_prefixes", "ignore_paths"):
            return all(isinstance(item, str) and item for item in value)

        return True

    def override(self, **values: Any) -> None:
        """Apply command-line values on top of the loaded configuration.

        None values are skipped so unset options keep the file/default value.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        """
        for key, value in values.items():
            if value is None:
                continue
            if key not in self.DEFAULTS:
                raise ConfigurationError(f"Unknown configuration parameter '{key}'")
            if not self._validate_parameter(key, value):
                raise ConfigurationError(f"Invalid value for '{key}': {value}")
            self._config[key] = value

    @property
    def enable_file_caching(self) -> bool:
        """Whether analysis results are persisted between runs."""
        value = self._config["enable_file_caching"]
        assert isinstance(value, bool)
        return value

    @property
    def cache_dir(self) -> Path:
        """Directory holding content-addressed cache records."""
        value = self._config["cache_dir"]
        assert isinstance(value, str)
        return Path(value)

    @property
    def project_extensions(self) -> List[str]:
        """File extensions treated as project files in the inventory scan."""
        value = self._config["project_extensions"]
        assert isinstance(value, list)
        return value

    @property
    def inventory_excluded_prefixes(self) -> List[str]:
        """Relative-path prefixes never included in the inventory scan."""
        value = self._config["inventory_excluded_prefixes"]
        assert isinstance(value, list)
        return value

    @property
    def ignore_paths(self) -> List[str]:
        """Path prefixes (relative to the source root) excluded from analysis."""
        value = self._config["ignore_paths"]
        assert isinstance(value, list)
        return value

    @property
    def detect_reference_cycles(self) -> bool:
        """Whether walking fails fast on cyclic project references."""
        value = self._config["detect_reference_cycles"]
        assert isinstance(value, bool)
        return value

    @property
    def max_workers(self) -> int:
        """Upper bound on concurrent top-level walks (0 = one per project)."""
        value = self._config["max_workers"]
        assert isinstance(value, int)
        return value
