"""
Centralized configuration management for the exchange rules viewer.

This module provides the ConfigManager class that serves as the single source of truth
for parser limits, view defaults, document location and logging level, including
environment variable handling.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..interfaces import ConfigurationManagerInterface
from ..models import HierarchyMode
from ..exceptions import ConfigurationError
from .viewer_defaults import ViewerDefaults


_VALID_LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')


def _env_flag(name: str, default: bool) -> bool:
    return os.environ.get(name, 'true' if default else 'false').lower() == 'true'


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer, got {raw!r}")


@dataclass
class ParserSettings:
    """Parser limits with environment variable support."""
    huge_tree: bool = ViewerDefaults.HUGE_TREE
    max_document_mb: int = ViewerDefaults.MAX_DOCUMENT_MB

    @classmethod
    def from_environment(cls) -> 'ParserSettings':
        """Create parser settings from environment variables."""
        return cls(
            huge_tree=_env_flag('EXCHANGE_RULES_HUGE_TREE', cls.huge_tree),
            max_document_mb=_env_int('EXCHANGE_RULES_MAX_DOCUMENT_MB', cls.max_document_mb)
        )

    @property
    def max_document_chars(self) -> int:
        """Upper bound on input length in characters (0 = unlimited)."""
        return self.max_document_mb * 1024 * 1024


@dataclass
class ViewSettings:
    """View and session defaults with environment variable support."""
    default_mode: str = ViewerDefaults.DEFAULT_MODE
    document_path: str = ViewerDefaults.DOCUMENT_PATH
    log_level: str = ViewerDefaults.LOG_LEVEL

    @classmethod
    def from_environment(cls) -> 'ViewSettings':
        """Create view settings from environment variables."""
        return cls(
            default_mode=os.environ.get('EXCHANGE_RULES_DEFAULT_MODE', cls.default_mode),
            document_path=os.environ.get('EXCHANGE_RULES_DOCUMENT_PATH', cls.document_path),
            log_level=os.environ.get('EXCHANGE_RULES_LOG_LEVEL', cls.log_level).upper()
        )


class ConfigManager(ConfigurationManagerInterface):
    """
    Centralized configuration manager serving as single source of truth.

    This class consolidates:
    - Parser limits (huge tree support, maximum document size)
    - View defaults (hierarchy mode, default document path)
    - Logging level
    - Environment variable handling
    """

    def __init__(self, base_path: Optional[Union[str, Path]] = None):
        """
        Initialize the centralized configuration manager.

        Args:
            base_path: Base directory for relative document paths. If None, uses current directory.
        """
        self.logger = logging.getLogger(__name__)
        self.base_path = Path(base_path) if base_path else Path.cwd()

        self.parser_settings = ParserSettings.from_environment()
        self.view_settings = ViewSettings.from_environment()

        self.logger.info(f"ConfigManager initialized with base path: {self.base_path}")
        self.logger.debug(f"Default hierarchy mode: {self.view_settings.default_mode}")

    def get_default_mode(self) -> HierarchyMode:
        """
        Get the configured default hierarchy mode.

        Raises:
            ConfigurationError: If the configured value names no mode
        """
        try:
            return HierarchyMode.from_value(self.view_settings.default_mode)
        except ValueError as e:
            raise ConfigurationError(str(e))

    def resolve_document_path(self, document_path: Optional[Union[str, Path]] = None) -> Path:
        """
        Resolve a document path against the base path.

        Args:
            document_path: Explicit path; the configured default is used when None

        Returns:
            Absolute or base-relative path to the document
        """
        path = Path(document_path or self.view_settings.document_path)
        if path.is_absolute():
            return path
        return self.base_path / path

    def get_log_level(self) -> int:
        """Get the configured logging level as a logging module constant."""
        return getattr(logging, self.view_settings.log_level, logging.WARNING)

    def validate_configuration(self) -> bool:
        """
        Validate all configuration settings.

        Returns:
            True if all configurations are valid

        Raises:
            ConfigurationError: If any configuration is invalid
        """
        errors = []

        try:
            HierarchyMode.from_value(self.view_settings.default_mode)
        except ValueError as e:
            errors.append(str(e))

        if self.view_settings.log_level not in _VALID_LOG_LEVELS:
            errors.append(f"Invalid log level: {self.view_settings.log_level}")

        if self.parser_settings.max_document_mb < 0:
            errors.append("Maximum document size must not be negative")

        if not self.base_path.exists():
            errors.append(f"Base path does not exist: {self.base_path}")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

        self.logger.info("Configuration validation passed")
        return True

    def get_configuration_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all configuration settings.

        Returns:
            Dictionary containing configuration summary
        """
        return {
            'parser': {
                'huge_tree': self.parser_settings.huge_tree,
                'max_document_mb': self.parser_settings.max_document_mb
            },
            'views': {
                'default_mode': self.view_settings.default_mode,
                'document_path': self.view_settings.document_path,
                'log_level': self.view_settings.log_level
            },
            'paths': {
                'base_path': str(self.base_path)
            }
        }

    def reload_configuration(self) -> None:
        """Reload configuration from environment variables."""
        self.parser_settings = ParserSettings.from_environment()
        self.view_settings = ViewSettings.from_environment()

        self.logger.info("Configuration reloaded from environment variables")


# Global configuration manager instance
_global_config_manager: Optional[ConfigManager] = None


def get_config_manager(base_path: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        base_path: Base directory for relative document paths. Only used on first call.

    Returns:
        Global ConfigManager instance
    """
    global _global_config_manager

    if _global_config_manager is None:
        _global_config_manager = ConfigManager(base_path)

    return _global_config_manager


def reset_config_manager() -> None:
    """Reset the global configuration manager instance."""
    global _global_config_manager
    _global_config_manager = None
