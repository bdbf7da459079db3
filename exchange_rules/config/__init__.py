"""Configuration management components."""

from .config_manager import ConfigManager, get_config_manager, reset_config_manager
from .viewer_defaults import ViewerDefaults

__all__ = ['ConfigManager', 'get_config_manager', 'reset_config_manager', 'ViewerDefaults']
