"""
Managers for configuration
"""

from .config_manager import ConfigManager, load_settings

__all__ = ['ConfigManager', 'load_settings']
