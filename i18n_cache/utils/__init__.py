"""Utility functions."""
from .config_manager import ConfigManager, get_config_manager, get_config
from .logger import setup_logging, setup_logging_from_config, get_logger

__all__ = [
    "ConfigManager", "get_config_manager", "get_config",
    "setup_logging", "setup_logging_from_config", "get_logger",
]
