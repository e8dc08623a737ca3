"""
Core application modules.
Contains configuration, logging, metrics and request middleware.
"""
from .config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
