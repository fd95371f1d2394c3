"""
Configuration for tessellation defaults and logging.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
