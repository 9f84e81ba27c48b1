"""Utilities for localsite."""

from .config_manager import ConfigManager
from .global_dir import GlobalDir
from .path_finder import PathFinder

__all__ = [
    'ConfigManager',
    'GlobalDir',
    'PathFinder'
]
