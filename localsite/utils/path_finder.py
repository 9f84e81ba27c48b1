"""Utilities for rendering and resolving paths."""

import os
from pathlib import Path


class PathFinder:
    """Utility class for path handling shared by commands and the core."""

    @staticmethod
    def shorten_home(path) -> str:
        """Render a path with the user's home directory replaced by ``~``."""
        if not path:
            return ""
        path = str(path)
        home = str(Path.home())
        if path == home:
            return "~"
        if path.startswith(home + os.sep):
            return "~" + path[len(home):]
        return path

    @staticmethod
    def resolve(path) -> Path:
        """Expand ``~`` and make a path absolute without resolving symlinks."""
        return Path(os.path.abspath(os.path.expanduser(str(path))))
