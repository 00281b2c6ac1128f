"""
Home directory helpers for PortLens.

Working directories are shown relative to the home directory ("~/app") and
expanded again before any project file is read.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def home_directory() -> str:
    """Get the current user's home directory."""
    return str(Path.home())


def compact_home(path: str, home: Optional[str] = None) -> str:
    """Replace a leading home directory with "~" for display."""
    home = (home or home_directory()).rstrip(os.sep)
    if not home:
        return path
    if path == home:
        return "~"
    if path.startswith(home + os.sep):
        return "~" + path[len(home):]
    return path


def expand_home(path: str, home: Optional[str] = None) -> str:
    """Undo compact_home so the path can be used for file access."""
    if path == "~" or path.startswith("~" + os.sep):
        return (home or home_directory()).rstrip(os.sep) + path[1:]
    return path


__all__ = ["compact_home", "expand_home", "home_directory"]
