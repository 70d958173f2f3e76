"""
Cross-platform utilities for Runtime Mirror.

Centralises OS detection, version-control root discovery and the
location of the optional log file so the rest of the package never
has to look at ``sys.platform`` directly.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# ---- platform flags ----------------------------------------------------

IS_WINDOWS: bool = sys.platform == "win32"
IS_MACOS: bool = sys.platform == "darwin"

# Directories (or files, for git worktrees) marking a repository root
VCS_MARKERS: tuple[str, ...] = (".git", ".hg", ".svn")

# ---- repository root ---------------------------------------------------


def find_vcs_root(start: str | Path) -> Path | None:
    """
    Return the nearest ancestor of *start* holding a VCS marker.

    *start* itself is checked first. Returns ``None`` when no ancestor
    up to the filesystem root is under version control.
    """
    current = Path(start).resolve()
    for candidate in (current, *current.parents):
        for marker in VCS_MARKERS:
            if (candidate / marker).exists():
                logger.debug("Found %s in %s", marker, candidate)
                return candidate
    return None


# ---- directories -------------------------------------------------------


def get_config_dir() -> Path:
    """
    Return the application data directory, created if needed.

    - Windows : ``%APPDATA%\\RuntimeMirror``
    - macOS   : ``~/Library/Application Support/RuntimeMirror``
    - Linux   : ``$XDG_CONFIG_HOME/RuntimeMirror`` (default ``~/.config``)
    """
    if IS_WINDOWS:
        base = os.environ.get("APPDATA", str(Path.home()))
    elif IS_MACOS:
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))

    config_dir = Path(base) / "RuntimeMirror"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_log_path() -> Path:
    """Return the default path of the log file (inside the config directory)."""
    return get_config_dir() / "runtime_mirror.log"
