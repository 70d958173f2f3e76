"""Directory, extension and pattern filtering for watched paths."""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable
from pathlib import PurePath
from typing import TYPE_CHECKING

from runtime_mirror.paths import relative_to_root

if TYPE_CHECKING:
    from runtime_mirror.config import MirrorConfig

# Legacy "all files" glob, matched like "*"
MATCH_ALL_FILES = "*.*"


def file_extension(path: str) -> str:
    """Return the extension of the file name of *path*, from its last dot."""
    name = os.path.basename(path)
    dot = name.rfind(".")
    if dot == -1 or dot == len(name) - 1:
        return ""
    return name[dot:]


class Filter:
    """Case-insensitive blacklist lookups for directory names and extensions."""

    def __init__(
        self,
        blacklisted_dir_names: Iterable[str],
        blacklisted_extensions: Iterable[str],
    ):
        self._dir_names = frozenset(n.lower() for n in blacklisted_dir_names)
        self._extensions = frozenset(e.lower() for e in blacklisted_extensions)

    @classmethod
    def from_config(cls, config: MirrorConfig) -> Filter:
        return cls(config.blacklisted_dir_names, config.blacklisted_extensions)

    @property
    def blacklisted_dir_names(self) -> frozenset[str]:
        return self._dir_names

    @property
    def blacklisted_extensions(self) -> frozenset[str]:
        return self._extensions

    def is_directory_blacklisted(self, name: str) -> bool:
        """Return True if the directory *name* is blacklisted (exact match)."""
        return name.lower() in self._dir_names

    def is_extension_blacklisted(self, path: str) -> bool:
        """
        Return True if the extension of *path*, dot included, is blacklisted.

        The extension runs from the last dot of the file name, so a dotfile
        such as ``.tmp`` has the extension ``.tmp``. A trailing dot means no
        extension.
        """
        ext = file_extension(path)
        return bool(ext) and ext.lower() in self._extensions

    def is_under_blacklisted_directory(self, root: str, path: str) -> bool:
        """
        Return True if *root* or any directory between it and *path* is blacklisted.

        The file name itself is not checked, only its parent directories.
        """
        if self.is_directory_blacklisted(os.path.basename(root.rstrip(os.sep))):
            return True
        parents = PurePath(relative_to_root(root, path)).parts[:-1]
        return any(self.is_directory_blacklisted(part) for part in parents)

    @staticmethod
    def matches_pattern(path: str, pattern: str) -> bool:
        """
        Case-insensitive glob match of the file name of *path*.

        ``*.*`` matches every file, including names without a dot.
        """
        if pattern == MATCH_ALL_FILES:
            pattern = "*"
        name = os.path.basename(path)
        return fnmatch.fnmatchcase(name.lower(), pattern.lower())
