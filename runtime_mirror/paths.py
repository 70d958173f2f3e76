"""Mapping between paths in the source tree and the target tree."""

from __future__ import annotations

import os

_SEPARATORS = os.sep + (os.altsep or "")


class PathOutsideRootError(ValueError):
    """Raised when a path to be mapped does not lie under its root."""


def _is_under(root: str, path: str) -> bool:
    root = root.rstrip(_SEPARATORS)
    if not path.startswith(root):
        return False
    rest = path[len(root):]
    return not rest or rest[0] in _SEPARATORS or not root


def relative_to_root(root: str, path: str) -> str:
    """
    Return *path* with the *root* prefix and any leading separator removed.

    *path* must lie under *root*; anything else is a caller error and
    raises :class:`PathOutsideRootError`.
    """
    if not _is_under(root, path):
        raise PathOutsideRootError(f"'{path}' is not under '{root}'")
    return path[len(root.rstrip(_SEPARATORS)):].lstrip(_SEPARATORS)


def _join(root: str, relative: str) -> str:
    return root.rstrip(_SEPARATORS) + os.sep + relative


def to_target(source_root: str, target_root: str, source_path: str) -> str:
    """Return where *source_path* is mirrored under *target_root*."""
    return _join(target_root, relative_to_root(source_root, source_path))


def to_source(source_root: str, target_root: str, target_path: str) -> str:
    """Inverse of :func:`to_target`."""
    return _join(source_root, relative_to_root(target_root, target_path))
