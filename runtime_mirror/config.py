"""Configuration for Runtime Mirror.

Holds the defaults, the error types raised before any watch is
installed, and the immutable :class:`MirrorConfig` every watch tree
reads from.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from runtime_mirror.platform_utils import find_vcs_root

logger = logging.getLogger(__name__)

# Watch strategies
WATCH_RECURSIVE = "recursive"
WATCH_PER_DIRECTORY = "per-directory"

DEFAULT_BLACKLISTED_DIR_NAMES: tuple[str, ...] = ("node_modules", "bin", "obj")
DEFAULT_BLACKLISTED_EXTENSIONS: tuple[str, ...] = (".tmp",)
DEFAULT_QUEUE_SIZE = 1000
DEFAULT_RETRY_COUNT = 0  # the caller owns retry policy; none by default
DEFAULT_RETRY_DELAY = 1.0

LIST_SEPARATOR = ";"


class MirrorError(Exception):
    """Base class for Runtime Mirror errors."""


class ConfigurationError(MirrorError):
    """Missing or invalid arguments; fatal before any watch is installed."""


class PreconditionError(MirrorError):
    """A source or target directory is missing at startup."""

    def __init__(self, role: str, path: str):
        super().__init__(f"{role.capitalize()} directory '{path}' does not exist")
        self.role = role
        self.path = path


def split_list(value: str | None) -> list[str]:
    """Split a semicolon-separated argument, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(LIST_SEPARATOR) if item.strip()]


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return tuple(seen)


def _normalise_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


@dataclass(frozen=True)
class MirrorConfig:
    """
    Immutable description of one mirroring session.

    Names and extensions are lower-cased on construction so lookups can
    be plain set membership.
    """

    source_root: str
    target_root: str
    patterns: tuple[str, ...]
    blacklisted_dir_names: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_BLACKLISTED_DIR_NAMES)
    )
    blacklisted_extensions: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_BLACKLISTED_EXTENSIONS)
    )
    watch_mode: str = WATCH_RECURSIVE
    queue_size: int = DEFAULT_QUEUE_SIZE
    retry_count: int = DEFAULT_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY

    def __post_init__(self) -> None:
        patterns = _unique(p.strip() for p in self.patterns if p.strip())
        if not patterns:
            raise ConfigurationError("At least one filter pattern is required")
        if self.watch_mode not in (WATCH_RECURSIVE, WATCH_PER_DIRECTORY):
            raise ConfigurationError(f"Unknown watch mode: {self.watch_mode!r}")

        # frozen dataclass: normalised values go through object.__setattr__
        object.__setattr__(self, "source_root", os.path.abspath(self.source_root))
        object.__setattr__(self, "target_root", os.path.abspath(self.target_root))
        object.__setattr__(self, "patterns", patterns)
        object.__setattr__(
            self,
            "blacklisted_dir_names",
            frozenset(n.strip().lower() for n in self.blacklisted_dir_names if n.strip()),
        )
        object.__setattr__(
            self,
            "blacklisted_extensions",
            frozenset(
                _normalise_extension(e) for e in self.blacklisted_extensions if e.strip()
            ),
        )
        object.__setattr__(self, "queue_size", max(1, int(self.queue_size)))
        object.__setattr__(self, "retry_count", max(0, int(self.retry_count)))
        object.__setattr__(self, "retry_delay", max(0.0, float(self.retry_delay)))


def resolve_root(root: str | None, cwd: str | None = None) -> Path:
    """Return the directory relative arguments are resolved against."""
    if root:
        return Path(root).resolve()
    start = cwd or os.getcwd()
    found = find_vcs_root(start)
    if found is None:
        raise ConfigurationError(
            f"Could not find a version control root above '{start}'; use --root"
        )
    return found


def build_config(
    source: str,
    target: str,
    filters: str,
    blacklist: str | None = None,
    *,
    root: str | Path,
    excluded_extensions: str | None = None,
    watch_mode: str = WATCH_RECURSIVE,
    queue_size: int = DEFAULT_QUEUE_SIZE,
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_delay: float = DEFAULT_RETRY_DELAY,
) -> MirrorConfig:
    """
    Build a :class:`MirrorConfig` from raw command-line values.

    *source* and *target* are joined onto *root* (absolute values win, as
    with :func:`os.path.join`). Extra blacklisted names and extensions are
    appended to the defaults.
    """
    patterns = split_list(filters)
    if not patterns:
        raise ConfigurationError(
            "Filter list is empty, expected e.g. '*.cshtml;*.pdf'"
        )

    config = MirrorConfig(
        source_root=os.path.join(str(root), source),
        target_root=os.path.join(str(root), target),
        patterns=tuple(patterns),
        blacklisted_dir_names=frozenset(
            [*DEFAULT_BLACKLISTED_DIR_NAMES, *split_list(blacklist)]
        ),
        blacklisted_extensions=frozenset(
            [*DEFAULT_BLACKLISTED_EXTENSIONS, *split_list(excluded_extensions)]
        ),
        watch_mode=watch_mode,
        queue_size=queue_size,
        retry_count=retry_count,
        retry_delay=retry_delay,
    )
    logger.debug("Resolved configuration: %s", config)
    return config
