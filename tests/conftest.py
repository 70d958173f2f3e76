"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import time
from collections.abc import Callable
from pathlib import Path

import pytest
from runtime_mirror.config import MirrorConfig


def wait_for(condition: Callable[[], bool], timeout: float = 10.0) -> bool:
    """Poll *condition* until it holds or *timeout* seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.05)
    return condition()


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Empty source tree (``<tmp>/repo/src/A``)."""
    path = tmp_path / "repo" / "src" / "A"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Empty target tree (``<tmp>/repo/src/B``)."""
    path = tmp_path / "repo" / "src" / "B"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def make_config(source_dir: Path, target_dir: Path) -> Callable[..., MirrorConfig]:
    """Factory for a MirrorConfig over the source/target fixtures."""

    def _make(patterns: tuple[str, ...] = ("*.json",), **kwargs) -> MirrorConfig:
        return MirrorConfig(
            source_root=str(source_dir),
            target_root=str(target_dir),
            patterns=patterns,
            **kwargs,
        )

    return _make


@pytest.fixture
def wait() -> Callable[..., bool]:
    """The :func:`wait_for` polling helper."""
    return wait_for
