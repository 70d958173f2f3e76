"""Unit tests for MirrorConfig and build_config."""

import os
from pathlib import Path

import pytest
from runtime_mirror.config import (
    DEFAULT_BLACKLISTED_DIR_NAMES,
    WATCH_PER_DIRECTORY,
    WATCH_RECURSIVE,
    ConfigurationError,
    MirrorConfig,
    PreconditionError,
    build_config,
    resolve_root,
    split_list,
)


class TestSplitList:
    """Tests for split_list."""

    def test_semicolon_separated(self) -> None:
        assert split_list("*.json;*.pdf") == ["*.json", "*.pdf"]

    def test_blanks_dropped(self) -> None:
        assert split_list(" *.json ; ;*.pdf;") == ["*.json", "*.pdf"]

    @pytest.mark.parametrize("value", [None, "", ";;"])
    def test_empty(self, value) -> None:
        assert split_list(value) == []


class TestMirrorConfig:
    """Tests for MirrorConfig normalisation."""

    def test_defaults(self, tmp_path: Path) -> None:
        config = MirrorConfig(str(tmp_path), str(tmp_path), ("*.json",))

        assert config.blacklisted_dir_names == frozenset({"node_modules", "bin", "obj"})
        assert config.blacklisted_extensions == frozenset({".tmp"})
        assert config.watch_mode == WATCH_RECURSIVE
        assert config.retry_count == 0

    def test_names_and_extensions_normalised(self, tmp_path: Path) -> None:
        config = MirrorConfig(
            str(tmp_path),
            str(tmp_path),
            ("*.json",),
            blacklisted_dir_names=frozenset({"Node_Modules", " "}),
            blacklisted_extensions=frozenset({"TMP", ".Bak"}),
        )

        assert config.blacklisted_dir_names == frozenset({"node_modules"})
        assert config.blacklisted_extensions == frozenset({".tmp", ".bak"})

    def test_patterns_deduplicated_in_order(self, tmp_path: Path) -> None:
        config = MirrorConfig(str(tmp_path), str(tmp_path), ("*.pdf", "*.json", "*.pdf", " "))
        assert config.patterns == ("*.pdf", "*.json")

    def test_roots_made_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = MirrorConfig("A", "B" + os.sep, ("*.json",))

        assert config.source_root == os.path.join(os.getcwd(), "A")
        assert config.target_root == os.path.join(os.getcwd(), "B")

    def test_empty_patterns_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            MirrorConfig(str(tmp_path), str(tmp_path), ())

    def test_unknown_watch_mode_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            MirrorConfig(str(tmp_path), str(tmp_path), ("*.json",), watch_mode="polling")

    def test_numbers_clamped(self, tmp_path: Path) -> None:
        config = MirrorConfig(
            str(tmp_path), str(tmp_path), ("*.json",), queue_size=0, retry_count=-3, retry_delay=-1
        )
        assert config.queue_size == 1
        assert config.retry_count == 0
        assert config.retry_delay == 0.0

    def test_immutable(self, tmp_path: Path) -> None:
        config = MirrorConfig(str(tmp_path), str(tmp_path), ("*.json",))
        with pytest.raises(AttributeError):
            config.source_root = "/elsewhere"  # type: ignore[misc]


class TestBuildConfig:
    """Tests for build_config."""

    def test_relative_to_root(self, tmp_path: Path) -> None:
        config = build_config("src/A", "src/B", "*.json;*.pdf", root=tmp_path)

        assert config.source_root == os.path.abspath(os.path.join(str(tmp_path), "src", "A"))
        assert config.target_root == os.path.abspath(os.path.join(str(tmp_path), "src", "B"))
        assert config.patterns == ("*.json", "*.pdf")

    def test_extra_blacklist_appended_to_defaults(self, tmp_path: Path) -> None:
        config = build_config("A", "B", "*.json", "dist;.git", root=tmp_path)

        for name in DEFAULT_BLACKLISTED_DIR_NAMES:
            assert name in config.blacklisted_dir_names
        assert {"dist", ".git"} <= config.blacklisted_dir_names

    def test_extra_extensions_appended_to_defaults(self, tmp_path: Path) -> None:
        config = build_config("A", "B", "*.json", root=tmp_path, excluded_extensions="bak;.swp")
        assert config.blacklisted_extensions == frozenset({".tmp", ".bak", ".swp"})

    def test_empty_filters_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            build_config("A", "B", " ; ", root=tmp_path)

    def test_options_passed_through(self, tmp_path: Path) -> None:
        config = build_config(
            "A", "B", "*.json", root=tmp_path, watch_mode=WATCH_PER_DIRECTORY, retry_count=2, retry_delay=0.5
        )
        assert config.watch_mode == WATCH_PER_DIRECTORY
        assert config.retry_count == 2
        assert config.retry_delay == 0.5


class TestResolveRoot:
    """Tests for resolve_root."""

    def test_explicit_root(self, tmp_path: Path) -> None:
        assert resolve_root(str(tmp_path)) == tmp_path.resolve()

    def test_discovers_vcs_root(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        nested = tmp_path / "src" / "A"
        nested.mkdir(parents=True)

        assert resolve_root(None, cwd=str(nested)) == tmp_path.resolve()

    def test_no_vcs_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("runtime_mirror.config.find_vcs_root", lambda start: None)
        with pytest.raises(ConfigurationError):
            resolve_root(None, cwd=str(tmp_path))


class TestPreconditionError:
    """Tests for PreconditionError."""

    def test_message_names_directory(self) -> None:
        exc = PreconditionError("source", "/repo/src/A")
        assert str(exc) == "Source directory '/repo/src/A' does not exist"
        assert exc.role == "source"
        assert exc.path == "/repo/src/A"
