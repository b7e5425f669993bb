"""Tests for configuration loading, validation and saving."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest
import yaml

from frame_watcher.config import (
    ConfigurationError,
    WatchedPath,
    WatcherConfig,
    normalize_mapping,
    resolve_watch_list,
)


class TestWatcherConfigDefaults:
    """Tests for default configuration values."""

    def test_default_values(self) -> None:
        """Test that defaults are sensible."""
        config = WatcherConfig()

        assert config.include_folders == []
        assert config.recursive is False
        assert config.desktop_alerts is True
        assert config.debug is False
        assert config.log_level == "INFO"
        assert config.log_file is None

    def test_default_patterns_compile(self) -> None:
        """Test that every default pattern declares a frame group."""
        config = WatcherConfig()

        for pattern in (*config.folder_name_patterns, *config.file_name_patterns):
            assert {"frame_type", "frame_size"} & re.compile(pattern).groupindex.keys()

    def test_default_mapping(self) -> None:
        """Test the default abbreviation mapping."""
        mapping = WatcherConfig().frame_type_mapping

        assert mapping["fr"] == ["black framed", "framed"]
        assert mapping["cn"] == [""]
        assert mapping["gff_9pc"] == ["gray framed 9pc"]
        assert mapping["wd"] == ["wood", "wood horz", "wood vert"]
        assert "wd_9pc" not in mapping

    def test_effective_log_level(self) -> None:
        """Test that debug forces the DEBUG level."""
        config = WatcherConfig(log_level="WARNING")
        assert config.effective_log_level == logging.WARNING

        config.debug = True
        assert config.effective_log_level == logging.DEBUG


class TestConfigLoad:
    """Tests for loading configuration from file."""

    def test_load_nonexistent_file(self, tmp_path: Path) -> None:
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="failed to find watcher config file"):
            WatcherConfig.load(tmp_path / "nonexistent.yaml")

    def test_load_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file fails validation (nothing to watch)."""
        config_path = tmp_path / "empty.yaml"
        config_path.touch()

        with pytest.raises(ConfigurationError, match="no folders to watch"):
            WatcherConfig.load(config_path)

    def test_load_partial_config(self, tmp_path: Path) -> None:
        """Test loading partial config merges with defaults."""
        config = self._load_config_from_text(tmp_path, "partial.yaml", "watcher:\n  include_folders: ['./*']\n")

        assert config.include_folders == ["./*"]
        assert config.frame_type_mapping["ffl"] == ["floating gray framed"]

    def test_load_full_config(self, tmp_path: Path) -> None:
        """Test loading full configuration."""
        config_path = tmp_path / "full.yaml"
        data = {
            "metadata": {
                "folder_name_patterns": [r"^(?P<frame_size>\d+x\d+)$"],
                "file_name_patterns": [r"^[^_]+_(?P<frame_type>[^_]+)_(?P<frame_size>\d+x\d+)$"],
                "frame_type_mapping": {"FR": ["Black Framed ", "framed"], "cn": ""},
            },
            "watcher": {
                "include_folders": ["/prints/*"],
                "exclude_folders": ["/prints/misc"],
                "recursive": True,
            },
            "alerts": {"desktop": False},
            "debug": True,
            "logging": {"file": "~/logs/watcher.log", "level": "warning"},
        }
        with config_path.open("w") as f:
            yaml.dump(data, f)

        config = WatcherConfig.load(config_path)

        assert config.folder_name_patterns == [r"^(?P<frame_size>\d+x\d+)$"]
        assert len(config.file_name_patterns) == 1
        assert config.frame_type_mapping == {"fr": ["black framed", "framed"], "cn": [""]}
        assert config.include_folders == ["/prints/*"]
        assert config.exclude_folders == ["/prints/misc"]
        assert config.recursive is True
        assert config.desktop_alerts is False
        assert config.debug is True
        assert config.log_level == "WARNING"
        assert str(config.log_file).startswith(str(Path.home()))

    def test_load_invalid_yaml_raises(self, tmp_path: Path) -> None:
        """Test that malformed YAML is a configuration error."""
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("watcher: [\n  unclosed")

        with pytest.raises(ConfigurationError, match="load config file"):
            WatcherConfig.load(config_path)

    def test_load_non_mapping_raises(self, tmp_path: Path) -> None:
        """Test that a top-level list is rejected."""
        config_path = tmp_path / "list.yaml"
        config_path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            WatcherConfig.load(config_path)

    def test_load_uses_default_path(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test that load() uses the default path when no path is specified."""
        custom_default = tmp_path / "watcher.yaml"
        monkeypatch.setattr(WatcherConfig, "get_config_path", classmethod(lambda cls: custom_default))
        custom_default.write_text("watcher:\n  include_folders: ['./x']\n")

        config = WatcherConfig.load()

        assert config.include_folders == ["./x"]

    @staticmethod
    def _load_config_from_text(tmp_path: Path, filename: str, content: str) -> WatcherConfig:
        """Create a config file with given content and load it."""
        config_path = tmp_path / filename
        config_path.write_text(content)
        return WatcherConfig.load(config_path)


class TestConfigValidate:
    """Tests for WatcherConfig.validate()."""

    @pytest.fixture
    def valid(self) -> WatcherConfig:
        """Create a config that passes validation."""
        return WatcherConfig(include_folders=["./*"])

    def test_valid_config(self, valid: WatcherConfig) -> None:
        """Test that defaults plus an include folder validate."""
        valid.validate()

    def test_empty_folder_patterns(self, valid: WatcherConfig) -> None:
        """Test that folder patterns are required."""
        valid.folder_name_patterns = []

        with pytest.raises(ConfigurationError, match="folder name patterns"):
            valid.validate()

    def test_empty_file_patterns(self, valid: WatcherConfig) -> None:
        """Test that file patterns are required."""
        valid.file_name_patterns = []

        with pytest.raises(ConfigurationError, match="file name patterns"):
            valid.validate()

    def test_pattern_must_compile(self, valid: WatcherConfig) -> None:
        """Test that a broken regex is rejected."""
        valid.file_name_patterns = [r"^(?P<frame_type>[^_]+"]

        with pytest.raises(ConfigurationError, match="invalid name pattern"):
            valid.validate()

    def test_pattern_needs_named_group(self, valid: WatcherConfig) -> None:
        """Test that a pattern without frame groups is rejected."""
        valid.folder_name_patterns = [r"^(\d+x\d+)$"]

        with pytest.raises(ConfigurationError, match="named group"):
            valid.validate()

    def test_empty_mapping(self, valid: WatcherConfig) -> None:
        """Test that a mapping is required."""
        valid.frame_type_mapping = {}

        with pytest.raises(ConfigurationError, match="frame type mapping"):
            valid.validate()

    def test_empty_candidate_list(self, valid: WatcherConfig) -> None:
        """Test that each abbreviation needs at least one folder name."""
        valid.frame_type_mapping = {"fr": []}

        with pytest.raises(ConfigurationError, match="'fr'"):
            valid.validate()

    def test_invalid_log_level(self, valid: WatcherConfig) -> None:
        """Test that an unknown log level is rejected."""
        valid.log_level = "INVALID"

        with pytest.raises(ConfigurationError, match="Invalid log_level"):
            valid.validate()


class TestNormalizeMapping:
    """Tests for normalize_mapping()."""

    def test_scalar_and_none_values(self) -> None:
        """Test that scalars become one-item lists and None means unframed."""
        assert normalize_mapping({"cn": None, "gff": "Gray Framed"}) == {"cn": [""], "gff": ["gray framed"]}

    def test_keys_are_normalized(self) -> None:
        """Test that abbreviations are trimmed and lowercased."""
        assert normalize_mapping({" FR ": ["framed"]}) == {"fr": ["framed"]}


class TestConfigSave:
    """Tests for saving configuration to file."""

    def test_save_creates_directory(self, tmp_path: Path) -> None:
        """Test that save creates parent directories."""
        config_path = tmp_path / "subdir" / "watcher.yaml"

        WatcherConfig().save(config_path)

        assert config_path.exists()

    def test_save_and_load_roundtrip(self, tmp_path: Path) -> None:
        """Test that a saved config loads back with the same settings."""
        config_path = tmp_path / "roundtrip.yaml"
        original = WatcherConfig(include_folders=[str(tmp_path / "*")], exclude_folders=["misc"])
        original.desktop_alerts = False
        original.log_level = "DEBUG"

        original.save(config_path)
        loaded = WatcherConfig.load(config_path)

        assert loaded == original

    def test_save_format(self, tmp_path: Path) -> None:
        """Test that saved YAML has the expected structure."""
        config_path = tmp_path / "format.yaml"
        WatcherConfig().save(config_path)

        with config_path.open() as f:
            data = yaml.safe_load(f)

        assert set(data) == {"metadata", "watcher", "alerts", "debug", "logging"}
        assert "frame_type_mapping" in data["metadata"]
        assert "include_folders" in data["watcher"]


class TestResolveWatchList:
    """Tests for resolve_watch_list()."""

    def test_expands_and_excludes(self, tmp_path: Path) -> None:
        """Test glob expansion with an excluded folder."""
        for name in ("11x14", "12x12", "misc"):
            (tmp_path / name).mkdir()
        (tmp_path / "notes.txt").touch()

        watch_list = resolve_watch_list([str(tmp_path / "*")], [str(tmp_path / "misc")])

        assert watch_list == [
            WatchedPath((tmp_path / "11x14").resolve()),
            WatchedPath((tmp_path / "12x12").resolve()),
        ]

    def test_removes_duplicates(self, tmp_path: Path) -> None:
        """Test that overlapping globs do not watch a folder twice."""
        (tmp_path / "11x14").mkdir()

        watch_list = resolve_watch_list([str(tmp_path / "*"), str(tmp_path / "11x14")], [])

        assert len(watch_list) == 1

    def test_nothing_to_watch(self, tmp_path: Path) -> None:
        """Test that an empty expansion is a configuration error."""
        with pytest.raises(ConfigurationError, match="no folders to watch under given config"):
            resolve_watch_list([str(tmp_path / "missing" / "*")], [])

    def test_everything_excluded(self, tmp_path: Path) -> None:
        """Test that excluding every folder is a configuration error."""
        (tmp_path / "misc").mkdir()

        with pytest.raises(ConfigurationError):
            resolve_watch_list([str(tmp_path / "*")], [str(tmp_path / "*")])
