"""Configuration management for the frame folder watcher."""

from __future__ import annotations

import glob
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

FRAME_TYPE = "frame_type"
FRAME_SIZE = "frame_size"

DEFAULT_FOLDER_NAME_PATTERNS = [
    r"^(?P<frame_size>\d+x\d+)$",
    r"^(?P<frame_size>\d+x\d+) (?P<frame_type>(floating )?((white|gray|black|gold) )?framed)$",
    r"^(?P<frame_type>(floating )?((white|gray|black|gold) )?framed( \d+pc)?) (?P<frame_size>\d+x\d+)$",
    r"^(?P<frame_type>(wood|wood horz|wood vert|wood crx|framed)( \d+pc)?) (?P<frame_size>\d+x\d+)$",
]

DEFAULT_FILE_NAME_PATTERNS = [
    r"^([^_]+)_(?P<frame_type>[^_]+)_(?P<frame_size>\d+x\d+).*$",
    r"^([^_]+)_(?P<frame_type>[^_]+_[^_]+)_(?P<frame_size>\d+x\d+).*$",
]


def _default_frame_type_mapping() -> dict[str, list[str]]:
    mapping = {
        "cn": [""],
        "fr": ["black framed", "framed"],  # "black framed" on MIMAKI, "framed" on KONICA
        "gff": ["gray framed"],
        "wfr": ["white framed"],
        "ffb": ["floating black framed"],
        "ffg": ["floating gold framed"],
        "ffl": ["floating gray framed"],
        "sqw": [""],  # 18x18 MIMAKI only
        "wd": ["wood", "wood horz", "wood vert"],
        "wd_crx": ["wood crx"],
    }
    for pieces in ("2pc", "3pc", "4pc", "9pc"):
        mapping[f"fr_{pieces}"] = [f"framed {pieces}"]
        mapping[f"gff_{pieces}"] = [f"gray framed {pieces}"]
        mapping[f"wfr_{pieces}"] = [f"white framed {pieces}"]
    for pieces in ("2pc", "3pc", "4pc"):
        mapping[f"wd_{pieces}"] = [f"wood {pieces}"]
    return mapping


class ConfigurationError(Exception):
    """Raised when the configuration is missing or invalid."""


@dataclass(frozen=True)
class WatchedPath:
    """A directory under observation, resolved once at startup."""

    path: Path

    def __str__(self) -> str:
        return str(self.path)


@dataclass
class WatcherConfig:
    """Configuration for the frame folder watcher."""

    # Glob patterns of folders to watch; a trailing "/*" watches every sub-folder
    include_folders: list[str] = field(default_factory=list)
    exclude_folders: list[str] = field(default_factory=list)
    recursive: bool = False

    # Ordered regex lists with named groups "frame_type" and/or "frame_size"
    folder_name_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_FOLDER_NAME_PATTERNS))
    file_name_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_FILE_NAME_PATTERNS))

    # File-name abbreviation -> acceptable folder-name frame types
    frame_type_mapping: dict[str, list[str]] = field(default_factory=_default_frame_type_mapping)

    # Alerts
    desktop_alerts: bool = True

    # Logging
    debug: bool = False
    log_level: str = "INFO"
    log_file: Path | None = None

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        return Path("watcher.yaml")

    @classmethod
    def load(cls, config_path: Path | None = None) -> WatcherConfig:
        """Load and validate configuration from a YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration.

        Raises:
            ConfigurationError: If the file is missing or invalid.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            raise ConfigurationError(f"failed to find watcher config file at {str(config_path)!r}")

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"load config file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError("load config file: top level must be a mapping")

        config = cls._from_dict(data)
        config.validate()
        return config

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> WatcherConfig:
        """Create config from dictionary."""
        config = cls()

        # Metadata
        metadata = data.get("metadata") or {}
        if "folder_name_patterns" in metadata:
            config.folder_name_patterns = [str(p) for p in metadata["folder_name_patterns"] or []]
        if "file_name_patterns" in metadata:
            config.file_name_patterns = [str(p) for p in metadata["file_name_patterns"] or []]
        if "frame_type_mapping" in metadata:
            config.frame_type_mapping = normalize_mapping(metadata["frame_type_mapping"] or {})

        # Watcher
        watcher = data.get("watcher") or {}
        if "include_folders" in watcher:
            config.include_folders = [str(p) for p in watcher["include_folders"] or []]
        if "exclude_folders" in watcher:
            config.exclude_folders = [str(p) for p in watcher["exclude_folders"] or []]
        if "recursive" in watcher:
            config.recursive = bool(watcher["recursive"])

        # Alerts
        if "alerts" in data and "desktop" in (data["alerts"] or {}):
            config.desktop_alerts = bool(data["alerts"]["desktop"])

        # Logging
        if "debug" in data:
            config.debug = bool(data["debug"])
        if "logging" in data:
            logging_cfg = data["logging"] or {}
            if logging_cfg.get("file"):
                config.log_file = Path(os.path.expanduser(logging_cfg["file"]))
            if "level" in logging_cfg:
                config.log_level = str(logging_cfg["level"]).upper()

        return config

    def validate(self) -> None:
        """Check that the configuration can drive the watcher.

        Raises:
            ConfigurationError: On the first problem found.

        """
        if not self.include_folders:
            raise ConfigurationError("no folders to watch specified")
        if not self.folder_name_patterns:
            raise ConfigurationError("no folder name patterns specified")
        if not self.file_name_patterns:
            raise ConfigurationError("no file name patterns specified")

        for pattern in (*self.folder_name_patterns, *self.file_name_patterns):
            _validate_pattern(pattern)

        if not self.frame_type_mapping:
            raise ConfigurationError("no frame type mapping specified")
        for abbreviation, candidates in self.frame_type_mapping.items():
            if not candidates:
                raise ConfigurationError(f"frame type {abbreviation!r} has no folder names")

        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"Invalid log_level: {self.log_level!r}")

    @property
    def effective_log_level(self) -> int:
        """Numeric log level, with ``debug`` forcing DEBUG."""
        if self.debug:
            return logging.DEBUG
        return logging.getLevelName(self.log_level)

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "metadata": {
                "folder_name_patterns": list(self.folder_name_patterns),
                "file_name_patterns": list(self.file_name_patterns),
                "frame_type_mapping": {k: list(v) for k, v in self.frame_type_mapping.items()},
            },
            "watcher": {
                "include_folders": list(self.include_folders),
                "exclude_folders": list(self.exclude_folders),
                "recursive": self.recursive,
            },
            "alerts": {"desktop": self.desktop_alerts},
            "debug": self.debug,
            "logging": {
                "level": self.log_level,
                "file": str(self.log_file) if self.log_file else None,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def normalize_mapping(raw: dict[str, Any]) -> dict[str, list[str]]:
    """Normalize a frame type mapping loaded from YAML.

    Keys and candidate names are trimmed and lowercased. A scalar value is
    accepted as a single candidate; ``None`` stands for the empty (unframed)
    candidate.

    """
    mapping: dict[str, list[str]] = {}
    for key, value in raw.items():
        values = value if isinstance(value, list) else [value]
        mapping[str(key).strip().lower()] = ["" if v is None else str(v).strip().lower() for v in values]
    return mapping


def _validate_pattern(pattern: str) -> None:
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"invalid name pattern {pattern!r}: {e}") from e

    if not {FRAME_TYPE, FRAME_SIZE} & compiled.groupindex.keys():
        raise ConfigurationError(
            f"name pattern {pattern!r} must declare a {FRAME_TYPE!r} or {FRAME_SIZE!r} named group"
        )


def resolve_watch_list(include: list[str], exclude: list[str]) -> list[WatchedPath]:
    """Expand include/exclude glob lists into the folders to watch.

    Args:
        include: Glob patterns of folders to watch.
        exclude: Glob patterns of folders to drop from the expansion.

    Returns:
        Existing directories, in include order, without duplicates.

    Raises:
        ConfigurationError: If nothing is left to watch.

    """
    excluded = {Path(p).resolve() for pattern in exclude for p in _expand(pattern)}

    watch_list: list[WatchedPath] = []
    seen: set[Path] = set()
    for pattern in include:
        for match in _expand(pattern):
            path = Path(match).resolve()
            if path in excluded or path in seen or not path.is_dir():
                continue
            seen.add(path)
            watch_list.append(WatchedPath(path))

    if not watch_list:
        raise ConfigurationError("no folders to watch under given config")

    return watch_list


def _expand(pattern: str) -> list[str]:
    return sorted(glob.glob(os.path.expanduser(pattern)))
