"""
Generator configuration.

Defaults reproduce the fixture set as checked in; an optional YAML file can
override any of them:

    feed_dir: context/examples/test_affiliate_feeds
    manifest_name: expectations.json
    default_row_counts:
      impact_large_messy.csv: 20000
    extra_aliases:
      name: ["item title"]
      gtin: ["barcode"]

The feed directory may also come from the FEED_FIXTURES_DIR environment
variable. An explicit config value wins over the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .aliases import AliasTable, SemanticField
from .errors import ConfigError
from .writer import MANIFEST_NAME

FEED_DIR_ENV = "FEED_FIXTURES_DIR"
DEFAULT_FEED_DIR = Path("context") / "examples" / "test_affiliate_feeds"

# Header-only fixtures that still need rows
DEFAULT_ROW_COUNTS: dict[str, int] = {
    "impact_large_messy.csv": 20_000,
}

CONFIG_KEYS = {"feed_dir", "manifest_name", "default_row_counts", "extra_aliases"}


def default_feed_dir() -> Path:
    env_dir = os.environ.get(FEED_DIR_ENV)
    return Path(env_dir) if env_dir else DEFAULT_FEED_DIR


@dataclass
class FixtureConfig:
    """
    Settings for one generator run.

    Attributes:
        feed_dir: Directory holding the feed CSVs and the manifest
        manifest_name: File name of the expectations manifest
        default_row_counts: Row counts for files that are empty on disk
        extra_aliases: Additional header names per semantic field
    """

    feed_dir: Path = field(default_factory=default_feed_dir)
    manifest_name: str = MANIFEST_NAME
    default_row_counts: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ROW_COUNTS))
    extra_aliases: dict[SemanticField, list[str]] = field(default_factory=dict)

    @property
    def manifest_path(self) -> Path:
        return self.feed_dir / self.manifest_name

    def alias_table(self) -> AliasTable:
        table = AliasTable()
        if self.extra_aliases:
            table = table.extended(self.extra_aliases)
        return table


def _parse_aliases(raw: Any) -> dict[SemanticField, list[str]]:
    if not isinstance(raw, dict):
        raise ConfigError("extra_aliases must be a mapping of field -> header names")

    aliases: dict[SemanticField, list[str]] = {}
    for name, headers in raw.items():
        try:
            semantic = SemanticField(name)
        except ValueError as exc:
            raise ConfigError(f"Unknown semantic field in extra_aliases: {name}") from exc
        if isinstance(headers, str):
            headers = [headers]
        if not isinstance(headers, list) or not all(isinstance(h, str) for h in headers):
            raise ConfigError(f"extra_aliases.{name} must be a list of strings")
        aliases[semantic] = headers
    return aliases


def _parse_row_counts(raw: Any) -> dict[str, int]:
    if not isinstance(raw, dict):
        raise ConfigError("default_row_counts must be a mapping of file name -> count")
    counts: dict[str, int] = {}
    for name, count in raw.items():
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            raise ConfigError(f"default_row_counts.{name} must be a non-negative integer")
        counts[str(name)] = count
    return counts


def load_config(path: Path | None = None) -> FixtureConfig:
    """
    Build a FixtureConfig, overlaying a YAML file on the defaults.

    Args:
        path: Optional YAML config file

    Returns:
        The merged configuration

    Raises:
        ConfigError: If the file is unreadable, malformed or has unknown keys
    """
    config = FixtureConfig()
    if path is None:
        return config

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")

    unknown = set(data) - CONFIG_KEYS
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")

    if "feed_dir" in data:
        config.feed_dir = Path(data["feed_dir"])
    if "manifest_name" in data:
        config.manifest_name = str(data["manifest_name"])
    if "default_row_counts" in data:
        config.default_row_counts.update(_parse_row_counts(data["default_row_counts"]))
    if "extra_aliases" in data:
        config.extra_aliases = _parse_aliases(data["extra_aliases"])

    # Fail on overlapping aliases now rather than mid-batch
    config.alias_table()
    return config
