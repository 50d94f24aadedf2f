"""TOML config loading for ein.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "ein.toml"


@dataclass
class TemplatesConfig:
    source_dir: str = "templates"
    suffixes: list[str] = field(default_factory=lambda: [".ein"])


@dataclass
class LogConfig:
    level: str = "WARNING"


@dataclass
class EinConfig:
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)
    log: LogConfig = field(default_factory=LogConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find ein.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> EinConfig:
    """Parse an ein.toml file into an EinConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = EinConfig()

    if "templates" in data:
        tpl = data["templates"]
        config.templates = TemplatesConfig(
            source_dir=tpl.get("source_dir", "templates"),
            suffixes=list(tpl.get("suffixes", [".ein"])),
        )

    if "log" in data:
        config.log = LogConfig(level=str(data["log"].get("level", "WARNING")).upper())

    return config
