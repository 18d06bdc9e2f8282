"""Site configuration: settings schema and bloggo.yaml loader"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILE = "bloggo.yaml"
ENV_PREFIX = "BLOGGO_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class SiteConfig:
    title:         str  = "Bloggo"
    base_url:      str  = ""
    posts_dir:     str  = "posts"      # content documents
    templates_dir: str  = "templates"  # layouts
    assets_dir:    str  = "assets"     # copied verbatim
    output_dir:    str  = "build"
    index_layout:  str  = "index"
    tag_layout:    str  = "tag"
    flat_urls:     bool = False        # <slug>.html instead of <slug>/index.html
    feed:          bool = True         # write atom.xml
    workers:       int  = 4
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, _coerce(f.name, f.type, getattr(self, f.name)))
        if self.workers < 1:
            raise ConfigError(None, f"workers must be at least 1, got {self.workers}")

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> SiteConfig:
        """Build a config; keys that are not settings are merged into ``data``."""
        known = {f.name for f in fields(cls)}
        settings = {k: v for k, v in values.items() if k in known}
        extra = {k: v for k, v in values.items() if k not in known}
        data = settings.pop("data", None) or {}
        if not isinstance(data, dict):
            raise ConfigError(None, f"Invalid value for 'data': {data!r}")
        if extra or data:
            settings["data"] = {**extra, **data}
        return cls(**settings)


def _coerce(name: str, kind: str, value: Any) -> Any:
    if kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in _TRUE | _FALSE:
            return value.lower() in _TRUE
    elif kind == "int":
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
    elif kind == "str":
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    elif isinstance(value, dict):
        return value
    raise ConfigError(None, f"Invalid value for '{name}': {value!r}")


def load_config(source_dir: Path, overrides: dict[str, Any] | None = None) -> SiteConfig:
    """Load SiteConfig from bloggo.yaml, then BLOGGO_<FIELD> env vars, then non-None CLI overrides."""
    config_path = source_dir / CONFIG_FILE
    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(config_path, f"Invalid {CONFIG_FILE}: {e}", e) from e
        if not isinstance(data, dict):
            raise ConfigError(config_path, f"{CONFIG_FILE} must be a mapping")

    for f in fields(SiteConfig):
        if f.name == "data":
            continue
        if val := os.getenv(f"{ENV_PREFIX}{f.name.upper()}"):
            data[f.name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return SiteConfig.from_mapping(data)
    except ConfigError as e:
        raise ConfigError(config_path, e.message) from e
