"""Configuration loading for sourcelynk (.sourcelynk.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".sourcelynk.yml"

DEFAULT_SECTION_NAME = ".debug_sourcelink"
DEFAULT_OBJCOPY = "objcopy"
DEFAULT_REMOTE = "origin"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class SourceLynkConfig:
    """Represents the settings defined in .sourcelynk.yml."""

    root: Path
    section_name: str = DEFAULT_SECTION_NAME
    objcopy: str = DEFAULT_OBJCOPY
    remote: str = DEFAULT_REMOTE
    exclude_paths: List[str] = field(default_factory=list)
    providers: Optional[List[str]] = None


def load_config(config_path: Path) -> SourceLynkConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SourceLynkConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    section_name = _as_str(data.get("section_name")) or DEFAULT_SECTION_NAME
    if not section_name.startswith("."):
        raise ConfigError(f"section_name must start with '.', got {section_name!r}")

    return SourceLynkConfig(
        root=root,
        section_name=section_name,
        objcopy=_as_str(data.get("objcopy")) or DEFAULT_OBJCOPY,
        remote=_as_str(data.get("remote")) or DEFAULT_REMOTE,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        providers=_as_provider_names(data.get("providers")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_provider_names(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    names = _as_str_list(value)
    if not names:
        raise ConfigError("providers must name at least one provider when set")
    return names


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
