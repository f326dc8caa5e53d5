"""Configuration loading for blueprint (.blueprint.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigurationError

CONFIG_FILENAME = ".blueprint.yml"

DEFAULT_OUTPUT = "blueprint.json"
DEFAULT_FORMAT = "json"
DEFAULT_COMPACT_THRESHOLD = 5

_FORMATS = {"json", "yaml", "both"}


@dataclass
class BlueprintConfig:
    """Represents the settings defined in .blueprint.yml.

    Every option is optional; ``None`` means "not set in the file" so that
    command-line values and built-in defaults can take over.
    """

    root: Path
    source: Optional[Path] = None
    path: Optional[Path] = None
    output: Optional[Path] = None
    format: Optional[str] = None
    namespace: Optional[str] = None
    exclude: List[str] = field(default_factory=list)
    include_private: Optional[bool] = None
    include_internal: Optional[bool] = None
    short_docs: Optional[bool] = None
    compact_enums: Optional[int] = None
    reference_paths: List[Path] = field(default_factory=list)
    log_file: Optional[Path] = None


def discover_config(directory: Path) -> Optional[Path]:
    """Return the config file in ``directory`` if one exists."""
    candidate = directory.expanduser() / CONFIG_FILENAME
    return candidate.resolve() if candidate.is_file() else None


def load_config(config_path: Path) -> BlueprintConfig:
    """Load configuration from disk; relative paths resolve against the file's directory."""
    config_file = config_path.expanduser().resolve()
    if not config_file.is_file():
        raise ConfigurationError(f"Config file not found: {config_file}")
    root = config_file.parent

    data = _normalise_keys(_read_config(config_file))

    fmt = _as_str(data.get("format"))
    if fmt is not None:
        fmt = fmt.lower()
        if fmt not in _FORMATS:
            raise ConfigurationError(
                f"{config_file.name}: format must be one of json, yaml, both (got '{fmt}')"
            )

    return BlueprintConfig(
        root=root,
        source=config_file,
        path=_as_path(root, data.get("path")),
        output=_as_path(root, data.get("output")),
        format=fmt,
        namespace=_as_str(data.get("namespace")),
        exclude=_as_str_list(data.get("exclude")),
        include_private=_as_bool(data.get("include_private")),
        include_internal=_as_bool(data.get("include_internal")),
        short_docs=_as_bool(data.get("short_docs")),
        compact_enums=_as_threshold(config_file, data.get("compact_enums")),
        reference_paths=[
            path for path in (_as_path(root, item) for item in _as_str_list(data.get("reference_paths"))) if path
        ],
        log_file=_as_path(root, data.get("log_file")),
    )


def compact_threshold(value: Any) -> int:
    """Map a compact-enums setting to a threshold: True -> 5, False/None -> 0."""
    if value is None or value is False:
        return 0
    if value is True:
        return DEFAULT_COMPACT_THRESHOLD
    return max(0, int(value))


def merge_exclusions(config_values: Sequence[str], cli_values: Sequence[str]) -> List[str]:
    """Config entries first, then CLI entries, without duplicates."""
    merged: List[str] = []
    for value in [*config_values, *cli_values]:
        if value not in merged:
            merged.append(value)
    return merged


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{path.name} must contain a mapping at the root")
    return loaded


def _normalise_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key).replace("-", "_"): value for key, value in data.items()}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else (root / path)


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_threshold(path: Path, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        return compact_threshold(value)
    if isinstance(value, int) and value >= 0:
        return value
    raise ConfigurationError(
        f"{path.name}: compact_enums must be a boolean or a non-negative integer (got {value!r})"
    )


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return []


__all__ = [
    "BlueprintConfig",
    "CONFIG_FILENAME",
    "DEFAULT_COMPACT_THRESHOLD",
    "DEFAULT_FORMAT",
    "DEFAULT_OUTPUT",
    "compact_threshold",
    "discover_config",
    "load_config",
    "merge_exclusions",
]
