"""JSON and YAML renderings of a Blueprint, with atomic file output."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Mapping

import yaml

from .errors import SerializationError
from .logging import get_logger
from .models import Blueprint

logger = get_logger("serializers")

FORMATS = ("json", "yaml", "both")

_SUFFIXES = (".json", ".yaml", ".yml")


def _plain(blueprint: Blueprint | Mapping[str, Any]) -> Mapping[str, Any]:
    return blueprint.to_dict() if isinstance(blueprint, Blueprint) else blueprint


def to_json(blueprint: Blueprint | Mapping[str, Any]) -> str:
    try:
        return json.dumps(_plain(blueprint), indent=4, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Could not encode blueprint as JSON: {exc}") from exc


def to_yaml(blueprint: Blueprint | Mapping[str, Any]) -> str:
    try:
        return yaml.safe_dump(
            _plain(blueprint),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            width=2**31 - 1,
        )
    except yaml.YAMLError as exc:
        raise SerializationError(f"Could not encode blueprint as YAML: {exc}") from exc


def output_paths(path: os.PathLike | str, fmt: str) -> List[Path]:
    """Files written for ``fmt``; ``both`` derives sibling ``.json``/``.yaml`` names."""
    if fmt not in FORMATS:
        raise SerializationError(f"Unknown output format '{fmt}' (expected one of {', '.join(FORMATS)})")
    target = Path(path)
    if fmt != "both":
        return [target]
    stem = target.with_suffix("") if target.suffix.lower() in _SUFFIXES else target
    return [stem.with_name(stem.name + ".json"), stem.with_name(stem.name + ".yaml")]


def _stage(path: Path, content: str) -> str:
    """Write ``content`` to a temp file beside ``path`` and return the temp path."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    except OSError as exc:
        raise SerializationError(f"Could not write {path}: {exc}") from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        _discard(tmp_path)
        raise SerializationError(f"Could not write {path}: {exc}") from exc
    return tmp_path


def _discard(tmp_path: str) -> None:
    if os.path.exists(tmp_path):
        os.unlink(tmp_path)


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` to a temp file beside ``path`` and rename it into place."""
    tmp_path = _stage(path, content)
    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        _discard(tmp_path)
        raise SerializationError(f"Could not write {path}: {exc}") from exc


def save_blueprint(blueprint: Blueprint, path: os.PathLike | str, fmt: str = "json") -> List[Path]:
    """Serialise ``blueprint`` and write each requested encoding atomically.

    Every encoding is rendered and staged before any target is replaced, so a
    failure leaves existing output files untouched.
    """
    targets = output_paths(path, fmt)
    encoders = {"json": [to_json], "yaml": [to_yaml], "both": [to_json, to_yaml]}[fmt]
    contents = [encode(blueprint) for encode in encoders]

    staged: List[str] = []
    try:
        for target, content in zip(targets, contents):
            staged.append(_stage(target, content))
        for target, tmp_path in zip(targets, staged):
            os.replace(tmp_path, target)
            logger.debug("Wrote %s", target)
    except OSError as exc:
        raise SerializationError(f"Could not write {path}: {exc}") from exc
    finally:
        for tmp_path in staged:
            _discard(tmp_path)
    return list(targets)


__all__ = ["FORMATS", "output_paths", "save_blueprint", "to_json", "to_yaml", "write_atomic"]
