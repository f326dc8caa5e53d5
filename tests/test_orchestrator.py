"""Tests for blueprint.orchestrator."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest
import yaml

from blueprint.errors import ConfigurationError, DiscoveryError
from blueprint.generator import ExtractionOptions
from blueprint.models import Blueprint, DefinitionRecord
from blueprint.orchestrator import ExtractRequest, Orchestrator, format_size


class RecordingGenerator:
    """Test double that records the options and directories it is given."""

    instances: List["RecordingGenerator"] = []

    def __init__(self, options: ExtractionOptions) -> None:
        self.options = options
        self.directories: List[Path] = []
        RecordingGenerator.instances.append(self)

    def extract_from_directory(self, directory) -> Blueprint:
        self.directories.append(Path(directory))
        return Blueprint(records={"App\\Thing": DefinitionRecord(methods=["run(): void"])})


@pytest.fixture(autouse=True)
def _reset_recorder() -> None:
    RecordingGenerator.instances.clear()


def _orchestrator(cwd: Path) -> Orchestrator:
    return Orchestrator(generator_factory=RecordingGenerator, cwd=cwd)


def _options() -> ExtractionOptions:
    return RecordingGenerator.instances[-1].options


def test_run_extract_writes_default_output(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()

    outcome = _orchestrator(tmp_path).run_extract(ExtractRequest(path="src", use_config=False))

    assert outcome.count == 1
    assert outcome.outputs == [(tmp_path / "blueprint.json").resolve()]
    assert json.loads(outcome.primary_output.read_text(encoding="utf-8")) == {
        "App\\Thing": {"methods": ["run(): void"]}
    }
    assert outcome.size == outcome.primary_output.stat().st_size
    assert RecordingGenerator.instances[-1].directories == [(tmp_path / "src").resolve()]


def test_defaults_without_config(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()

    _orchestrator(tmp_path).run_extract(ExtractRequest(path="src", use_config=False))

    options = _options()
    assert options.namespace == ""
    assert options.public_only is True
    assert options.skip_internal is True
    assert options.short_docs is False
    assert options.compact_threshold == 0
    assert tuple(options.exclude) == ()


def test_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError, match="No path provided"):
        _orchestrator(tmp_path).run_extract(ExtractRequest(use_config=False))


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError, match="Directory not found"):
        _orchestrator(tmp_path).run_extract(ExtractRequest(path="nope", use_config=False))


def test_config_values_fill_unset_options(tmp_path: Path) -> None:
    (tmp_path / "lib").mkdir()
    (tmp_path / ".blueprint.yml").write_text(
        "\n".join(
            [
                "path: lib",
                "output: docs/api",
                "format: yaml",
                "namespace: Acme",
                "exclude: ['Acme\\Legacy\\']",
                "include_private: true",
                "short_docs: true",
                "compact_enums: true",
                "reference_paths: [vendor/core]",
            ]
        ),
        encoding="utf-8",
    )

    outcome = _orchestrator(tmp_path).run_extract(ExtractRequest())

    options = _options()
    assert options.namespace == "Acme"
    assert options.public_only is False
    assert options.skip_internal is True
    assert options.short_docs is True
    assert options.compact_threshold == 5
    assert list(options.exclude) == ["Acme\\Legacy\\"]
    assert list(options.reference_paths) == [str(tmp_path.resolve() / "vendor" / "core")]
    assert outcome.outputs == [(tmp_path / "docs" / "api").resolve()]
    assert yaml.safe_load(outcome.primary_output.read_text(encoding="utf-8"))["App\\Thing"]
    assert outcome.config_path == (tmp_path / ".blueprint.yml").resolve()


def test_cli_values_take_precedence_over_config(tmp_path: Path) -> None:
    (tmp_path / "lib").mkdir()
    (tmp_path / "other").mkdir()
    (tmp_path / ".blueprint.yml").write_text(
        "path: lib\nnamespace: Acme\ncompact_enums: 2\nexclude: [A\\]\n", encoding="utf-8"
    )

    _orchestrator(tmp_path).run_extract(
        ExtractRequest(path="other", namespace="Other", compact_enums=0, exclude=["B\\", "A\\"])
    )

    options = _options()
    assert RecordingGenerator.instances[-1].directories == [(tmp_path / "other").resolve()]
    assert options.namespace == "Other"
    assert options.compact_threshold == 0
    assert list(options.exclude) == ["A\\", "B\\"]


def test_explicit_config_path_is_loaded(tmp_path: Path) -> None:
    (tmp_path / "conf").mkdir()
    (tmp_path / "conf" / "src").mkdir()
    (tmp_path / "conf" / "custom.yml").write_text("path: src\n", encoding="utf-8")

    _orchestrator(tmp_path).run_extract(ExtractRequest(config_path="conf/custom.yml"))

    assert RecordingGenerator.instances[-1].directories == [(tmp_path / "conf" / "src").resolve()]


def test_missing_explicit_config_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Config file not found"):
        _orchestrator(tmp_path).run_extract(ExtractRequest(path=".", config_path="missing.yml"))


def test_no_config_ignores_discovered_file(tmp_path: Path) -> None:
    (tmp_path / ".blueprint.yml").write_text("namespace: Acme\n", encoding="utf-8")

    _orchestrator(tmp_path).run_extract(ExtractRequest(path=".", use_config=False))

    assert _options().namespace == ""


@pytest.mark.parametrize(
    ("size", "expected"),
    [(512, "512B"), (1024, "1024B"), (1536, "1.5KB"), (2048, "2KB"), (10291, "10KB")],
)
def test_format_size(size: int, expected: str) -> None:
    assert format_size(size) == expected
