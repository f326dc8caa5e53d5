"""CLI parser and entrypoint behaviour tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from blueprint.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "extract", "src"])
    assert args.verbose is True
    assert args.command == "extract"
    assert args.path == "src"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["extract", "--verbose"])
    assert args.verbose is True
    assert args.path is None


def test_cli_defaults_leave_config_values_in_charge() -> None:
    parser = _build_parser()
    args = parser.parse_args(["extract"])
    assert args.output is None
    assert args.format is None
    assert args.namespace is None
    assert args.compact_enums is None
    assert args.exclude == []
    assert args.no_config is False


def test_cli_compact_enums_with_and_without_value() -> None:
    parser = _build_parser()
    assert parser.parse_args(["extract", "--compact-enums"]).compact_enums is True
    assert parser.parse_args(["extract", "--compact-enums", "3"]).compact_enums == 3


def test_cli_rejects_negative_compact_threshold() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["extract", "--compact-enums", "-2"])


def test_cli_collects_repeatable_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        [
            "extract",
            "src",
            "--exclude",
            "App\\Legacy\\",
            "--exclude",
            "App\\Tests\\",
            "--reference-path",
            "vendor/core",
        ]
    )
    assert args.exclude == ["App\\Legacy\\", "App\\Tests\\"]
    assert args.reference_path == ["vendor/core"]


def test_cli_config_options_are_exclusive() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["extract", "--config", "a.yml", "--no-config"])


def test_cli_rejects_unknown_format() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["extract", "--format", "toml"])


def test_main_writes_blueprint_and_reports(
    fixtures_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    output = tmp_path / "api.json"

    main(["extract", str(fixtures_path), "-o", str(output), "--namespace", "TestFixtures", "--no-config"])

    data = json.loads(output.read_text(encoding="utf-8"))
    assert "TestFixtures\\SimpleClass" in data
    message = capsys.readouterr().out
    assert message.startswith(f"Extracted {len(data)} classes → {output.resolve()}")


def test_main_exits_with_message_for_missing_directory(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["extract", str(tmp_path / "missing"), "--no-config"])

    assert excinfo.value.code == 1
    assert "Directory not found" in capsys.readouterr().err


def test_main_exits_when_no_path_is_available(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        main(["extract"])

    assert excinfo.value.code == 1
    assert "No path provided" in capsys.readouterr().err


def test_main_reads_discovered_config(
    fixtures_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / ".blueprint.yml").write_text(
        f"path: {fixtures_path}\noutput: out/api\nformat: both\nnamespace: TestFixtures\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    main(["extract"])

    assert sorted(os.listdir(tmp_path / "out")) == ["api.json", "api.yaml"]
