"""Pipeline orchestration for extract runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import List, Optional, Sequence

from .config import (
    DEFAULT_FORMAT,
    DEFAULT_OUTPUT,
    BlueprintConfig,
    compact_threshold,
    discover_config,
    load_config,
    merge_exclusions,
)
from .errors import DiscoveryError
from .generator import BlueprintGenerator, ExtractionOptions
from .logging import get_logger
from .serializers import save_blueprint
from .values import format_number


@dataclass
class ExtractRequest:
    """Command-line values for an extract run; ``None`` means "not given"."""

    path: Optional[str] = None
    output: Optional[str] = None
    format: Optional[str] = None
    namespace: Optional[str] = None
    exclude: Sequence[str] = ()
    include_private: bool = False
    include_internal: bool = False
    short_docs: bool = False
    compact_enums: Optional[int] = None
    reference_paths: Sequence[str] = ()
    config_path: Optional[str] = None
    use_config: bool = True


@dataclass
class ExtractOutcome:
    """Result of an extract run."""

    count: int
    outputs: List[Path] = field(default_factory=list)
    config_path: Optional[Path] = None

    @property
    def primary_output(self) -> Path:
        return self.outputs[0]

    @property
    def size(self) -> int:
        return self.primary_output.stat().st_size


def format_size(size: int) -> str:
    """Human readable size: ``1.5KB`` above 1024 bytes, else ``512B``."""
    if size > 1024:
        kilobytes = (Decimal(size) / 1024).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{format_number(float(kilobytes))}KB"
    return f"{size}B"


class Orchestrator:
    """Coordinates configuration, extraction and output for the CLI."""

    def __init__(self, generator_factory=BlueprintGenerator, cwd: Optional[Path] = None) -> None:
        self.logger = get_logger("orchestrator")
        self._generator_factory = generator_factory
        self._cwd = cwd

    def load_config(self, request: ExtractRequest) -> Optional[BlueprintConfig]:
        """Load the explicit or auto-discovered config file, if any.

        Raises ConfigurationError when an explicit file is missing or a file
        cannot be parsed.
        """
        if not request.use_config:
            return None
        cwd = self._cwd or Path.cwd()
        if request.config_path is not None:
            config_file = Path(request.config_path)
            if not config_file.is_absolute():
                config_file = cwd / config_file
        else:
            config_file = discover_config(cwd)
            if config_file is None:
                return None
        config = load_config(config_file)
        self.logger.info("Using config: %s", config.source)
        return config

    def run_extract(self, request: ExtractRequest, config: Optional[BlueprintConfig] = None) -> ExtractOutcome:
        """Extract a blueprint for the requested directory and write it to disk."""
        if config is None:
            config = self.load_config(request)
        cwd = self._cwd or Path.cwd()

        source = self._resolve_path(request.path, config.path if config else None, cwd)
        if source is None:
            raise DiscoveryError(
                "No path provided. Pass a directory argument or set \"path\" in .blueprint.yml."
            )
        if not source.is_dir():
            raise DiscoveryError(f"Directory not found: {source}")

        options = self._build_options(request, config, cwd)
        output = self._resolve_path(request.output, config.output if config else None, cwd)
        if output is None:
            output = (cwd / DEFAULT_OUTPUT).resolve()
        fmt = request.format or (config.format if config and config.format else DEFAULT_FORMAT)

        self.logger.info("Extracting %s", source)
        self.logger.debug(
            "namespace=%r exclude=%s public_only=%s skip_internal=%s short_docs=%s compact=%d",
            options.namespace,
            list(options.exclude),
            options.public_only,
            options.skip_internal,
            options.short_docs,
            options.compact_threshold,
        )
        generator = self._generator_factory(options)
        blueprint = generator.extract_from_directory(source)

        outputs = save_blueprint(blueprint, output, fmt)
        self.logger.info("Wrote %d definitions to %s", len(blueprint), ", ".join(str(p) for p in outputs))
        return ExtractOutcome(
            count=len(blueprint),
            outputs=outputs,
            config_path=config.source if config else None,
        )

    @staticmethod
    def _resolve_path(cli_value: Optional[str], config_value: Optional[Path], cwd: Path) -> Optional[Path]:
        if cli_value:
            path = Path(cli_value).expanduser()
            return (path if path.is_absolute() else cwd / path).resolve()
        if config_value is not None:
            return config_value.resolve()
        return None

    @staticmethod
    def _build_options(
        request: ExtractRequest, config: Optional[BlueprintConfig], cwd: Path
    ) -> ExtractionOptions:
        namespace = request.namespace
        if namespace is None:
            namespace = (config.namespace if config else None) or ""

        include_private = request.include_private or bool(config and config.include_private)
        include_internal = request.include_internal or bool(config and config.include_internal)
        short_docs = request.short_docs or bool(config and config.short_docs)

        if request.compact_enums is not None:
            threshold = compact_threshold(request.compact_enums)
        else:
            threshold = compact_threshold(config.compact_enums if config else None)

        reference_paths = [str(path) for path in (config.reference_paths if config else [])]
        for item in request.reference_paths:
            path = Path(item).expanduser()
            resolved = str(path if path.is_absolute() else cwd / path)
            if resolved not in reference_paths:
                reference_paths.append(resolved)

        return ExtractionOptions(
            namespace=namespace,
            public_only=not include_private,
            skip_internal=not include_internal,
            short_docs=short_docs,
            compact_threshold=threshold,
            exclude=tuple(merge_exclusions(config.exclude if config else [], list(request.exclude))),
            reference_paths=tuple(reference_paths),
        )


__all__ = ["ExtractOutcome", "ExtractRequest", "Orchestrator", "format_size"]
