"""CLI entrypoints for blueprint commands."""

from __future__ import annotations

import argparse
import sys

from .config import CONFIG_FILENAME
from .errors import BlueprintError, ConfigurationError, DiscoveryError, SerializationError
from .logging import configure_logging
from .orchestrator import ExtractRequest, Orchestrator, format_size
from .serializers import FORMATS


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got '{value}'") from exc
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got '{value}'")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blueprint",
        description="Extract a compact API blueprint from a directory of PHP sources.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Generate a blueprint of a PHP library's class signatures.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    extract_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help=f"Directory to scan for PHP files (or set 'path' in {CONFIG_FILENAME}).",
    )
    extract_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file path (default: blueprint.json in the working directory).",
    )
    extract_parser.add_argument(
        "--format",
        choices=FORMATS,
        default=None,
        help="Output encoding; 'both' writes sibling .json and .yaml files.",
    )
    extract_parser.add_argument(
        "--namespace",
        default=None,
        help='Only include definitions under this namespace prefix (e.g. "Vendor\\Package").',
    )
    extract_parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="NAMESPACE",
        help="Exclude a namespace prefix (repeatable).",
    )
    extract_parser.add_argument(
        "--include-private",
        action="store_true",
        help="Include protected and private members.",
    )
    extract_parser.add_argument(
        "--include-internal",
        action="store_true",
        help="Include classes in \\Internal\\ sub-namespaces.",
    )
    extract_parser.add_argument(
        "--short-docs",
        action="store_true",
        help="Truncate doc summaries to their first sentence.",
    )
    extract_parser.add_argument(
        "--compact-enums",
        nargs="?",
        const=True,
        default=None,
        type=_non_negative_int,
        metavar="N",
        help="Truncate constant and enum lists longer than N entries (default N: 5).",
    )
    extract_parser.add_argument(
        "--reference-path",
        action="append",
        default=[],
        metavar="DIR",
        help="Extra source directory used only to resolve parents, interfaces and traits (repeatable).",
    )
    config_group = extract_parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "-c",
        "--config",
        default=None,
        help=f"Path to a config file (default: ./{CONFIG_FILENAME} when present).",
    )
    config_group.add_argument(
        "--no-config",
        action="store_true",
        help="Ignore any config file.",
    )
    extract_parser.add_argument(
        "--log-file",
        default=None,
        help="Also write debug logs to this file.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for blueprint commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    except ConfigurationError as exc:
        parser.exit(1, f"{exc}\n")

    orchestrator = Orchestrator()

    if args.command == "extract":
        request = ExtractRequest(
            path=args.path,
            output=args.output,
            format=args.format,
            namespace=args.namespace,
            exclude=list(args.exclude),
            include_private=bool(args.include_private),
            include_internal=bool(args.include_internal),
            short_docs=bool(args.short_docs),
            compact_enums=args.compact_enums,
            reference_paths=list(args.reference_path),
            config_path=args.config,
            use_config=not args.no_config,
        )
        try:
            config = orchestrator.load_config(request)
            if config is not None and config.log_file is not None and args.log_file is None:
                configure_logging(verbose=bool(args.verbose), log_file=config.log_file)
            outcome = orchestrator.run_extract(request, config)
        except (ConfigurationError, DiscoveryError, SerializationError) as exc:
            parser.exit(1, f"{exc}\n")
        except BlueprintError as exc:
            parser.exit(1, f"blueprint extract failed: {exc}\nRun with --verbose for more details.\n")
        print(
            f"Extracted {outcome.count} classes → {outcome.primary_output} ({format_size(outcome.size)})"
        )
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
