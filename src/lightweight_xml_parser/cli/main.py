"""Main CLI entry point for the ``lightweight-xml`` command-line tool.

Commands:
    parse    Parse files and report a summary, JSON, or re-serialised markup
    dtd      Ask a DTD whether a child element may repeat inside a parent
    profile  Print a stage-by-stage profile of one parse as JSON
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from lightweight_xml_parser import __version__
from lightweight_xml_parser.api import FileResourceLoader, parse_dtd, parse_file
from lightweight_xml_parser.shared import ConfigError, DiagnosticSeverity, ParserConfig
from lightweight_xml_parser.shared.logging import get_logger
from lightweight_xml_parser.tools import ParseProfiler

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

MAX_ERRORS_SHOWN = 3


class XMLProcessor:
    """Parses files for the CLI with one configuration."""

    def __init__(self, config: ParserConfig, dtd_dir: Optional[Path] = None):
        self.config = config
        self.dtd_dir = dtd_dir
        self.logger = get_logger(__name__, config.correlation_id, "cli_processor")

    def _loader_for(self, file_path: Path) -> Optional[FileResourceLoader]:
        if not self.config.load_external_dtd:
            return None
        base_dir = self.dtd_dir or file_path.parent
        return FileResourceLoader(base_dir, correlation_id=self.config.correlation_id)

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Parse one file and return a JSON-friendly summary."""
        result = parse_file(file_path, self._loader_for(file_path), self.config)
        document = result.document

        summary: Dict[str, Any] = {
            "file": str(file_path),
            "success": result.success,
            "element_count": result.element_count,
            "processing_time_ms": result.processing_time_ms,
            "errors": list(result.errors),
            "warnings": [
                diag.message
                for diag in result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
            ],
        }
        if document is not None:
            summary["metadata"] = {
                "version": document.version,
                "encoding": document.encoding,
                "doctype": document.doctype.name or None,
                "root": getattr(document.get_root_element(), "name", None),
            }
            summary["document"] = document

        self.logger.bind(source=str(file_path)).info(
            "Processed file",
            extra={"success": result.success, "element_count": result.element_count}
        )
        return summary


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="lightweight-xml",
        description="Lightweight XML parser with DTD content-model queries"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse XML files")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files to parse"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "text", "xml"],
        default="text",
        help="Output format (default: text)"
    )
    parse_parser.add_argument(
        "--no-dtd",
        action="store_true",
        help="Do not load external DTD subsets"
    )
    parse_parser.add_argument(
        "--dtd-dir",
        type=Path,
        help="Directory external DTDs are resolved against (default: the file's directory)"
    )

    # DTD command
    dtd_parser = subparsers.add_parser("dtd", help="Query a DTD content model")
    dtd_parser.add_argument("path", type=Path, help="DTD file")
    dtd_parser.add_argument("--element", "-e", required=True, help="Parent element name")
    dtd_parser.add_argument("--child", required=True, help="Child element name")

    # Profile command
    profile_parser = subparsers.add_parser("profile", help="Profile parsing of a file")
    profile_parser.add_argument("path", type=Path, help="XML file to profile")

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing results for output."""
    if format_type == "json":
        return json.dumps(
            [{k: v for k, v in r.items() if k != "document"} for r in results],
            indent=2
        )

    if format_type == "xml":
        parts = []
        for result in results:
            document = result.get("document")
            if document is not None:
                parts.append(document.to_string(declaration=True))
        return "".join(parts).rstrip("\n")

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r["success"])
    lines.append(f"Processed {len(results)} files, {successful} successful")
    lines.append("-" * 60)

    for result in results:
        status = "OK  " if result["success"] else "FAIL"
        lines.append(f"{status} {result['file']}")
        lines.append(
            f"   Elements: {result['element_count']}, "
            f"Time: {result['processing_time_ms']:.1f}ms"
        )
        errors = result["errors"]
        for error in errors[:MAX_ERRORS_SHOWN]:
            lines.append(f"   Error: {error}")
        if len(errors) > MAX_ERRORS_SHOWN:
            lines.append(f"   ... and {len(errors) - MAX_ERRORS_SHOWN} more errors")
        for warning in result["warnings"]:
            lines.append(f"   Warning: {warning}")
        lines.append("")

    return "\n".join(lines)


def load_config(args: argparse.Namespace) -> ParserConfig:
    """Build the parser configuration from ``--config`` and command flags."""
    config = ParserConfig.from_json_file(args.config) if args.config else ParserConfig()
    if getattr(args, "no_dtd", False):
        config = config.override(load_external_dtd=False)
    return config


def cmd_parse(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle parse command."""
    processor = XMLProcessor(config, args.dtd_dir)
    results = [processor.process_single_file(path) for path in args.paths]

    print(format_results(results, args.format))

    if args.format == "xml":
        for result in results:
            for error in result["errors"]:
                print(f"{result['file']}: {error}", file=sys.stderr)

    return EXIT_OK if all(r["success"] for r in results) else EXIT_FAILURE


def cmd_dtd(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle dtd command."""
    try:
        data = args.path.read_bytes()
    except OSError as e:
        print(f"Could not read {args.path}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    result = parse_dtd(data, correlation_id=config.correlation_id)
    if not result.success:
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
        return EXIT_FAILURE

    if args.element not in result.doctype:
        print(f"Element '{args.element}' is not declared in {args.path}", file=sys.stderr)
        return EXIT_FAILURE

    is_array = result.doctype.is_element_an_array(args.element, args.child)
    print(json.dumps({
        "element": args.element,
        "child": args.child,
        "model": result.doctype.to_dict()["elements"][args.element],
        "is_array": is_array,
    }, indent=2))
    return EXIT_OK


def cmd_profile(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle profile command."""
    profiler = ParseProfiler(config=config.override(load_external_dtd=False))
    try:
        report = profiler.profile_file(args.path)
    except OSError as e:
        print(f"Could not read {args.path}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(json.dumps(report.to_dict(), indent=2))
    return EXIT_OK if report.success else EXIT_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    commands = {
        "parse": cmd_parse,
        "dtd": cmd_dtd,
        "profile": cmd_profile,
    }
    try:
        return commands[args.command](args, config)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
