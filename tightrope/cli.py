"""Command-line entry point for the configuration auditor."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from tightrope.engine import Engine
from tightrope.parser import ParseError, Parser
from tightrope.report import Generator
from tightrope.types import OUTPUT_FORMATS, FORMAT_MARKDOWN, ConfigData, Severity
from tightrope.walker import Walker, get_relative_path

VERSION = "v0.1.0"

logger = logging.getLogger(__name__)

_ROOT_DESCRIPTION = """\
Tightrope is a minimalist, enterprise-grade configuration auditor that
recursively scans directories for common config files and detects various
configuration issues including key conflicts, shadowing, secrets in plain text,
deprecated fields, and redundant values."""

_AUDIT_DESCRIPTION = """\
Recursively scan a directory for configuration files (*.yaml, *.yml, *.json, *.toml)
and audit them for common issues:

- Key Conflicts: Identical keys with differing values across files
- Shadowing: Same key repeated in nested scopes within a file
- Secrets in Plain Text: Detect passwords, tokens, or API keys using heuristics
- Deprecated Fields: Match against built-in list of deprecated keys
- Redundant Values: Flag identical key-value pairs repeated across files

Examples:
  tightrope audit                           # Audit current directory
  tightrope audit --path /path/to/configs   # Audit specific directory
  tightrope audit --format json             # Output as JSON
  tightrope audit --format html > report.html # Generate HTML report"""

_HELP_DESCRIPTION = """\
Help provides help for any command in the application.
Simply type tightrope help [path to command] for full details.

AUDIT RULES:
  Key Conflicts      - Identical keys with different values across files
  Shadowing         - Same key repeated in nested scopes within a file
  Secrets in Plain  - Potential secrets detected using pattern matching
  Deprecated Fields - Usage of deprecated configuration fields
  Redundant Values  - Identical key-value pairs across multiple files

SUPPORTED FORMATS:
  YAML (.yaml, .yml)  - YAML configuration files
  JSON (.json)        - JSON configuration files
  TOML (.toml)        - TOML configuration files

OUTPUT FORMATS:
  markdown (default)  - Human-readable Markdown format
  json               - Machine-readable JSON format
  html               - Rich HTML format for web viewing

EXAMPLES:
  tightrope audit                          # Audit current directory, output Markdown
  tightrope audit --path ./configs         # Audit specific directory
  tightrope audit --format json            # Output JSON to stdout
  tightrope audit --format html > report.html  # Generate HTML report file
  tightrope audit --verbose               # Enable detailed logging"""


class _StderrHandler(logging.Handler):
    """Writes log records to whatever sys.stderr currently is."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            sys.stderr.write(self.format(record) + "\n")
        except Exception:
            self.handleError(record)


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("tightrope")
    if not any(isinstance(h, _StderrHandler) for h in package_logger.handlers):
        handler = _StderrHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _parse_all(files: Sequence[str], root: str) -> list[ConfigData]:
    parser = Parser()
    configs: list[ConfigData] = []
    failures = 0
    for file_path in files:
        try:
            rel_path = get_relative_path(root, file_path)
        except ValueError as exc:
            logger.warning("Failed to get relative path for %s: %s", file_path, exc)
            rel_path = file_path
        try:
            config = parser.parse_file(file_path)
        except ParseError as exc:
            logger.error("Failed to parse configuration file %s: %s", rel_path, exc)
            failures += 1
            continue
        config.file_path = rel_path
        configs.append(config)

    if failures:
        logger.warning("Some files failed to parse: %d of %d", failures, len(files))
    return configs


def run_audit(path: str = ".", output_format: str = FORMAT_MARKDOWN, verbose: bool = False) -> int:
    """Audit the configuration files under path and print the report.

    Returns 1 when critical findings were reported and 0 otherwise.
    Raises ValueError for a bad format or when nothing could be parsed,
    and FileNotFoundError when the path does not exist.
    """
    _configure_logging(verbose)

    if output_format not in OUTPUT_FORMATS:
        raise ValueError(
            f"unsupported output format: {output_format} (supported: markdown, json, html)"
        )
    if not os.path.exists(path):
        raise FileNotFoundError(f"scan path does not exist: {path}")

    abs_path = os.path.abspath(path)
    logger.info("Starting configuration audit: path=%s format=%s", abs_path, output_format)

    logger.info("Discovering configuration files...")
    files = Walker().walk(abs_path)
    if not files:
        logger.warning("No configuration files found")
        print("No configuration files found in the specified path.")
        return 0
    logger.info("Configuration files discovered: %d", len(files))

    logger.info("Parsing configuration files...")
    configs = _parse_all(files, abs_path)
    if not configs:
        raise ValueError("no configuration files could be parsed successfully")
    logger.info("Configuration files parsed successfully: %d", len(configs))

    logger.info("Running configuration audit...")
    report = Engine().audit_configs(configs, abs_path)

    logger.info("Generating audit report (%s)...", output_format)
    print(Generator().generate_report(report, output_format), end="")

    by_severity = report.summary.findings_by_severity
    critical = by_severity.get(Severity.CRITICAL, 0)
    logger.info(
        "Audit completed: findings=%d files_scanned=%d critical=%d warning=%d info=%d",
        report.summary.total_findings,
        report.files_scanned,
        critical,
        by_severity.get(Severity.WARNING, 0),
        by_severity.get(Severity.INFO, 0),
    )
    return 1 if critical > 0 else 0


def _build_parser() -> tuple[argparse.ArgumentParser, dict[str, argparse.ArgumentParser]]:
    raw = argparse.RawDescriptionHelpFormatter
    root = argparse.ArgumentParser(
        prog="tightrope", description=_ROOT_DESCRIPTION, formatter_class=raw
    )
    root.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    subcommands = root.add_subparsers(dest="command", metavar="command")

    audit = subcommands.add_parser(
        "audit",
        help="Audit configuration files in a directory",
        description=_AUDIT_DESCRIPTION,
        formatter_class=raw,
    )
    audit.add_argument(
        "-p", "--path", default=".", help="Directory to scan for configuration files"
    )
    audit.add_argument(
        "-f",
        "--format",
        dest="output_format",
        default=FORMAT_MARKDOWN,
        help="Output format: markdown, json, html",
    )
    audit.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable verbose logging",
    )

    version = subcommands.add_parser(
        "version",
        help="Display version information",
        description="Display the current version of tightrope",
    )

    help_parser = subcommands.add_parser(
        "help",
        help="Help about any command or detailed usage information",
        description=_HELP_DESCRIPTION,
        formatter_class=raw,
    )
    help_parser.add_argument("topic", nargs="*")

    return root, {"audit": audit, "version": version, "help": help_parser}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the process exit status."""
    root, commands = _build_parser()
    args = root.parse_args(argv)

    if args.command is None:
        root.print_help()
        return 0
    if args.command == "version":
        print(f"tightrope {VERSION}")
        return 0
    if args.command == "help":
        if not args.topic:
            root.print_help()
        elif args.topic[0] in commands:
            commands[args.topic[0]].print_help()
        else:
            print(f"Unknown command: {args.topic[0]}")
            root.print_help()
        return 0

    try:
        return run_audit(args.path, args.output_format, args.verbose)
    except (ValueError, OSError, ParseError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())