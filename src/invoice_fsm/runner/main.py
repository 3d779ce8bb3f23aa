"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from ..config import Config, create_default_config, load_config
from ..machine import DEFAULT_TRANSITIONS, build_driver, to_dot, to_mermaid
from ..schemas import ParseResult, SemanticStatus

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_MISMATCH = 2


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="invoice-fsm",
        description="Parse structured invoice text with a finite-state machine",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Parse an invoice text file")
    parse_parser.add_argument("file", type=Path, help="Invoice text file")
    parse_parser.add_argument(
        "--json",
        action="store_true",
        help="Print record and verdict as JSON",
    )
    parse_parser.add_argument(
        "--encoding",
        type=str,
        default="utf-8",
        help="Text encoding of the file (default: utf-8)",
    )

    # graph command
    graph_parser = subparsers.add_parser("graph", help="Print the transition table as a diagram")
    graph_parser.add_argument(
        "--format",
        choices=["dot", "mermaid"],
        default="dot",
        help="Diagram format (default: dot)",
    )

    # init command
    init_parser = subparsers.add_parser("init", help="Write a default config file")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )

    return parser


def exit_code_for(result: ParseResult) -> int:
    """0 when valid, 2 when valid but totals disagree, 1 when invalid."""
    verdict = result.verdict
    if not verdict.is_valid:
        return EXIT_INVALID
    if verdict.semantic_mismatch:
        return EXIT_MISMATCH
    return EXIT_OK


def print_summary(result: ParseResult) -> None:
    record, verdict = result

    if record.title:
        print(f"📄 {record.title}")
    for key, value in record.header.items():
        print(f"  {key}: {value}")

    print(f"\n  {len(record.entries)} entr{'y' if len(record.entries) == 1 else 'ies'}")
    for entry in record.entries:
        rate = f" @ {entry.exchange_rate}" if entry.exchange_rate is not None else ""
        print(
            f"  {entry.position:>3}. {entry.description[:40]:<40} "
            f"{entry.amount:>12} {entry.currency}{rate}"
        )

    if record.total is not None:
        print(f"\n  Total: {record.total} {record.total_currency or ''}")

    if verdict.is_valid:
        print("\n✓ Structurally valid")
    else:
        where = f" at line {verdict.line_index + 1}" if verdict.line_index is not None else ""
        state = verdict.last_state.value if verdict.last_state else "?"
        print(f"\n❌ {verdict.error.value}{where} (state {state}): {verdict.reason}")

    semantic = verdict.semantic
    if semantic is not None:
        if semantic.is_mismatch:
            print(f"⚠ Total mismatch: entries sum to {semantic.expected}, stated {semantic.actual}")
        elif semantic.status == SemanticStatus.UNVERIFIABLE:
            print(f"⚠ Total not verifiable: {semantic.reason}")
        else:
            print("✓ Total matches entries")


def cmd_parse(config: Config, file: Path, as_json: bool = False, encoding: str = "utf-8") -> int:
    """Parse one invoice text file."""
    try:
        text = file.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        print(f"❌ Cannot read {file}: {e}")
        return EXIT_INVALID

    driver = build_driver(config)
    result = driver.parse_text(text)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_summary(result)

    return exit_code_for(result)


def cmd_init(config_path: Path, force: bool = False) -> int:
    """Write the default configuration file."""
    if config_path.exists() and not force:
        print(f"❌ {config_path} already exists (use --force to overwrite)")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote {config_path}")
    return EXIT_OK


def cmd_graph(fmt: str = "dot") -> int:
    """Print the default transition table."""
    if fmt == "mermaid":
        print(to_mermaid(DEFAULT_TRANSITIONS), end="")
    else:
        print(to_dot(DEFAULT_TRANSITIONS), end="")
    return EXIT_OK


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init":
        return cmd_init(parsed.config, parsed.force)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    # Route to command
    if parsed.command == "parse":
        return cmd_parse(config, parsed.file, parsed.json, parsed.encoding)
    elif parsed.command == "graph":
        return cmd_graph(parsed.format)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
