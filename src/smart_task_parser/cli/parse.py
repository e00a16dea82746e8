"""
Command-line interface for task text parsing.

Parses task text and prints the ParseResult (or the per-recognizer debug
report) as JSON.

Usage:
    # Single text
    python -m smart_task_parser.cli.parse "p1 meeting tomorrow at 3pm"

    # One text per stdin line, JSONL output
    cat tasks.txt | python -m smart_task_parser.cli.parse

    # Raw recognizer output before conflict resolution
    python -m smart_task_parser.cli.parse "urgent high priority task" --debug

    # Pin the reference time for relative dates
    python -m smart_task_parser.cli.parse "friday" --now 2026-01-05T09:00:00
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

import structlog

from smart_task_parser.config import settings
from smart_task_parser.logging_config import setup_logging
from smart_task_parser.pipeline import SmartParser, create_default_parser
from smart_task_parser.version import __version__, get_current_pipeline_version


logger = structlog.get_logger(__name__)


# ============================================================================
# CLI FUNCTIONS
# ============================================================================

def build_parser(now: Optional[datetime] = None, use_ner: bool = True) -> SmartParser:
    """
    Build the default pipeline for CLI use.

    Args:
        now: Fixed reference time for relative dates (None = system clock)
        use_ner: Load the spaCy model for named entities

    Returns:
        Configured SmartParser
    """
    config = settings.model_copy(update={"entity_enable_ner": settings.entity_enable_ner and use_ner})
    clock = (lambda: now) if now is not None else None
    return create_default_parser(config, clock=clock)


def process_texts(parser: SmartParser, texts: Sequence[str], debug: bool = False) -> List[dict]:
    """
    Parse each text and return JSON-ready dicts.

    Args:
        parser: Pipeline to run
        texts: Input texts
        debug: Return per-recognizer raw output instead of resolved results

    Returns:
        One dict per text, with the input under "text"
    """
    results = []
    for text in texts:
        if debug:
            payload = parser.test_parse(text).model_dump(mode="json")
        else:
            payload = parser.parse(text).model_dump(mode="json")
        results.append({"text": text, **payload})
    return results


def write_output(results: List[dict], output: TextIO, format: str = "json") -> None:
    """
    Write results as pretty JSON (single result or list) or JSONL.
    """
    if format == "jsonl":
        for result in results:
            output.write(json.dumps(result, ensure_ascii=False) + "\n")
    else:
        payload = results[0] if len(results) == 1 else results
        output.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")


def read_texts(args_text: Sequence[str], stdin: TextIO) -> List[str]:
    """Texts from arguments (joined) or from stdin, one per non-empty line."""
    if args_text:
        return [" ".join(args_text)]
    return [line.rstrip("\n") for line in stdin if line.strip()]


# ============================================================================
# MAIN CLI
# ============================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Smart Task Parser CLI - Extract dates, priorities and entities from task text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single text
  %(prog)s "p1 meeting tomorrow at 3pm"

  # Read one text per line from stdin
  cat tasks.txt | %(prog)s --format jsonl

  # Inspect raw recognizer output
  %(prog)s "urgent high priority task" --debug

  # Skip the spaCy model
  %(prog)s "lunch with Anna at the mall" --no-ner
        """,
    )

    parser.add_argument(
        "text",
        nargs="*",
        help="Task text to parse (default: read one text per line from stdin)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show raw output per recognizer, before conflict resolution",
    )

    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Reference time for relative dates, ISO format (default: system clock)",
    )

    parser.add_argument(
        "--no-ner",
        action="store_true",
        help="Disable spaCy named-entity recognition",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Output file path (default: stdout)",
    )

    parser.add_argument(
        "--format",
        "-f",
        type=str,
        choices=["json", "jsonl"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__} ({get_current_pipeline_version().to_repr()})",
    )

    args = parser.parse_args(argv)

    setup_logging()

    texts = read_texts(args.text, sys.stdin)
    if not texts:
        print("Error: no input text", file=sys.stderr)
        return 1

    try:
        smart_parser = build_parser(now=args.now, use_ner=not args.no_ner)
        results = process_texts(smart_parser, texts, debug=args.debug)

        if args.output:
            output_path = Path(args.output)
            with open(output_path, "w", encoding="utf-8") as f:
                write_output(results, f, args.format)
            logger.info("output_written", path=str(output_path), count=len(results))
        else:
            write_output(results, sys.stdout, args.format)

    except Exception as e:
        logger.error("cli_failed", error=str(e), exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
