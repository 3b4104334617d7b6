"""
Command-line interface for content moderation.

Runs text through the same fallback chain as the API and prints the verdict as JSON.

Usage:
    # Single text
    python -m content_moderation.cli.moderate "check this out discord.gg/abc123"

    # Whole file as one submission
    python -m content_moderation.cli.moderate --file description.txt

    # One submission per line from stdin, JSON Lines output
    cat comments.txt | python -m content_moderation.cli.moderate --lines

    # Keyword filter only (no provider calls)
    python -m content_moderation.cli.moderate "some text" --local-only

Exit status: 0 nothing flagged, 1 at least one submission flagged, 2 usage error.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO

import structlog

from content_moderation.logging_config import setup_logging
from content_moderation.moderation.engine import EngineConfig, ModerationEngine, build_engine
from content_moderation.moderation.schemas import ModerationResult


logger = structlog.get_logger(__name__)

EXIT_CLEAN = 0
EXIT_FLAGGED = 1
EXIT_USAGE = 2


# ============================================================================
# CLI FUNCTIONS
# ============================================================================

def read_submissions(
    text: Optional[str],
    file_path: Optional[Path],
    split_lines: bool,
    stdin: TextIO
) -> List[str]:
    """
    Collect the submissions to moderate.

    Args:
        text: Positional text argument
        file_path: File to read instead of text
        split_lines: Treat every non-empty line as its own submission
        stdin: Fallback input stream when neither text nor file is given

    Returns:
        List of content strings
    """
    if text is not None:
        raw = text
    elif file_path is not None:
        raw = file_path.read_text(encoding="utf-8")
    else:
        raw = stdin.read()

    if not split_lines:
        return [raw]

    return [line for line in raw.splitlines() if line.strip()]


def moderate_all(engine: ModerationEngine, submissions: Iterable[str]) -> List[ModerationResult]:
    return [engine.moderate(content) for content in submissions]


def write_results(results: Sequence[ModerationResult], out: TextIO, pretty: bool = False, jsonl: bool = False):
    """
    Write results as JSON.

    Args:
        results: Moderation results
        out: Output stream
        pretty: Indent JSON output
        jsonl: One JSON object per line (used with --lines)
    """
    dumped = [result.model_dump(mode="json") for result in results]

    if jsonl:
        for item in dumped:
            out.write(json.dumps(item, ensure_ascii=False) + "\n")
    elif len(dumped) == 1:
        out.write(json.dumps(dumped[0], ensure_ascii=False, indent=2 if pretty else None) + "\n")
    else:
        out.write(json.dumps(dumped, ensure_ascii=False, indent=2 if pretty else None) + "\n")


# ============================================================================
# MAIN CLI
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content-moderation",
        description="Content Moderation CLI - classify text through the provider fallback chain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "I hate you, you racist"
  %(prog)s --file description.txt --pretty
  cat comments.txt | %(prog)s --lines
  %(prog)s "some text" --local-only

Providers are configured through the environment:
  PRIMARY_API_KEY      OpenAI moderation (stage skipped when empty)
  SECONDARY_API_KEY    Perspective (stage skipped when empty)
        """
    )

    parser.add_argument(
        "text",
        nargs="?",
        default=None,
        help="Text to moderate (default: read from --file or stdin)"
    )

    parser.add_argument(
        "--file",
        "-f",
        type=str,
        default=None,
        help="Read content from a UTF-8 text file"
    )

    parser.add_argument(
        "--lines",
        "-l",
        action="store_true",
        help="Moderate every non-empty line separately, output JSON Lines"
    )

    parser.add_argument(
        "--local-only",
        action="store_true",
        help="Skip network providers and use the local keyword filter"
    )

    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output"
    )

    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None
) -> int:
    """Main CLI entry point. Returns the process exit status."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    # Logs on stderr so stdout stays machine-readable
    setup_logging(stream=sys.stderr)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.text is not None and args.file is not None:
        print("Error: pass either TEXT or --file, not both", file=sys.stderr)
        return EXIT_USAGE

    file_path = Path(args.file) if args.file else None
    if file_path is not None and not file_path.is_file():
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return EXIT_USAGE

    try:
        submissions = read_submissions(args.text, file_path, args.lines, stdin)
    except UnicodeDecodeError as e:
        source = file_path if file_path is not None else "stdin"
        print(f"Error: {source} is not valid UTF-8 ({e.reason} at byte {e.start})", file=sys.stderr)
        return EXIT_USAGE

    config = EngineConfig.local_only() if args.local_only else None
    with build_engine(config) as engine:
        results = moderate_all(engine, submissions)

    write_results(results, stdout, pretty=args.pretty, jsonl=args.lines)

    flagged_count = sum(1 for result in results if result.flagged)
    logger.info(
        "cli_moderation_completed",
        submissions=len(results),
        flagged=flagged_count
    )

    return EXIT_FLAGGED if flagged_count else EXIT_CLEAN


if __name__ == "__main__":
    sys.exit(main())
