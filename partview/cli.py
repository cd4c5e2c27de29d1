"""CLI entry point for partview.

Provides ``partview serve``, ``partview normalize`` and
``partview parse-diff``.

``load_config()`` must run before importing ``partview.main`` because that
module calls ``configure_logging()`` at import time.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point (``partview`` command)."""
    parser = argparse.ArgumentParser(
        prog="partview",
        description="partview: normalize agent tool parts and unified diffs",
    )
    sub = parser.add_subparsers(dest="command")

    serve_parser = sub.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to bind to")

    normalize_parser = sub.add_parser(
        "normalize", help="Normalize tool parts read as JSON or JSONL"
    )
    normalize_parser.add_argument("file", nargs="?", default="-", help="Input file (default: stdin)")

    parse_parser = sub.add_parser("parse-diff", help="Summarize a unified diff")
    parse_parser.add_argument("file", nargs="?", default="-", help="Input file (default: stdin)")
    parse_parser.add_argument("--json", action="store_true", help="Print the parsed diff as JSON")

    args = parser.parse_args(argv)

    if args.command == "serve":
        _run_serve(args)
    elif args.command == "normalize":
        _run_normalize(args)
    elif args.command == "parse-diff":
        _run_parse_diff(args)
    else:
        parser.print_help()
        sys.exit(1)


def _run_serve(args: argparse.Namespace) -> None:
    """Handle ``partview serve``."""
    if args.host:
        os.environ["PARTVIEW_HOST"] = args.host
    if args.port:
        os.environ["PARTVIEW_PORT"] = str(args.port)

    from partview.config import load_config

    problems = load_config()

    from partview.main import run

    _report_config(problems)
    run()


def _report_config(problems: list[str]) -> None:
    """Log configuration problems; call only after logging is configured."""
    import structlog

    logger = structlog.get_logger(__name__)
    for problem in problems:
        logger.warning("Ignoring invalid setting", problem=problem)


def _setup_offline() -> None:
    """Load config and send logs to stderr so stdout only carries results."""
    from partview.config import load_config
    from partview.log_config import configure_logging

    problems = load_config()
    configure_logging(stream=sys.stderr)
    _report_config(problems)


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        print(f"partview: cannot read {path}: {exc.strerror}", file=sys.stderr)
        sys.exit(2)


def load_parts(text: str) -> list[Any]:
    """Decode a JSON object, a JSON array of objects, or JSON Lines.

    Raises:
        ValueError: If the text is neither valid JSON nor valid JSON Lines.
    """
    try:
        decoded = json.loads(text)
    except RecursionError as exc:
        raise ValueError("input is nested too deeply") from exc
    except json.JSONDecodeError:
        parts = []
        for number, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                parts.append(json.loads(line))
            except RecursionError as exc:
                raise ValueError(f"line {number}: nested too deeply") from exc
            except json.JSONDecodeError as exc:
                raise ValueError(f"line {number}: {exc.msg}") from exc
        return parts
    if isinstance(decoded, list):
        return decoded
    return [decoded]


def _run_normalize(args: argparse.Namespace) -> None:
    """Handle ``partview normalize``."""
    _setup_offline()

    from partview.settings import settings
    from partview.tools import normalize_tool_part

    try:
        parts = load_parts(_read_input(args.file))
    except ValueError as exc:
        print(f"partview: invalid JSON input: {exc}", file=sys.stderr)
        sys.exit(2)

    results = []
    for index, part in enumerate(parts):
        if not isinstance(part, dict):
            print(f"partview: part {index} is not a JSON object", file=sys.stderr)
            sys.exit(2)
        detail = normalize_tool_part(part, max_diff_size=settings.diff_max_chars())
        results.append(detail.model_dump(mode="json"))

    payload = results[0] if len(results) == 1 else results
    print(json.dumps(payload, indent=2))


def _run_parse_diff(args: argparse.Namespace) -> None:
    """Handle ``partview parse-diff``."""
    _setup_offline()

    from partview.diff import (
        extract_diff_paths,
        format_diff_stats,
        is_diff_too_large,
        parse_diff,
    )
    from partview.settings import settings

    text = _read_input(args.file)
    max_size = settings.diff_max_chars()
    if is_diff_too_large(text, max_size):
        print(
            f"partview: diff is too large to parse ({len(text)} > {max_size} characters)",
            file=sys.stderr,
        )
        sys.exit(1)

    parsed = parse_diff(text)
    if args.json:
        print(parsed.model_dump_json(indent=2))
        return

    if not parsed.files:
        for path in extract_diff_paths(text):
            print(f"{path}\t(unparsed)")
        return

    for diff_file in parsed.files:
        flags = [
            name
            for name, enabled in (
                ("new", diff_file.is_new),
                ("deleted", diff_file.is_deleted),
                ("renamed", diff_file.is_renamed),
                ("binary", diff_file.is_binary),
            )
            if enabled
        ]
        line = f"{diff_file.display_path}\t{format_diff_stats(diff_file.additions, diff_file.deletions)}"
        if flags:
            line += f"\t[{', '.join(flags)}]"
        print(line)
    print(f"total\t{format_diff_stats(parsed.total_additions, parsed.total_deletions)}")


if __name__ == "__main__":
    main()
