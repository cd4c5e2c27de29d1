"""Helpers for parsing unified diffs into UI-friendly structures.

Covers the structured parser, a cheap regex fallback that only pulls file
paths out of diff-like text (unified and Codex patch headers), a synthesizer
that renders two file snapshots as unified diff text, and the display-safety
helpers used before anything large is parsed or rendered.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from partview.models import DiffFile, DiffHunk, DiffLine, DiffLineKind, ParsedDiff

MAX_DIFF_SIZE = 250_000
SYNTHESIZED_CONTEXT_RUN = 20
DEV_NULL = "/dev/null"

_GIT_HEADER_RE = re.compile(r"diff --git a/(.+?) b/(.+)$")
_OLD_PATH_RE = re.compile(r"---\s+(?:a/)?(.+)$")
_NEW_PATH_RE = re.compile(r"\+\+\+\s+(?:b/)?(.+)$")
_HUNK_HEADER_RE = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_UNIFIED_PATH_RE = re.compile(r"^(?:---|\+\+\+)\s+(?:[ab]/)?(.+)$")
_CODEX_PATH_RE = re.compile(r"^\*\*\*\s+(?:(?:Add|Update|Delete)\s+File|Move\s+to):\s+(.+)$")


_RENAME_HEADERS = (("rename from", "old_path"), ("rename to", "new_path"))


def _expects_old(hunk: dict[str, Any] | None, old_num: int) -> bool:
    return hunk is not None and old_num < hunk["old_start"] + hunk["old_lines"]


def _expects_new(hunk: dict[str, Any] | None, new_num: int) -> bool:
    return hunk is not None and new_num < hunk["new_start"] + hunk["new_lines"]


def _new_file(header: str) -> dict[str, Any]:
    match = _GIT_HEADER_RE.match(header)
    return {
        "old_path": match.group(1) if match else "",
        "new_path": match.group(2) if match else "",
        "hunks": [],
        "additions": 0,
        "deletions": 0,
        "is_binary": False,
        "is_new": False,
        "is_deleted": False,
        "is_renamed": False,
    }


def _finalize_hunk(hunk: dict[str, Any]) -> DiffHunk:
    return DiffHunk(
        old_start=hunk["old_start"],
        old_lines=hunk["old_lines"],
        new_start=hunk["new_start"],
        new_lines=hunk["new_lines"],
        lines=hunk["lines"],
    )


def parse_diff(raw: str) -> ParsedDiff:
    """Parse a unified diff into per-file hunks with add/delete counts.

    The parser is lenient: text before the first ``diff --git`` header is
    skipped, unknown lines are ignored and malformed input yields an empty
    result rather than an error.

    Args:
        raw: Unified diff text, possibly covering several files.
    """
    if not raw or not raw.strip():
        return ParsedDiff()

    files: list[DiffFile] = []
    current: dict[str, Any] | None = None
    hunk: dict[str, Any] | None = None
    old_num = 0
    new_num = 0

    def flush_hunk() -> None:
        nonlocal hunk
        if current is not None and hunk is not None:
            current["hunks"].append(_finalize_hunk(hunk))
        hunk = None

    lines = raw.split("\n")
    # The final newline of the text does not start another (context) line.
    if lines[-1] == "":
        lines.pop()

    for line in lines:
        if line.startswith("diff --git"):
            flush_hunk()
            if current is not None:
                files.append(DiffFile(**current))
            current = _new_file(line)
            continue

        if current is None:
            continue

        # A "---"/"+++" line inside a hunk that still expects lines on that
        # side is content ("-- comment" removed), not a file header.
        if line.startswith("---") and not _expects_old(hunk, old_num):
            match = _OLD_PATH_RE.match(line)
            if match:
                path = match.group(1).strip()
                current["old_path"] = "" if path == DEV_NULL else path
                if path == DEV_NULL:
                    current["is_new"] = True
            continue

        if line.startswith("+++") and not _expects_new(hunk, new_num):
            match = _NEW_PATH_RE.match(line)
            if match:
                path = match.group(1).strip()
                current["new_path"] = "" if path == DEV_NULL else path
                if path == DEV_NULL:
                    current["is_deleted"] = True
            continue

        if "Binary files" in line and not (
            _expects_old(hunk, old_num) or _expects_new(hunk, new_num)
        ):
            current["is_binary"] = True
            continue

        rename = next((h for h in _RENAME_HEADERS if line.startswith(h[0])), None)
        if rename is not None:
            prefix, key = rename
            current["is_renamed"] = True
            name = line[len(prefix):].strip()
            if name:
                current[key] = name
            continue

        if line.startswith("@@"):
            flush_hunk()
            match = _HUNK_HEADER_RE.search(line)
            if match:
                # Omitted counts mean a single line.
                hunk = {
                    "old_start": int(match.group(1)),
                    "old_lines": int(match.group(2)) if match.group(2) is not None else 1,
                    "new_start": int(match.group(3)),
                    "new_lines": int(match.group(4)) if match.group(4) is not None else 1,
                    "lines": [],
                }
                old_num = hunk["old_start"]
                new_num = hunk["new_start"]
            continue

        if hunk is None:
            continue

        if line.startswith("+"):
            hunk["lines"].append(
                DiffLine(kind=DiffLineKind.ADD, content=line[1:], new_line_number=new_num)
            )
            new_num += 1
            current["additions"] += 1
        elif line.startswith("-"):
            hunk["lines"].append(
                DiffLine(kind=DiffLineKind.REMOVE, content=line[1:], old_line_number=old_num)
            )
            old_num += 1
            current["deletions"] += 1
        elif line.startswith(" ") or line == "":
            hunk["lines"].append(
                DiffLine(
                    kind=DiffLineKind.CONTEXT,
                    content=line[1:],
                    old_line_number=old_num,
                    new_line_number=new_num,
                )
            )
            old_num += 1
            new_num += 1

    flush_hunk()
    if current is not None:
        files.append(DiffFile(**current))

    return ParsedDiff(
        files=files,
        total_additions=sum(f.additions for f in files),
        total_deletions=sum(f.deletions for f in files),
    )


def extract_diff_paths(raw: str) -> list[str]:
    """Return the file paths named in diff-like text, in first-seen order.

    Used when the structured parser cannot make sense of the text, e.g. for
    Codex ``*** Update File:`` patches. ``/dev/null`` is never reported.
    """
    if not raw:
        return []

    paths: dict[str, None] = {}
    for line in raw.split("\n"):
        unified = _UNIFIED_PATH_RE.match(line)
        if unified:
            path = unified.group(1).strip()
            if path and path != DEV_NULL:
                paths.setdefault(path)
            continue

        codex = _CODEX_PATH_RE.match(line)
        if codex:
            path = codex.group(1).strip()
            if path:
                paths.setdefault(path)

    return list(paths)


def format_diff_stats(additions: int, deletions: int) -> str:
    """Format add/delete counts as ``+A, -D`` (or ``No changes``)."""
    parts = []
    if additions > 0:
        parts.append(f"+{additions}")
    if deletions > 0:
        parts.append(f"-{deletions}")
    return ", ".join(parts) or "No changes"


def is_diff_too_large(raw: str, max_size: int = MAX_DIFF_SIZE) -> bool:
    """Return True if the diff is too large to parse or render."""
    return len(raw) > max_size


def truncate_diff(raw: str, max_size: int = MAX_DIFF_SIZE) -> str:
    """Cut an oversized diff at ``max_size`` and append a truncation marker.

    Text at or below the limit is returned unchanged. The result is always
    shorter than the input.
    """
    if len(raw) <= max_size:
        return raw
    marker = f"\n\n[... diff truncated at {max_size} characters ...]"
    cut = max(0, min(max_size, len(raw) - len(marker) - 1))
    return raw[:cut] + marker


def generate_unified_diff(path: str, before: str, after: str) -> str:
    """Render two snapshots of a file as unified diff text.

    Lines are compared by index rather than by edit distance: equal lines are
    context, differing positions become a removal followed by an addition.
    A hunk is closed once a change is followed by a run of
    SYNTHESIZED_CONTEXT_RUN unchanged lines, or at the end of input.

    Args:
        path: Path written into the diff headers.
        before: File content before the change.
        after: New file content.
    """
    before_lines = before.split("\n")
    after_lines = after.split("\n")

    output = [
        f"diff --git a/{path} b/{path}",
        f"--- a/{path}",
        f"+++ b/{path}",
    ]

    body: list[str] = []
    old_num = new_num = 1
    old_start = new_start = 1
    old_count = new_count = 0
    context_run = 0

    def close_hunk() -> None:
        nonlocal body, old_count, new_count, context_run
        output.append(f"@@ -{old_start},{old_count} +{new_start},{new_count} @@")
        output.extend(body)
        body = []
        old_count = new_count = 0
        context_run = 0

    for index in range(max(len(before_lines), len(after_lines))):
        old_line = before_lines[index] if index < len(before_lines) else None
        new_line = after_lines[index] if index < len(after_lines) else None

        if old_line is not None and old_line == new_line:
            if body:
                body.append(f" {old_line}")
                old_count += 1
                new_count += 1
                context_run += 1
            old_num += 1
            new_num += 1
            if body and context_run >= SYNTHESIZED_CONTEXT_RUN:
                close_hunk()
            continue

        if not body:
            old_start = old_num
            new_start = new_num
        context_run = 0
        if old_line is not None:
            body.append(f"-{old_line}")
            old_count += 1
            old_num += 1
        if new_line is not None:
            body.append(f"+{new_line}")
            new_count += 1
            new_num += 1

    if body:
        close_hunk()

    return "\n".join(output)


def session_diff_to_unified(entry: Mapping[str, Any]) -> str | None:
    """Return unified diff text for a session file-diff record.

    A ready-made ``diff`` string wins; otherwise ``before``/``after``
    snapshots are synthesized under the record's ``file`` (or ``path``).
    """
    diff = entry.get("diff")
    if isinstance(diff, str) and diff.strip():
        return diff

    before = entry.get("before")
    after = entry.get("after")
    if not isinstance(before, str) and not isinstance(after, str):
        return None

    path = entry.get("file") or entry.get("path") or entry.get("newPath") or "file"
    if not isinstance(path, str):
        path = str(path)
    return generate_unified_diff(
        path,
        before if isinstance(before, str) else "",
        after if isinstance(after, str) else "",
    )
