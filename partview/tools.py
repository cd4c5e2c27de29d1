"""Normalization of untyped tool-call parts into ToolPartDetail.

Parts arrive from many producers with no fixed schema. Every extractor here
walks an explicit, prioritized list of (container, key) locations, checks the
type of each value before using it, and falls back to "absent" instead of
raising. Recursive searches carry a depth counter and an identity-keyed
visited set so cyclic or very deep records cannot run away.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

import structlog

from partview.diff import (
    MAX_DIFF_SIZE,
    extract_diff_paths,
    is_diff_too_large,
    parse_diff,
)
from partview.models import (
    DiffMetadata,
    ToolError,
    ToolPartDetail,
    ToolStatus,
    ToolTimings,
)

logger = structlog.get_logger(__name__)

TOOL_STATUS_LABELS: dict[str, str] = {
    "pending": "Pending",
    "running": "Running",
    "completed": "Completed",
    "error": "Error",
    "success": "Success",
    "failed": "Failed",
}

_STATUS_ALIASES = {
    "pending": ToolStatus.PENDING,
    "running": ToolStatus.RUNNING,
    "completed": ToolStatus.COMPLETED,
    "error": ToolStatus.ERROR,
    "success": ToolStatus.COMPLETED,
    "failed": ToolStatus.ERROR,
}

FILE_PATH_KEYS = (
    "filePath",
    "path",
    "file",
    "filename",
    "inputPath",
    "outputPath",
    "source",
    "target",
)
PATH_SOURCE_KEYS = ("args", "input", "output", "state", "result")
MAX_PATH_SEARCH_DEPTH = 5

DIFF_TEXT_KEYS = ("patch", "diff", "raw")
DIFF_WRAPPER_KEYS = ("data", "result", "output", "payload")
MAX_DIFF_SEARCH_DEPTH = 5

_DRIVE_RE = re.compile(r"^[A-Za-z]:\\")
_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]{1,8}$")
_QUOTES_RE = re.compile(r"^[\"'`]+|[\"'`]+$")
_FILE_SCHEME_RE = re.compile(r"^file://", re.IGNORECASE)
# The lookahead keeps a "file://" URI from reading as a "file:" key.
_PATH_SNIPPET_RE = re.compile(
    r"\b(?:filePath|filepath|path|file|filename)\b\s*[:=](?!//)\s*[\"'`]?([^\"'`\n\r]+)[\"'`]?\s*$",
    re.IGNORECASE,
)
_DIFF_MARKERS = (
    re.compile(r"\bdiff --git\b"),
    re.compile(r"\n---\s"),
    re.compile(r"\n\+\+\+\s"),
    re.compile(r"\*\*\* Begin Patch"),
    re.compile(r"\*\*\* (?:Add|Update|Delete) File: "),
    re.compile(r"\n@@\s-\d+"),
)


def _mapping(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def _non_blank(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _number(value: Any) -> float | None:
    # bool is an int subclass; a flag is never a timestamp.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


# -----------------------------------------------------------------------------
# Status and name
# -----------------------------------------------------------------------------


def _status_from(value: Any) -> ToolStatus | None:
    if not isinstance(value, str):
        return None
    return _STATUS_ALIASES.get(value.lower())


def normalize_tool_status(part: Mapping[str, Any]) -> ToolStatus:
    """Return the canonical status from ``status`` or ``state.status``.

    ``success`` maps to completed and ``failed`` to error; anything
    unrecognized falls back to pending.
    """
    status = _status_from(part.get("status"))
    if status is not None:
        return status
    state = _mapping(part.get("state"))
    if state is not None:
        status = _status_from(state.get("status"))
        if status is not None:
            return status
    return ToolStatus.PENDING


def extract_tool_name(part: Mapping[str, Any]) -> str:
    """Return ``tool``, then ``name``, then ``"unknown"``."""
    for key in ("tool", "name"):
        value = part.get(key)
        if isinstance(value, str) and value:
            return value
    return "unknown"


# -----------------------------------------------------------------------------
# Errors and timings
# -----------------------------------------------------------------------------


def extract_error(part: Mapping[str, Any]) -> ToolError:
    """Extract the error message (and stack) of a failed tool call.

    Sources, first match wins:
        1. ``error`` mapping with string ``message``/``stack``
        2. ``state.error`` string
        3. ``state.metadata.error`` string
        4. ``output`` string
        5. ``output.message`` or ``output.error`` string

    Returns an empty ToolError when none of them carries text.
    """
    direct = _mapping(part.get("error"))
    if direct is not None:
        message = direct.get("message") if isinstance(direct.get("message"), str) else None
        stack = direct.get("stack") if isinstance(direct.get("stack"), str) else None
        if message or stack:
            return ToolError(message=message, stack=stack)

    state = _mapping(part.get("state"))
    if state is not None:
        state_error = _non_blank(state.get("error"))
        if state_error:
            return ToolError(message=state_error)
        metadata = _mapping(state.get("metadata"))
        if metadata is not None:
            metadata_error = _non_blank(metadata.get("error"))
            if metadata_error:
                return ToolError(message=metadata_error)

    output = part.get("output")
    output_text = _non_blank(output)
    if output_text:
        return ToolError(message=output_text)
    output_map = _mapping(output)
    if output_map is not None:
        for key in ("message", "error"):
            value = output_map.get(key)
            if isinstance(value, str) and value:
                return ToolError(message=value)

    return ToolError()


def extract_timings(part: Mapping[str, Any]) -> ToolTimings | None:
    """Read ``state.timings`` or, failing that, ``state.time``.

    ``state.time`` only carries start/end, so the duration is derived.
    """
    state = _mapping(part.get("state"))
    if state is None:
        return None

    timings = _mapping(state.get("timings"))
    if timings is not None:
        start = _number(timings.get("startTime"))
        end = _number(timings.get("endTime"))
        duration = _number(timings.get("duration"))
    else:
        time = _mapping(state.get("time"))
        if time is None:
            return None
        start = _number(time.get("start"))
        end = _number(time.get("end"))
        duration = end - start if start is not None and end is not None else None

    if start is None and end is None and duration is None:
        return None
    return ToolTimings(start=start, end=end, duration=duration)


def format_duration(ms: float) -> str:
    """Format milliseconds as ``850ms``, ``1.5s`` or ``2m 5s``."""
    if ms < 1000:
        return f"{ms:g}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    minutes = int(ms // 60000)
    seconds = int((ms % 60000) // 1000)
    return f"{minutes}m {seconds}s"


# -----------------------------------------------------------------------------
# File paths
# -----------------------------------------------------------------------------


def looks_like_path(value: str) -> bool:
    """Return True if ``value`` plausibly names a file.

    Accepts Windows drive prefixes, anything containing a path separator,
    values starting with ``.`` or ``~``, and names ending in a short
    extension (``main.py``).
    """
    if not value:
        return False
    if _DRIVE_RE.match(value):
        return True
    if "/" in value or "\\" in value:
        return True
    if value[0] in ".~":
        return True
    return bool(_EXTENSION_RE.search(value))


def normalize_potential_path(raw: str) -> str | None:
    """Strip quotes and a ``file://`` scheme; return the path if it looks like one."""
    trimmed = raw.strip()
    if not trimmed:
        return None
    candidate = _FILE_SCHEME_RE.sub("", _QUOTES_RE.sub("", trimmed))
    if not looks_like_path(candidate):
        return None
    return candidate


def _path_from_string(value: str, visited: set[int], depth: int) -> str | None:
    trimmed = value.strip()
    if (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    ):
        try:
            decoded = json.loads(trimmed)
        except (ValueError, RecursionError):
            decoded = None
        if decoded is not None:
            return _path_from_value(decoded, visited, depth + 1)

    # Multi-line text is tool output, not a path.
    if "\n" in trimmed or "\r" in trimmed:
        return None

    snippet = _PATH_SNIPPET_RE.search(trimmed)
    if snippet:
        extracted = normalize_potential_path(snippet.group(1))
        if extracted:
            return extracted

    return normalize_potential_path(trimmed)


def _path_from_value(value: Any, visited: set[int], depth: int) -> str | None:
    if depth >= MAX_PATH_SEARCH_DEPTH:
        return None

    if isinstance(value, str):
        return _path_from_string(value, visited, depth)

    if isinstance(value, Mapping):
        if id(value) in visited:
            return None
        visited.add(id(value))
        for key in FILE_PATH_KEYS:
            if key in value:
                found = _path_from_value(value[key], visited, depth + 1)
                if found:
                    return found
        for child in value.values():
            found = _path_from_value(child, visited, depth + 1)
            if found:
                return found
        return None

    if isinstance(value, (list, tuple)):
        if id(value) in visited:
            return None
        visited.add(id(value))
        for item in value:
            found = _path_from_value(item, visited, depth + 1)
            if found:
                return found

    return None


def extract_file_path(part: Mapping[str, Any]) -> str | None:
    """Find the file a tool call touched.

    A non-blank ``path`` field wins outright. Otherwise ``args``, ``input``,
    ``output``, ``state``, ``result`` and finally the part itself are
    searched, each with its own visited set, for the first value that looks
    like a path.
    """
    direct = _non_blank(part.get("path"))
    if direct:
        return direct

    sources = [part.get(key) for key in PATH_SOURCE_KEYS]
    sources.append(part)
    for source in sources:
        # A fresh set per source; the holder object itself may be shared.
        visited: set[int] = set()
        found = _path_from_value(source, visited, 0)
        if found:
            return found
    return None


# -----------------------------------------------------------------------------
# Diff metadata
# -----------------------------------------------------------------------------


def looks_like_diff(text: str) -> bool:
    """Return True if ``text`` contains unified diff or Codex patch markers."""
    return any(marker.search(text) for marker in _DIFF_MARKERS)


def _diff_from_container(value: Any, visited: set[int], depth: int) -> str | None:
    if depth >= MAX_DIFF_SEARCH_DEPTH:
        return None
    container = _mapping(value)
    if container is None or id(container) in visited:
        return None
    visited.add(id(container))

    # Only the first non-blank text field is considered at each level.
    text = next(
        (t for t in (_non_blank(container.get(key)) for key in DIFF_TEXT_KEYS) if t),
        None,
    )
    if text and looks_like_diff(text):
        return text

    for key in DIFF_WRAPPER_KEYS:
        nested = _diff_from_container(container.get(key), visited, depth + 1)
        if nested:
            return nested
    return None


def _diff_candidate(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    return _diff_from_container(value, set(), 0)


def _literal_files(part: Mapping[str, Any]) -> list[str]:
    files = part.get("files")
    if not isinstance(files, (list, tuple)):
        return []
    return [str(item) for item in files if item is not None and str(item)]


def extract_diff_metadata(
    part: Mapping[str, Any], *, max_diff_size: int = MAX_DIFF_SIZE
) -> DiffMetadata | None:
    """Locate diff text inside a part and summarize it.

    Candidates, in priority order: ``diff``, ``content``, ``text``, then the
    ``output``, ``result``, ``args`` and ``state.metadata`` containers. The
    first candidate that passes :func:`looks_like_diff` is parsed; when the
    parser finds no files the paths are extracted with regexes instead.
    Without any diff text, a literal ``files`` list is reported. Returns None
    when there is nothing at all.

    Args:
        part: Untyped tool part.
        max_diff_size: Diffs longer than this are summarized, not parsed.
    """
    state = _mapping(part.get("state"))
    candidates = [
        _non_blank(part.get("diff")),
        _non_blank(part.get("content")),
        _non_blank(part.get("text")),
        _diff_candidate(part.get("output")),
        _diff_candidate(part.get("result")),
        _diff_candidate(part.get("args")),
        _diff_candidate(state.get("metadata")) if state is not None else None,
    ]
    raw = next((c for c in candidates if c and looks_like_diff(c)), None)
    file_list = _literal_files(part)

    if raw is None:
        if file_list:
            return DiffMetadata(files=file_list, has_parsed_diff=False)
        return None

    if is_diff_too_large(raw, max_diff_size):
        logger.debug("Skipping structured parse of oversized diff", size=len(raw))
        return DiffMetadata(
            raw=raw,
            files=extract_diff_paths(raw) or file_list,
            has_parsed_diff=False,
            is_too_large=True,
        )

    parsed = parse_diff(raw)
    if parsed.files:
        return DiffMetadata(
            raw=raw,
            files=[f.display_path for f in parsed.files],
            additions=parsed.total_additions,
            deletions=parsed.total_deletions,
            has_parsed_diff=True,
        )

    return DiffMetadata(
        raw=raw,
        files=extract_diff_paths(raw) or file_list,
        has_parsed_diff=False,
    )


# -----------------------------------------------------------------------------
# Composition
# -----------------------------------------------------------------------------


def _metadata_output(metadata: Mapping[str, Any] | None) -> Any:
    if metadata is None:
        return None
    output = metadata.get("output")
    if isinstance(output, str) and output:
        return output
    stdout = metadata.get("stdout")
    if isinstance(stdout, str) and stdout:
        return stdout
    if isinstance(stdout, list):
        return "\n".join(str(line) for line in stdout)
    result = metadata.get("result")
    if isinstance(result, str):
        return result
    return None


def normalize_tool_part(
    part: Mapping[str, Any], *, max_diff_size: int = MAX_DIFF_SIZE
) -> ToolPartDetail:
    """Normalize one tool part into a render-ready ToolPartDetail.

    Never raises; every field falls back to absent/"unknown". The part is
    not mutated.
    """
    status = normalize_tool_status(part)
    state = _mapping(part.get("state"))
    metadata = _mapping(state.get("metadata")) if state is not None else None

    tool_input = part.get("input")
    if tool_input is None and state is not None:
        tool_input = state.get("input")

    output = part.get("output")
    if output is None and state is not None:
        output = state.get("output")
    if output is None:
        output = _metadata_output(metadata)

    provider = part.get("provider")

    return ToolPartDetail(
        tool=extract_tool_name(part),
        status=status,
        input=tool_input,
        output=output,
        metadata=dict(metadata) if metadata is not None else None,
        error=extract_error(part) if status is ToolStatus.ERROR else None,
        timing=extract_timings(part),
        path=extract_file_path(part),
        provider=provider if isinstance(provider, str) else None,
        diff=extract_diff_metadata(part, max_diff_size=max_diff_size),
    )
