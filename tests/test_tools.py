"""Unit tests for tool part status, name, error and timing extraction."""

from partview.models import ToolError, ToolStatus
from partview.tools import (
    TOOL_STATUS_LABELS,
    extract_error,
    extract_timings,
    extract_tool_name,
    format_duration,
    normalize_tool_part,
    normalize_tool_status,
)


class TestNormalizeToolStatus:
    """Test status canonicalization."""

    def test_canonical_values_pass_through(self) -> None:
        for value in ("pending", "running", "completed", "error"):
            assert normalize_tool_status({"status": value}) == ToolStatus(value)

    def test_case_insensitive(self) -> None:
        assert normalize_tool_status({"status": "RUNNING"}) is ToolStatus.RUNNING

    def test_success_alias(self) -> None:
        """success maps to completed."""
        assert normalize_tool_status({"status": "success"}) is ToolStatus.COMPLETED

    def test_failed_alias(self) -> None:
        """failed maps to error."""
        assert normalize_tool_status({"status": "failed"}) is ToolStatus.ERROR

    def test_nested_state_status(self) -> None:
        assert normalize_tool_status({"state": {"status": "Completed"}}) is ToolStatus.COMPLETED

    def test_unknown_direct_falls_back_to_state(self) -> None:
        """An unrecognized top-level status defers to state.status."""
        part = {"status": "weird", "state": {"status": "failed"}}
        assert normalize_tool_status(part) is ToolStatus.ERROR

    def test_default_pending(self) -> None:
        """Nothing recognizable anywhere means pending."""
        assert normalize_tool_status({}) is ToolStatus.PENDING
        assert normalize_tool_status({"status": 3, "state": "done"}) is ToolStatus.PENDING

    def test_labels_cover_aliases(self) -> None:
        assert TOOL_STATUS_LABELS["success"] == "Success"
        assert TOOL_STATUS_LABELS["error"] == "Error"


class TestExtractToolName:
    """Test tool name selection."""

    def test_prefers_tool(self) -> None:
        assert extract_tool_name({"tool": "edit", "name": "other"}) == "edit"

    def test_falls_back_to_name(self) -> None:
        assert extract_tool_name({"tool": "", "name": "bash"}) == "bash"

    def test_unknown(self) -> None:
        assert extract_tool_name({"tool": 42}) == "unknown"


class TestExtractError:
    """Test error message extraction for failed tool calls."""

    def test_structured_error(self) -> None:
        part = {"status": "error", "error": {"message": "boom", "stack": "trace"}}
        assert extract_error(part) == ToolError(message="boom", stack="trace")

    def test_structured_error_wins_over_state(self) -> None:
        part = {
            "status": "error",
            "error": {"message": "direct"},
            "state": {"status": "error", "error": "from state"},
        }
        assert extract_error(part).message == "direct"

    def test_state_error(self) -> None:
        part = {
            "type": "tool",
            "tool": "edit",
            "status": "error",
            "state": {"status": "error", "error": "Edit failed: file not found"},
        }
        normalized = normalize_tool_part(part)
        assert normalized.status is ToolStatus.ERROR
        assert "file not found" in normalized.error.message

    def test_state_metadata_error(self) -> None:
        part = {
            "tool": "bash",
            "status": "error",
            "state": {"status": "error", "metadata": {"error": "Command failed"}},
        }
        assert normalize_tool_part(part).error.message == "Command failed"

    def test_blank_state_error_skipped(self) -> None:
        part = {"status": "error", "state": {"error": "   "}, "output": "real reason"}
        assert extract_error(part).message == "real reason"

    def test_output_string(self) -> None:
        assert extract_error({"status": "failed", "output": "exit 1"}).message == "exit 1"

    def test_output_message(self) -> None:
        part = {
            "tool": "read",
            "status": "error",
            "output": {"message": "Permission denied"},
            "state": {"status": "error"},
        }
        assert normalize_tool_part(part).error.message == "Permission denied"

    def test_output_error_field(self) -> None:
        part = {"status": "error", "output": {"error": "timeout"}}
        assert extract_error(part).message == "timeout"

    def test_no_reason_found(self) -> None:
        """A failed call without any error text yields an empty error record."""
        detail = normalize_tool_part({"tool": "bash", "status": "error"})
        assert detail.error == ToolError()
        assert detail.error.message is None
        assert detail.error.stack is None

    def test_error_only_for_error_status(self) -> None:
        detail = normalize_tool_part({"status": "completed", "error": {"message": "stale"}})
        assert detail.error is None


class TestTimings:
    """Test timing extraction and duration formatting."""

    def test_state_timings(self) -> None:
        part = {"state": {"timings": {"startTime": 100, "endTime": 350, "duration": 250}}}
        timing = extract_timings(part)
        assert (timing.start, timing.end, timing.duration) == (100, 350, 250)

    def test_state_time_derives_duration(self) -> None:
        timing = extract_timings({"state": {"time": {"start": 1000, "end": 2500}}})
        assert timing.duration == 1500

    def test_state_time_without_end(self) -> None:
        timing = extract_timings({"state": {"time": {"start": 1000}}})
        assert timing.start == 1000
        assert timing.end is None
        assert timing.duration is None

    def test_booleans_ignored(self) -> None:
        assert extract_timings({"state": {"time": {"start": True, "end": False}}}) is None

    def test_missing(self) -> None:
        assert extract_timings({}) is None
        assert extract_timings({"state": {"status": "running"}}) is None

    def test_format_duration(self) -> None:
        assert format_duration(500) == "500ms"
        assert format_duration(1500) == "1.5s"
        assert format_duration(125_000) == "2m 5s"


class TestNormalizeToolPart:
    """Test the composed normalization."""

    def test_full_part(self) -> None:
        part = {
            "type": "tool",
            "tool": "edit",
            "provider": "anthropic",
            "state": {
                "status": "completed",
                "input": {"filePath": "src/app.ts", "oldString": "a", "newString": "b"},
                "output": "Edit applied",
                "metadata": {"diff": "not a diff"},
                "time": {"start": 10, "end": 30},
            },
        }
        detail = normalize_tool_part(part)

        assert detail.tool == "edit"
        assert detail.status is ToolStatus.COMPLETED
        assert detail.input == part["state"]["input"]
        assert detail.output == "Edit applied"
        assert detail.metadata == {"diff": "not a diff"}
        assert detail.path == "src/app.ts"
        assert detail.provider == "anthropic"
        assert detail.timing.duration == 20
        assert detail.error is None
        assert detail.diff is None

    def test_defaults(self) -> None:
        detail = normalize_tool_part({})
        assert detail.tool == "unknown"
        assert detail.status is ToolStatus.PENDING
        assert detail.input is None
        assert detail.output is None
        assert detail.path is None
        assert detail.provider is None
        assert detail.timing is None

    def test_output_from_metadata_stdout(self) -> None:
        part = {"tool": "bash", "state": {"metadata": {"stdout": ["a", "b"]}}}
        assert normalize_tool_part(part).output == "a\nb"

    def test_top_level_output_wins(self) -> None:
        part = {"output": {"ok": True}, "state": {"output": "ignored"}}
        assert normalize_tool_part(part).output == {"ok": True}

    def test_non_string_provider_dropped(self) -> None:
        assert normalize_tool_part({"provider": {"id": "x"}}).provider is None

    def test_part_not_mutated(self) -> None:
        part = {"tool": "edit", "state": {"status": "success", "metadata": {"k": "v"}}}
        snapshot = repr(part)
        normalize_tool_part(part)
        assert repr(part) == snapshot

    def test_idempotent(self, sample_diff) -> None:
        """Normalizing the same part twice serializes identically."""
        part = {
            "tool": "apply_patch",
            "status": "running",
            "args": {"path": "test.txt"},
            "output": {"patch": sample_diff},
        }
        first = normalize_tool_part(part).model_dump_json()
        second = normalize_tool_part(part).model_dump_json()
        assert first == second
