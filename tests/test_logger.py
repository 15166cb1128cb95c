"""Property-based tests for structured logging."""

import json
import sys
from io import StringIO

from hypothesis import given
from hypothesis import strategies as st

from src.utils.logger import StructuredLogger


def _capture(action) -> str:
    """Run action with stdout captured and return what it printed."""
    captured_output = StringIO()
    original_stdout = sys.stdout
    sys.stdout = captured_output
    try:
        action()
    finally:
        sys.stdout = original_stdout
    return captured_output.getvalue().strip()


class TestLoggerJSONFormat:
    """Tests for JSON log format compliance."""

    @given(
        level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
        message=st.text(min_size=1),
        context=st.dictionaries(
            st.text(min_size=1, max_size=20).filter(lambda x: x[0].isalpha()),
            st.one_of(st.text(), st.integers(), st.booleans()),
            max_size=5,
        ),
    )
    def test_log_entries_have_required_fields(self, level, message, context):
        """
        For any log entry written, the output SHALL be valid JSON containing
        timestamp, level, component and message fields, plus any context.
        """
        logger = StructuredLogger("RefreshScheduler", level="DEBUG")

        output = _capture(lambda: getattr(logger, level.lower())(message, context or None))
        log_entry = json.loads(output)

        assert log_entry["level"] == level
        assert log_entry["component"] == "RefreshScheduler"
        assert log_entry["message"] == message
        assert log_entry["timestamp"].endswith("Z")
        assert "T" in log_entry["timestamp"]
        if context:
            assert log_entry["context"] == context
        else:
            assert "context" not in log_entry

    @given(
        message=st.text(min_size=1),
        exception_type=st.sampled_from([ValueError, TypeError, RuntimeError, KeyError]),
    )
    def test_error_log_entries_include_exception_details(self, message, exception_type):
        """
        For any log entry with an error, the output SHALL include exception type,
        message and stack trace.
        """
        logger = StructuredLogger("SnapshotFetcher", level="DEBUG")

        def log_error():
            try:
                raise exception_type("page 2 unavailable")
            except exception_type as e:
                logger.error(message, exception=e)

        log_entry = json.loads(_capture(log_error))

        assert log_entry["exception"]["type"] == exception_type.__name__
        assert "page 2 unavailable" in log_entry["exception"]["message"]
        assert "raise exception_type" in log_entry["exception"]["stack_trace"]

    def test_non_json_context_values_are_stringified(self):
        from datetime import datetime, timezone

        logger = StructuredLogger("SnapshotMerger", level="DEBUG")
        captured_at = datetime(2024, 1, 1, tzinfo=timezone.utc)

        log_entry = json.loads(_capture(lambda: logger.info("merged", {"captured_at": captured_at})))

        assert log_entry["context"]["captured_at"] == str(captured_at)


class TestLoggerLevels:
    """Tests for level filtering."""

    def test_entries_below_level_are_dropped(self):
        logger = StructuredLogger("SnapshotFetcher", level="WARNING")

        assert _capture(lambda: logger.info("Fetched market page")) == ""
        assert json.loads(_capture(lambda: logger.warning("Page failed")))["level"] == "WARNING"

    def test_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "scanner.log"
        logger = StructuredLogger("Application", file_path=str(log_file), level="INFO")

        _capture(lambda: logger.info("Refresh scheduler started"))

        lines = log_file.read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "Refresh scheduler started"


class TestLoggerTraceCorrelation:
    """Entries written inside a refresh cycle carry its trace id."""

    def test_entries_inside_cycle_carry_trace_id(self):
        from src.utils.trace_context import traced_cycle

        logger = StructuredLogger("RefreshScheduler", level="INFO")

        with traced_cycle() as trace_id:
            inside = json.loads(_capture(lambda: logger.info("Starting refresh cycle")))
        outside = json.loads(_capture(lambda: logger.info("Refresh scheduler started")))

        assert inside["trace_id"] == trace_id
        assert "trace_id" not in outside or outside["trace_id"] != trace_id
