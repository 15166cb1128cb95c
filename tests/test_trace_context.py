"""Property-based tests for trace context management."""

import uuid
from concurrent.futures import ThreadPoolExecutor

from hypothesis import given, strategies as st

from src.utils.trace_context import get_current_trace, set_trace, traced_cycle


class TestTraceContextManagement:
    """Tests for trace context management."""

    @given(num_operations=st.integers(min_value=1, max_value=10))
    def test_trace_ids_are_assigned_to_cycles(self, num_operations):
        """
        For any refresh cycle, the system SHALL assign a UUID trace ID that
        stays current for every operation inside the cycle.
        """
        set_trace(None)

        with traced_cycle() as trace_id:
            uuid.UUID(trace_id)
            for _ in range(num_operations):
                assert get_current_trace() == trace_id

        assert get_current_trace() is None

    @given(trace_id=st.uuids().map(str))
    def test_set_and_get_trace(self, trace_id):
        """For any trace ID, setting it SHALL make it retrievable."""
        set_trace(trace_id)
        assert get_current_trace() == trace_id

        set_trace(None)
        assert get_current_trace() is None

    @given(num_cycles=st.integers(min_value=2, max_value=5))
    def test_each_cycle_gets_a_fresh_trace(self, num_cycles):
        """Successive cycles SHALL never share a trace ID."""
        traces = []
        for _ in range(num_cycles):
            with traced_cycle() as trace_id:
                assert get_current_trace() == trace_id
                traces.append(trace_id)

        assert len(traces) == len(set(traces))

    def test_traced_cycle_restores_previous_trace(self):
        outer = str(uuid.uuid4())
        set_trace(outer)

        with traced_cycle() as inner:
            assert inner != outer

        assert get_current_trace() == outer
        set_trace(None)

    def test_traced_cycle_restores_on_error(self):
        set_trace(None)

        try:
            with traced_cycle():
                raise RuntimeError("cycle failed")
        except RuntimeError:
            pass

        assert get_current_trace() is None

    def test_worker_threads_start_without_trace(self):
        """Worker threads only see a trace once it is set explicitly."""
        with traced_cycle() as trace_id:
            with ThreadPoolExecutor(max_workers=1) as executor:
                assert executor.submit(get_current_trace).result() is None

                def propagate():
                    set_trace(trace_id)
                    return get_current_trace()

                assert executor.submit(propagate).result() == trace_id
