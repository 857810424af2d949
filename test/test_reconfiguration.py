"""
Tests for ReconfigurationSequencer ordering and failure tolerance.

The sequencer must always:
- stop before anything else and wait for stop to settle
- dispatch device and resolution together, before start
- dispatch start even when earlier steps failed
"""
from __future__ import annotations

import threading

import pytest

from core.backend_client import BackendClient
from core.reconfiguration import ReconfigurationOutcome, ReconfigurationSequencer
from shared.models import DEFAULT_DEVICE, ReconfigurationRequest
from test.fixtures.controlled_backend import ControlledBackend

TIMEOUT = 5.0


@pytest.fixture
def backend() -> ControlledBackend:
    return ControlledBackend()


@pytest.fixture
def client(backend):
    client = BackendClient(backend, max_workers=4)
    yield client
    client.shutdown()


@pytest.fixture
def sequencer(client):
    seq = ReconfigurationSequencer(client)
    yield seq
    seq.shutdown()


def _settle(outcome: ReconfigurationOutcome) -> ReconfigurationOutcome:
    outcome.start.exception(timeout=TIMEOUT)
    return outcome


class TestOrdering:

    def test_happy_path_order(self, backend, sequencer):
        outcome = _settle(sequencer.apply(ReconfigurationRequest("Mic B", 1.0)).result(TIMEOUT))

        names = backend.call_names()
        assert names[0] == "stop_capture"
        assert names[-1] == "start_capture"
        assert sorted(names[1:3]) == ["change_device", "set_resolution"]
        assert outcome.fully_applied
        assert outcome.applied_device == "Mic B"
        assert backend.current_device() == "Mic B"
        assert backend.resolution() == 1024

    def test_resolution_sent_as_fixed_point(self, backend, sequencer):
        _settle(sequencer.apply(ReconfigurationRequest(DEFAULT_DEVICE, 2.5)).result(TIMEOUT))
        (call,) = [c for c in backend.calls() if c.name == "set_resolution"]
        assert call.args == (2560,)

    def test_waits_for_stop_before_changing_anything(self, backend, sequencer):
        backend.hold("stop_capture")
        future = sequencer.apply(ReconfigurationRequest("Mic A", 1.0))
        assert backend.wait_entered("stop_capture")

        assert backend.call_names() == ["stop_capture"]

        backend.release("stop_capture")
        _settle(future.result(TIMEOUT))
        assert backend.call_names()[-1] == "start_capture"

    @pytest.mark.parametrize("slow", ["change_device", "set_resolution"])
    def test_both_dispatched_before_either_completes(self, backend, sequencer, slow):
        """Device and resolution run concurrently; the slow one does not delay the other's dispatch."""
        backend.hold(slow)
        future = sequencer.apply(ReconfigurationRequest("Mic A", 0.5))

        assert backend.wait_entered("change_device")
        assert backend.wait_entered("set_resolution")
        assert "start_capture" not in backend.call_names()

        backend.release(slow)
        outcome = _settle(future.result(TIMEOUT))
        assert backend.call_names()[-1] == "start_capture"
        assert outcome.fully_applied

    @pytest.mark.parametrize("first,second", [
        ("change_device", "set_resolution"),
        ("set_resolution", "change_device"),
    ])
    def test_start_waits_for_both_regardless_of_completion_order(self, backend, sequencer, first, second):
        backend.hold("change_device")
        backend.hold("set_resolution")
        future = sequencer.apply(ReconfigurationRequest("Mic B", 1.5))
        assert backend.wait_entered("change_device")
        assert backend.wait_entered("set_resolution")

        backend.release(first)
        threading.Event().wait(0.05)
        assert "start_capture" not in backend.call_names()

        backend.release(second)
        _settle(future.result(TIMEOUT))
        completed = backend.completed()
        assert completed.index(first) < completed.index(second) < completed.index("start_capture")


class TestFailureTolerance:

    def test_stop_failure_does_not_block_the_rest(self, backend, sequencer):
        backend.fail("stop_capture")
        outcome = _settle(sequencer.apply(ReconfigurationRequest("Mic A", 1.0)).result(TIMEOUT))

        assert not outcome.stop_ok
        assert set(backend.call_names()) == {"stop_capture", "change_device", "set_resolution", "start_capture"}
        assert outcome.fully_applied

    def test_unknown_device_still_restarts(self, backend, sequencer):
        outcome = _settle(sequencer.apply(ReconfigurationRequest("Missing", 1.0)).result(TIMEOUT))

        assert outcome.applied_device is None
        assert outcome.resolution_ok
        assert not outcome.fully_applied
        assert backend.call_names()[-1] == "start_capture"
        assert backend.running

    def test_resolution_failure_still_restarts(self, backend, sequencer):
        backend.fail("set_resolution")
        outcome = _settle(sequencer.apply(ReconfigurationRequest("Mic B", 1.0)).result(TIMEOUT))

        assert outcome.applied_device == "Mic B"
        assert not outcome.resolution_ok
        assert "start_capture" in backend.call_names()

    def test_start_failure_reported_on_outcome(self, backend, sequencer):
        backend.fail("start_capture")
        outcome = sequencer.apply(ReconfigurationRequest("Mic A", 1.0)).result(TIMEOUT)
        assert outcome.start.exception(timeout=TIMEOUT) is not None

    def test_every_step_failing_still_dispatches_start(self, backend, sequencer):
        for name in ("stop_capture", "change_device", "set_resolution", "start_capture"):
            backend.fail(name)
        outcome = _settle(sequencer.apply(ReconfigurationRequest("Mic A", 1.0)).result(TIMEOUT))
        assert backend.call_names()[-1] == "start_capture"
        assert not outcome.stop_ok and not outcome.resolution_ok


class TestDispatchCallback:

    def test_callback_runs_after_start_dispatched(self, backend, sequencer):
        seen = []
        backend.hold("start_capture")

        def on_dispatched(outcome):
            seen.append((outcome, list(backend.call_names())))

        future = sequencer.apply(ReconfigurationRequest("Mic A", 1.0), on_dispatched=on_dispatched)
        outcome = future.result(TIMEOUT)

        # Resolved while start is still held by the backend.
        assert not outcome.start.done()
        assert len(seen) == 1
        assert seen[0][0] is outcome
        backend.release("start_capture")
        _settle(outcome)

    def test_callback_error_is_contained(self, backend, sequencer):
        def broken(_outcome):
            raise RuntimeError("listener bug")

        outcome = _settle(sequencer.apply(ReconfigurationRequest("Mic A", 1.0), on_dispatched=broken).result(TIMEOUT))
        assert outcome.fully_applied

    def test_requests_run_one_at_a_time(self, backend, sequencer):
        backend.hold("stop_capture")
        first = sequencer.apply(ReconfigurationRequest("Mic A", 1.0))
        second = sequencer.apply(ReconfigurationRequest("Mic B", 2.0))
        assert backend.wait_entered("stop_capture")
        assert backend.call_names() == ["stop_capture"]

        backend.release("stop_capture")
        _settle(first.result(TIMEOUT))
        _settle(second.result(TIMEOUT))
        assert backend.call_names().count("stop_capture") == 2
        assert backend.current_device() == "Mic B"
