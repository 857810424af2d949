"""
End-to-end tests of the headless pipeline:

    backend -> BackendClient -> SampleIngestion -> SignalBuffer -> RenderLoop -> surface

plus a reconfiguration through the settings state while frames keep flowing.
"""
from __future__ import annotations

import time

import numpy as np
import pytest

from core.render_loop import ThreadedFrameScheduler
from core.runtime import ScopelineRuntime
from core.settings_state import SettingsEventType, SettingsPhase
from daq.simulated_backend import SimulatedCaptureBackend
from shared.app_settings import AppSettings, AppSettingsStore
from test.fixtures.controlled_backend import ControlledBackend
from test.fixtures.render_doubles import ManualFrameScheduler, RecordingSurface

TIMEOUT = 5.0


def wait_for(predicate, timeout: float = TIMEOUT) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def store() -> AppSettingsStore:
    return AppSettingsStore(AppSettings(backend="simulated", emission_rate_hz=100.0))


@pytest.fixture
def runtime(store):
    backend = SimulatedCaptureBackend(seed=7, chunk_interval_s=0.005)
    rt = ScopelineRuntime(backend, app_settings_store=store)
    yield rt
    rt.shutdown()


class TestHeadlessPipeline:

    def test_frames_drawn_from_live_capture(self, runtime):
        surface = RecordingSurface()
        runtime.attach_renderer(surface, ThreadedFrameScheduler(rate_hz=120.0))
        runtime.viewport.observe(640, 200)
        runtime.start()

        assert wait_for(lambda: surface.count >= 3)
        frame = surface.last()
        assert (frame.width, frame.height) == (640, 200)
        assert frame.xs[0] == 0.0
        assert frame.xs[-1] == pytest.approx(640.0)
        assert frame.ys.min() >= 0.0 and frame.ys.max() <= 200.0

    def test_nothing_drawn_before_viewport_known(self, runtime):
        surface = RecordingSurface()
        scheduler = ManualFrameScheduler()
        runtime.attach_renderer(surface, scheduler)
        runtime.start()
        assert wait_for(lambda: len(runtime.buffer) >= 2)

        scheduler.fire(3)
        assert surface.count == 0
        runtime.viewport.observe(100, 50)
        scheduler.fire()
        assert surface.count == 1

    def test_attach_after_start_starts_loop(self, runtime):
        runtime.start()
        scheduler = ManualFrameScheduler()
        loop = runtime.attach_renderer(RecordingSurface(), scheduler)
        assert loop.running
        assert scheduler.requests == 1

    def test_shutdown_stops_everything(self, runtime):
        surface = RecordingSurface()
        scheduler = ManualFrameScheduler()
        runtime.attach_renderer(surface, scheduler)
        runtime.viewport.observe(100, 50)
        runtime.start()
        assert wait_for(lambda: runtime.backend.running)

        runtime.shutdown()

        assert not runtime.backend.running
        assert not runtime.ingestion.running
        assert not runtime.render_loop.running
        assert not scheduler.pending
        assert len(runtime.buffer) == 0

    def test_shutdown_twice_is_safe(self, runtime):
        runtime.start()
        runtime.shutdown()
        runtime.shutdown()

    def test_settings_curve_from_app_settings(self):
        store = AppSettingsStore(AppSettings(resolution_min=0.5, resolution_max=4.0, resolution_step=0.2))
        rt = ScopelineRuntime(ControlledBackend(), app_settings_store=store)
        try:
            assert rt.curve.minimum == 0.5
            assert rt.curve.maximum == 4.0
            assert rt.settings_state.curve is rt.curve
            assert rt.ingestion.tick_interval == pytest.approx(1.0 / 60.0)
        finally:
            rt.shutdown()


class TestReconfigurationWhileRendering:

    def test_device_and_resolution_change(self, runtime):
        surface = RecordingSurface()
        runtime.attach_renderer(surface, ThreadedFrameScheduler(rate_hz=120.0))
        runtime.viewport.observe(320, 100)
        runtime.start()
        assert wait_for(lambda: surface.count >= 1)

        state = runtime.settings_state
        applied = []
        state.add_listener(lambda e: applied.append(e.data) if e.event_type is SettingsEventType.APPLIED else None)

        for future in state.open():
            future.result(TIMEOUT)
        assert wait_for(lambda: "Noise" in state.devices)
        state.select_device("Noise")
        state.set_multiplier(0.5)
        outcome = state.confirm().result(TIMEOUT)
        outcome.start.result(TIMEOUT)

        assert wait_for(lambda: state.phase is SettingsPhase.IDLE)
        assert applied == [outcome]
        assert runtime.backend.current_device() == "Noise"
        assert runtime.backend.resolution() == 512
        assert runtime.backend.running

        drawn = surface.count
        assert wait_for(lambda: surface.count > drawn + 2)

    def test_cancel_leaves_capture_untouched(self):
        backend = ControlledBackend()
        rt = ScopelineRuntime(backend)
        try:
            rt.start()
            assert wait_for(lambda: backend.running)
            state = rt.settings_state
            for future in state.open():
                future.result(TIMEOUT)
            state.select_device("Mic B")
            state.cancel()
            time.sleep(0.05)
            assert "change_device" not in backend.call_names()
            assert backend.call_names().count("stop_capture") == 0
            assert backend.running
        finally:
            rt.shutdown()
