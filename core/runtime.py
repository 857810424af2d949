from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING, Any

from shared.app_settings import AppSettingsStore
from shared.signal_buffer import SignalBuffer

from .backend_client import BackendClient, log_failure
from .ingestion import SampleIngestion
from .parameter_curve import ParameterCurve
from .reconfiguration import ReconfigurationSequencer
from .render_loop import FrameScheduler, RenderLoop, Surface, ViewportTracker
from .settings_state import DeviceConfigState

if TYPE_CHECKING:  # pragma: no cover - typing only
    from daq.base_backend import CaptureBackend
else:  # pragma: no cover - runtime fallback
    CaptureBackend = Any


class ScopelineRuntime:
    """
    Headless orchestrator for capture, ingestion, rendering and settings.

    The GUI injects a surface and a frame scheduler through
    :meth:`attach_renderer`; everything else is pure Python so the pipeline can
    run and be tested without Qt.
    """

    def __init__(
        self,
        backend: "CaptureBackend",
        *,
        app_settings_store: Optional[AppSettingsStore] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.app_settings_store = app_settings_store or AppSettingsStore()
        self.logger = logger or logging.getLogger(__name__)
        settings = self.app_settings_store.get()

        self.backend = backend
        self.client = BackendClient(backend, max_workers=settings.backend_workers)
        self.buffer = SignalBuffer()
        self.viewport = ViewportTracker()
        self.curve = ParameterCurve(
            settings.resolution_min,
            settings.resolution_max,
            settings.resolution_step,
        )
        self.ingestion = SampleIngestion(self.client, self.buffer, rate_hz=settings.emission_rate_hz)
        self.sequencer = ReconfigurationSequencer(self.client)
        self.settings_state = DeviceConfigState(self.client, self.sequencer, self.curve)
        self.render_loop: Optional[RenderLoop] = None
        self._started = False

    def attach_renderer(self, surface: Surface, scheduler: FrameScheduler) -> RenderLoop:
        """Create the render loop for ``surface``; replaces any previous one."""
        if self.render_loop is not None:
            self.render_loop.stop()
        self.render_loop = RenderLoop(self.buffer, self.viewport, surface, scheduler)
        if self._started:
            self.render_loop.start()
        return self.render_loop

    def start(self) -> None:
        """Kick off capture, the sample request timer and the render loop."""
        if self._started:
            return
        self._started = True
        self.logger.info("Starting %s capture", self.backend.backend_name())
        log_failure(self.client.start_capture(), "Start capture")
        self.ingestion.start()
        if self.render_loop is not None:
            self.render_loop.start()

    def shutdown(self) -> None:
        """Tear down in reverse order; safe to call more than once."""
        if self.render_loop is not None:
            self.render_loop.stop()
        self.ingestion.stop()
        self.sequencer.shutdown(wait=True)
        try:
            self.client.stop_capture().result(timeout=2.0)
        except Exception as exc:
            self.logger.warning("Stop capture during shutdown failed: %s", exc)
        self.client.shutdown()
        self.buffer.clear()
        self._started = False


__all__ = ["ScopelineRuntime"]
