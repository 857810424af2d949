"""Frame-driven waveform rendering.

The render loop repaints the surface once per display frame from whatever
the SignalBuffer holds at that moment, independently of how often samples
arrive. Viewport size changes are observed elsewhere and simply read at the
top of the next frame.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

from shared.models import ViewportDimensions
from shared.signal_buffer import SignalBuffer

logger = logging.getLogger(__name__)

FrameCallback = Callable[[], None]


class ViewportTracker:
    """Holds the last observed surface size; replaced atomically on resize."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dims: Optional[ViewportDimensions] = None

    def observe(self, width: int, height: int) -> ViewportDimensions:
        dims = ViewportDimensions(width, height)
        with self._lock:
            self._dims = dims
        return dims

    def current(self) -> Optional[ViewportDimensions]:
        with self._lock:
            return self._dims


class Surface(ABC):
    """Something the render loop can paint a waveform onto."""

    @abstractmethod
    def clear(self, width: int, height: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def draw_polyline(self, xs: np.ndarray, ys: np.ndarray) -> None:
        raise NotImplementedError


class FrameScheduler(ABC):
    """Host primitive that runs a callback on the next display frame."""

    @abstractmethod
    def request_frame(self, callback: FrameCallback) -> None:
        raise NotImplementedError

    @abstractmethod
    def cancel(self) -> None:
        """Drop the pending callback, if any."""
        raise NotImplementedError


class ThreadedFrameScheduler(FrameScheduler):
    """Fixed-rate scheduler for non-interactive hosts (one timer per frame)."""

    def __init__(self, rate_hz: float = 60.0) -> None:
        if rate_hz <= 0:
            raise ValueError("rate_hz must be positive")
        self._interval = 1.0 / float(rate_hz)
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    def request_frame(self, callback: FrameCallback) -> None:
        timer = threading.Timer(self._interval, callback)
        timer.daemon = True
        with self._lock:
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()


@dataclass
class RenderStats:
    drawn: int = 0
    skipped: int = 0
    errors: int = 0
    fps: float = 0.0

    def snapshot(self) -> Dict[str, float]:
        return {"drawn": self.drawn, "skipped": self.skipped, "errors": self.errors, "fps": self.fps}


def waveform_points(samples: np.ndarray, width: float, height: float) -> tuple[np.ndarray, np.ndarray]:
    """Pixel coordinates of ``samples`` on a ``width`` x ``height`` surface.

    x spans [0, width] evenly; amplitude -1 maps to y=0 (top edge) and +1 to
    y=height (bottom edge).
    """
    n = int(samples.size)
    xs = np.linspace(0.0, float(width), n)
    ys = (np.asarray(samples, dtype=np.float64) + 1.0) * (float(height) / 2.0)
    return xs, ys


class RenderLoop:
    """Self-rescheduling painter of the SignalBuffer contents."""

    def __init__(
        self,
        buffer: SignalBuffer,
        viewport: ViewportTracker,
        surface: Surface,
        scheduler: FrameScheduler,
    ) -> None:
        self._buffer = buffer
        self._viewport = viewport
        self._surface = surface
        self._scheduler = scheduler
        self._lock = threading.RLock()
        self._running = False
        self._stats = RenderStats()
        self._fps_count = 0
        self._fps_last_calc = time.perf_counter()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._scheduler.request_frame(self._on_frame)

    def stop(self) -> None:
        """Cancel the pending frame; nothing is drawn after this returns."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._scheduler.cancel()

    def _on_frame(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._scheduler.request_frame(self._on_frame)
            try:
                self._render()
            except Exception as exc:
                self._stats.errors += 1
                logger.error("Render frame failed: %s", exc)

    def _render(self) -> None:
        dims = self._viewport.current()
        samples = self._buffer.current()
        if dims is None or not dims.drawable or samples.size < 2:
            self._stats.skipped += 1
            return

        xs, ys = waveform_points(samples, dims.width, dims.height)
        self._surface.clear(dims.width, dims.height)
        self._surface.draw_polyline(xs, ys)
        self._stats.drawn += 1
        self._update_fps()

    def _update_fps(self) -> None:
        self._fps_count += 1
        now = time.perf_counter()
        elapsed = now - self._fps_last_calc
        if elapsed >= 1.0:
            self._stats.fps = self._fps_count / elapsed
            self._fps_count = 0
            self._fps_last_calc = now

    def stats(self) -> Dict[str, float]:
        with self._lock:
            return self._stats.snapshot()


__all__ = [
    "FrameCallback",
    "FrameScheduler",
    "RenderLoop",
    "RenderStats",
    "Surface",
    "ThreadedFrameScheduler",
    "ViewportTracker",
    "waveform_points",
]
