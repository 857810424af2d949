"""
Test doubles for the render loop: a hand-cranked frame scheduler and a
surface that records what it was asked to draw.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from core.render_loop import FrameCallback, FrameScheduler, Surface


class ManualFrameScheduler(FrameScheduler):
    """Holds at most one pending callback until the test calls :meth:`fire`."""

    def __init__(self) -> None:
        self._pending: Optional[FrameCallback] = None
        self.requests = 0
        self.cancels = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def request_frame(self, callback: FrameCallback) -> None:
        self.requests += 1
        self._pending = callback

    def cancel(self) -> None:
        self.cancels += 1
        self._pending = None

    def fire(self, frames: int = 1) -> int:
        """Run up to ``frames`` pending callbacks; returns how many ran."""
        ran = 0
        for _ in range(frames):
            callback, self._pending = self._pending, None
            if callback is None:
                break
            callback()
            ran += 1
        return ran


@dataclass
class DrawnFrame:
    width: int
    height: int
    xs: np.ndarray
    ys: np.ndarray


class RecordingSurface(Surface):
    """Keeps every frame drawn onto it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.frames: List[DrawnFrame] = []
        self._size: Tuple[int, int] = (0, 0)

    def clear(self, width: int, height: int) -> None:
        with self._lock:
            self._size = (width, height)

    def draw_polyline(self, xs: np.ndarray, ys: np.ndarray) -> None:
        with self._lock:
            w, h = self._size
            self.frames.append(DrawnFrame(w, h, np.array(xs, copy=True), np.array(ys, copy=True)))

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.frames)

    def last(self) -> DrawnFrame:
        with self._lock:
            return self.frames[-1]
