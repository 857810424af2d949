from __future__ import annotations

import logging
from typing import Optional

from PySide6 import QtCore, QtGui

from core.render_loop import FrameCallback, FrameScheduler

logger = logging.getLogger(__name__)


class QtFrameScheduler(FrameScheduler):
    """Runs one callback per display refresh on the GUI thread.

    Uses a single-shot precise QTimer whose interval follows the primary
    screen's refresh rate; ``fallback_hz`` applies when Qt cannot report one.
    """

    def __init__(self, parent: Optional[QtCore.QObject] = None, *, fallback_hz: float = 60.0) -> None:
        self._timer = QtCore.QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.setTimerType(QtCore.Qt.TimerType.PreciseTimer)
        self._timer.timeout.connect(self._fire)
        self._callback: Optional[FrameCallback] = None
        self._interval_ms = self._refresh_interval_ms(fallback_hz)

    @staticmethod
    def _refresh_interval_ms(fallback_hz: float) -> int:
        screen = QtGui.QGuiApplication.primaryScreen()
        hz = float(screen.refreshRate()) if screen is not None else 0.0
        if hz <= 0:
            hz = float(fallback_hz)
        logger.debug("Frame interval set for %.1f Hz", hz)
        return max(1, int(round(1000.0 / hz)))

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    def request_frame(self, callback: FrameCallback) -> None:
        self._callback = callback
        self._timer.start(self._interval_ms)

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()
