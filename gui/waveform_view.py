"""WaveformView - the always-visible drawing area.

A bare pyqtgraph plot (no axes, no mouse interaction) whose size changes are
published to the ViewportTracker as they happen.
"""

from __future__ import annotations

import logging
from typing import Optional

import pyqtgraph as pg
from PySide6 import QtCore, QtGui, QtWidgets

from core.render_loop import ViewportTracker

logger = logging.getLogger(__name__)


class WaveformView(pg.PlotWidget):
    """Plot widget reporting its pixel size to a ViewportTracker."""

    def __init__(self, viewport: ViewportTracker, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent, enableMenu=False)
        self._viewport = viewport

        try:
            self.hideButtons()
        except Exception as exc:
            logger.debug("Failed to hide plot buttons: %s", exc)

        self.setMenuEnabled(False)
        self.setMouseEnabled(x=False, y=False)
        self.setBackground(QtGui.QColor(255, 255, 255))
        plot_item = self.getPlotItem()
        plot_item.hideAxis("left")
        plot_item.hideAxis("bottom")
        plot_item.setContentsMargins(0, 0, 0, 0)
        plot_item.getViewBox().setDefaultPadding(0.0)
        self.setFocusPolicy(QtCore.Qt.FocusPolicy.NoFocus)

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        size = event.size()
        dims = self._viewport.observe(size.width(), size.height())
        logger.debug("resize %s x %s", dims.width, dims.height)
