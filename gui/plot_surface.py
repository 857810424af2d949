from __future__ import annotations

import numpy as np
import pyqtgraph as pg

from core.render_loop import Surface


class PlotSurface(Surface):
    """
    Paints the waveform polyline into a pyqtgraph plot item.

    The view range is pinned to the viewport in pixels ([0, W] x [0, H]) and
    the y axis is inverted, so the render loop's pixel coordinates land where
    they would on a raw canvas: y=0 is the top edge.
    """

    def __init__(self, plot_item: pg.PlotItem, color=(0, 0, 0), width: float = 1.0) -> None:
        self._plot_item = plot_item
        self._plot_item.invertY(True)
        self._curve = pg.PlotCurveItem(pen=pg.mkPen(color, width=width), antialias=False)
        self._plot_item.addItem(self._curve)
        self._size: tuple[int, int] = (0, 0)

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    def clear(self, width: int, height: int) -> None:
        self._curve.clear()
        if (width, height) != self._size:
            self._plot_item.getViewBox().setRange(
                xRange=(0.0, float(width)),
                yRange=(0.0, float(height)),
                padding=0.0,
            )
            self._size = (width, height)

    def draw_polyline(self, xs: np.ndarray, ys: np.ndarray) -> None:
        self._curve.setData(xs, ys)

    def cleanup(self) -> None:
        """Remove curve from plot."""
        try:
            self._plot_item.removeItem(self._curve)
        except Exception:
            pass
