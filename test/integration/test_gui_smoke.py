"""
Smoke tests for the Qt front end on the offscreen platform.

Skipped when PySide6 or pyqtgraph are not installed.
"""
from __future__ import annotations

import os
import time

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

QtWidgets = pytest.importorskip("PySide6.QtWidgets")
pg = pytest.importorskip("pyqtgraph")

import numpy as np  # noqa: E402
from PySide6 import QtCore, QtGui  # noqa: E402

from core.render_loop import waveform_points  # noqa: E402
from core.runtime import ScopelineRuntime  # noqa: E402
from core.settings_state import SettingsPhase  # noqa: E402
from gui import MainWindow  # noqa: E402
from gui.plot_surface import PlotSurface  # noqa: E402
from shared.app_settings import AppSettingsStore  # noqa: E402
from test.fixtures.controlled_backend import ControlledBackend  # noqa: E402

TIMEOUT = 5.0


@pytest.fixture(scope="module")
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication(["scopeline-test"])
    yield app


def process_until(app, predicate, timeout: float = TIMEOUT) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        app.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def window(qapp):
    backend = ControlledBackend()
    runtime = ScopelineRuntime(backend)
    win = MainWindow(runtime)
    win.resize(400, 300)
    win.show()
    runtime.start()
    yield win
    win.close()


def test_viewport_follows_widget_size(qapp, window):
    assert process_until(qapp, lambda: window.runtime.viewport.current() is not None)
    dims = window.runtime.viewport.current()
    assert dims.width > 0 and dims.height > 0


def test_toggle_shows_and_hides_panel(qapp, window):
    manager = window.settings_manager
    manager.toggle()
    assert process_until(qapp, lambda: window.settings_panel.isVisible())
    assert process_until(qapp, lambda: window.settings_panel.device_combo.count() == 3)

    manager.toggle()
    assert process_until(qapp, lambda: not window.settings_panel.isVisible())
    assert manager.phase() is SettingsPhase.IDLE


def test_apply_from_panel(qapp, window):
    backend = window.runtime.backend
    window.settings_manager.toggle()
    assert process_until(qapp, lambda: window.settings_panel.device_combo.count() == 3)

    window.settings_manager.select_device("Mic B")
    window.settings_panel.apply_btn.click()

    assert process_until(qapp, lambda: not window.settings_panel.isVisible())
    assert process_until(qapp, lambda: backend.current_device() == "Mic B")
    assert process_until(qapp, lambda: backend.running)


def test_close_shuts_down_runtime(qapp):
    backend = ControlledBackend()
    runtime = ScopelineRuntime(backend)
    win = MainWindow(runtime)
    win.show()
    runtime.start()
    assert process_until(qapp, lambda: backend.running)

    win.close()

    assert not backend.running
    assert not runtime.ingestion.running
    assert not runtime.render_loop.running


def _key_press(key, text: str) -> QtGui.QKeyEvent:
    return QtGui.QKeyEvent(QtCore.QEvent.Type.KeyPress, key, QtCore.Qt.KeyboardModifier.NoModifier, text)


def test_toggle_key_follows_app_settings(qapp, window):
    assert window.toggle_key == "s"
    window.runtime.app_settings_store.update(settings_key="K")

    assert window.toggle_key == "k"
    assert window._is_toggle_key(_key_press(QtCore.Qt.Key.Key_K, "k"))
    assert not window._is_toggle_key(_key_press(QtCore.Qt.Key.Key_S, "s"))


def test_close_unsubscribes_from_app_settings(qapp):
    store = AppSettingsStore()
    runtime = ScopelineRuntime(ControlledBackend(), app_settings_store=store)
    win = MainWindow(runtime)
    win.show()
    win.close()

    store.update(settings_key="Q")
    assert win.toggle_key == "s"


def test_plot_surface_draws_and_cleans_up(qapp):
    widget = pg.PlotWidget()
    plot_item = widget.getPlotItem()
    surface = PlotSurface(plot_item)
    try:
        surface.clear(200, 100)
        assert surface.size == (200, 100)

        xs, ys = waveform_points(np.array([-1.0, 0.0, 1.0]), 200, 100)
        surface.draw_polyline(xs, ys)
        drawn_x, drawn_y = surface._curve.getData()
        assert list(drawn_x) == pytest.approx([0.0, 100.0, 200.0])
        assert list(drawn_y) == pytest.approx([0.0, 50.0, 100.0])

        surface.cleanup()
        assert surface._curve not in plot_item.items
    finally:
        widget.deleteLater()
