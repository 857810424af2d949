from __future__ import annotations

import logging
from typing import Callable, Optional

import pyqtgraph as pg
from PySide6 import QtCore, QtGui, QtWidgets

from core.reconfiguration import ReconfigurationOutcome
from core.runtime import ScopelineRuntime
from shared.app_settings import AppSettings

from .frame_scheduler import QtFrameScheduler
from .plot_surface import PlotSurface
from .settings_manager import SettingsManager
from .settings_panel import SettingsPanel
from .signal_bridge import SignalBridge
from .waveform_view import WaveformView

_TEXT_INPUT_TYPES = (
    QtWidgets.QLineEdit,
    QtWidgets.QTextEdit,
    QtWidgets.QPlainTextEdit,
    QtWidgets.QAbstractSpinBox,
)


class MainWindow(QtWidgets.QMainWindow):
    """Main application window: live waveform plus the settings overlay."""

    def __init__(self, runtime: ScopelineRuntime, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = logging.getLogger(__name__)
        self.runtime = runtime
        self._app_settings: AppSettings = runtime.app_settings_store.get()
        self._toggle_key = self._app_settings.settings_key.lower()
        self._closed = False

        self.setWindowTitle("Scopeline")
        self.resize(960, 480)
        self._style_plot()
        self._init_ui()

        self._surface = PlotSurface(self.waveform_view.getPlotItem())
        self._scheduler = QtFrameScheduler(self, fallback_hz=self._app_settings.fallback_refresh_hz)
        runtime.attach_renderer(self._surface, self._scheduler)

        self.settings_manager = SettingsManager(runtime.settings_state, self)
        self._bridge = SignalBridge(self)
        self._bridge.wire_settings()

        # Application-wide key filter for the settings toggle.
        app = QtWidgets.QApplication.instance()
        if app is not None:
            app.installEventFilter(self)

        self._app_settings_unsub: Optional[Callable[[], None]] = runtime.app_settings_store.subscribe(
            self._apply_app_settings, replay=False
        )

        self._status_timer = QtCore.QTimer(self)
        self._status_timer.setInterval(500)
        self._status_timer.timeout.connect(self._refresh_status)
        self._status_timer.start()

        # Standard close shortcut (Cmd+W on macOS, Ctrl+W on Windows/Linux)
        self._close_shortcut = QtGui.QShortcut(QtGui.QKeySequence.StandardKey.Close, self)
        self._close_shortcut.activated.connect(self.close)

    def _init_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        self.waveform_view = WaveformView(self.runtime.viewport, central)
        layout.addWidget(self.waveform_view)
        self.setCentralWidget(central)

        # Overlay floats above the waveform; it is not part of the layout.
        self.settings_panel = SettingsPanel(central)
        self.settings_panel.hide()

        self._status_label = QtWidgets.QLabel("")
        self.statusBar().addPermanentWidget(self._status_label)

    def _style_plot(self) -> None:
        pg.setConfigOptions(antialias=False)

    # ------------------------------------------------------------------
    # Settings overlay
    # ------------------------------------------------------------------

    def show_settings_panel(self) -> None:
        self._place_settings_panel()
        self.settings_panel.show()
        self.settings_panel.raise_()

    def hide_settings_panel(self) -> None:
        self.settings_panel.hide()
        self.waveform_view.setFocus()

    def _place_settings_panel(self) -> None:
        panel = self.settings_panel
        panel.adjustSize()
        central = self.centralWidget()
        x = max(0, (central.width() - panel.width()) // 2)
        y = max(0, (central.height() - panel.height()) // 2)
        panel.move(x, y)

    def _on_settings_applied(self, outcome: ReconfigurationOutcome) -> None:
        if not outcome.fully_applied:
            self.statusBar().showMessage("Some settings could not be applied", 4000)

    def _on_restart_failed(self, message: str) -> None:
        self.statusBar().showMessage(f"Capture did not restart: {message}")

    def _apply_app_settings(self, settings: AppSettings) -> None:
        self._app_settings = settings
        key = settings.settings_key.lower()
        if key != self._toggle_key:
            self._logger.debug("Settings toggle key changed to %r", key)
            self._toggle_key = key

    @property
    def toggle_key(self) -> str:
        return self._toggle_key

    def _is_toggle_key(self, event: QtGui.QKeyEvent) -> bool:
        if event.modifiers() & (
            QtCore.Qt.KeyboardModifier.ControlModifier
            | QtCore.Qt.KeyboardModifier.AltModifier
            | QtCore.Qt.KeyboardModifier.MetaModifier
        ):
            return False
        return event.text().lower() == self._toggle_key

    @staticmethod
    def _text_input_focused() -> bool:
        widget = QtWidgets.QApplication.focusWidget()
        if isinstance(widget, _TEXT_INPUT_TYPES):
            return True
        return isinstance(widget, QtWidgets.QComboBox) and widget.isEditable()

    def eventFilter(self, watched: QtCore.QObject, event: QtCore.QEvent) -> bool:  # type: ignore[override]
        if event.type() == QtCore.QEvent.Type.KeyPress and self.isActiveWindow():
            if self._is_toggle_key(event) and not event.isAutoRepeat() and not self._text_input_focused():
                self.settings_manager.toggle()
                return True
        return super().eventFilter(watched, event)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def _refresh_status(self) -> None:
        loop = self.runtime.render_loop
        render = loop.stats() if loop is not None else {"fps": 0.0}
        ingest = self.runtime.ingestion.stats()
        self._status_label.setText(
            f"{render['fps']:.0f} fps | {ingest['batches']} batches | {ingest['failures']} failed requests"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        if self.settings_panel.isVisible():
            self._place_settings_panel()

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # type: ignore[override]
        if not self._closed:
            self._closed = True
            app = QtWidgets.QApplication.instance()
            if app is not None:
                app.removeEventFilter(self)
            if self._app_settings_unsub:
                self._app_settings_unsub()
                self._app_settings_unsub = None
            self._status_timer.stop()
            self.settings_manager.cleanup()
            try:
                self.runtime.shutdown()
            except Exception as exc:
                self._logger.debug("Exception during runtime shutdown on close: %s", exc)
            self._surface.cleanup()
        super().closeEvent(event)
