from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.settings_state import SettingsPhase

if TYPE_CHECKING:
    from .main_window import MainWindow

logger = logging.getLogger(__name__)


class SignalBridge:
    """
    Centralizes the wiring of signal-slot connections between UI modules.

    Keeps the knowledge of how the settings panel and the settings state talk
    to each other out of MainWindow's layout and lifecycle code.
    """

    def __init__(self, main_window: MainWindow) -> None:
        self.mw = main_window

    def wire_settings(self) -> None:
        """Connect the settings overlay to the settings state adapter."""
        mw = self.mw
        sm = mw.settings_manager
        panel = mw.settings_panel

        # Panel -> state
        panel.deviceSelected.connect(sm.select_device)
        panel.positionChanged.connect(self._on_position_changed)
        panel.applyRequested.connect(sm.confirm)
        panel.cancelRequested.connect(sm.cancel)

        # State -> panel
        sm.phaseChanged.connect(self._on_phase_changed)
        sm.devicesChanged.connect(self._refresh_devices)
        sm.deviceChanged.connect(self._refresh_devices)
        sm.resolutionChanged.connect(self._on_resolution_changed)
        sm.applied.connect(mw._on_settings_applied)
        sm.restartFailed.connect(mw._on_restart_failed)

    def _on_position_changed(self, position: float) -> None:
        multiplier = self.mw.settings_manager.set_position(position)
        self.mw.settings_panel.set_resolution_label(multiplier)

    def _refresh_devices(self, *_args) -> None:
        sm = self.mw.settings_manager
        self.mw.settings_panel.set_devices(sm.descriptors(), sm.selected_device())

    def _on_resolution_changed(self, multiplier: float) -> None:
        self.mw.settings_panel.set_resolution(multiplier, self.mw.settings_manager.position())

    def _on_phase_changed(self, phase: SettingsPhase) -> None:
        mw = self.mw
        panel = mw.settings_panel
        if phase is SettingsPhase.EDITING:
            self._refresh_devices()
            panel.set_resolution(mw.settings_manager.multiplier(), mw.settings_manager.position())
            panel.set_busy(False)
            mw.show_settings_panel()
        elif phase is SettingsPhase.APPLYING:
            panel.set_busy(True)
        else:
            panel.set_busy(False)
            mw.hide_settings_panel()
