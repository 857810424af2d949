"""SettingsManager - Qt adapter for DeviceConfigState.

Provides Qt signals for GUI integration while delegating the settings state
machine to the pure-Python DeviceConfigState in core. Backend query results
arrive on worker threads; Qt queues the signals onto the GUI thread.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import List, Optional

from PySide6 import QtCore

from core.settings_state import DeviceConfigState, SettingsEvent, SettingsEventType, SettingsPhase
from shared.models import DeviceDescriptor

logger = logging.getLogger(__name__)


class SettingsManager(QtCore.QObject):
    """Qt adapter that exposes DeviceConfigState events as Qt signals."""

    phaseChanged = QtCore.Signal(object)
    devicesChanged = QtCore.Signal(list)
    deviceChanged = QtCore.Signal(str)
    resolutionChanged = QtCore.Signal(float)
    applied = QtCore.Signal(object)
    restartFailed = QtCore.Signal(str)

    def __init__(self, state: DeviceConfigState, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._state = state
        self._listener_token: Optional[int] = state.add_listener(self._on_state_event)

    def _on_state_event(self, event: SettingsEvent) -> None:
        """Handle events from the DeviceConfigState and emit Qt signals."""
        if event.event_type == SettingsEventType.PHASE_CHANGED:
            self.phaseChanged.emit(event.data)
        elif event.event_type == SettingsEventType.DEVICES_CHANGED:
            self.devicesChanged.emit(list(event.data or []))
        elif event.event_type == SettingsEventType.DEVICE_CHANGED:
            self.deviceChanged.emit(str(event.data))
        elif event.event_type == SettingsEventType.RESOLUTION_CHANGED:
            self.resolutionChanged.emit(float(event.data))
        elif event.event_type == SettingsEventType.APPLIED:
            self.applied.emit(event.data)
            event.data.start.add_done_callback(self._on_restart_done)

    def _on_restart_done(self, future: Future) -> None:
        # The overlay is already closed by now; report late start failures.
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self.restartFailed.emit(str(exc))

    # -------------------------------------------------------------------------
    # Delegate methods to state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> DeviceConfigState:
        return self._state

    def phase(self) -> SettingsPhase:
        return self._state.phase

    def toggle(self) -> None:
        self._state.toggle()

    def cancel(self) -> None:
        if self._state.phase is SettingsPhase.EDITING:
            self._state.cancel()

    def confirm(self) -> Optional[Future]:
        if self._state.phase is not SettingsPhase.EDITING:
            return None
        return self._state.confirm()

    def select_device(self, name: str) -> None:
        if self._state.phase is SettingsPhase.EDITING:
            self._state.select_device(name)

    def set_position(self, position: float) -> float:
        """Forward a slider move; returns the pending multiplier."""
        if self._state.phase is not SettingsPhase.EDITING:
            return self._state.multiplier
        return self._state.set_position(position)

    def descriptors(self) -> List[DeviceDescriptor]:
        return self._state.descriptors()

    def selected_device(self) -> str:
        return self._state.selected_device

    def multiplier(self) -> float:
        return self._state.multiplier

    def position(self) -> float:
        return self._state.position

    # -------------------------------------------------------------------------
    # Cleanup
    # -------------------------------------------------------------------------

    def cleanup(self) -> None:
        """Remove listener from state."""
        if self._listener_token is not None:
            self._state.remove_listener(self._listener_token)
            self._listener_token = None


__all__ = ["SettingsManager"]
