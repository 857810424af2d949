"""DeviceConfigState - pure-Python state machine behind the settings overlay.

IDLE -> EDITING (open) -> APPLYING (confirm) -> IDLE once start capture is
dispatched, or EDITING -> IDLE (cancel) without any backend call. While
editing, the selected device and the pending resolution are local and do not
touch the backend until confirmed.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

from shared.models import DEFAULT_DEVICE, DeviceDescriptor, ReconfigurationRequest

from .backend_client import BackendClient
from .parameter_curve import ParameterCurve, decode_resolution
from .reconfiguration import ReconfigurationOutcome, ReconfigurationSequencer

logger = logging.getLogger(__name__)


class SettingsPhase(Enum):
    IDLE = auto()
    EDITING = auto()
    APPLYING = auto()


class SettingsEventType(Enum):
    """Event types emitted by DeviceConfigState."""
    PHASE_CHANGED = auto()
    DEVICES_CHANGED = auto()
    DEVICE_CHANGED = auto()
    RESOLUTION_CHANGED = auto()
    APPLIED = auto()


@dataclass
class SettingsEvent:
    """Event payload from DeviceConfigState."""
    event_type: SettingsEventType
    data: Any = None


SettingsListener = Callable[[SettingsEvent], None]


class InvalidTransitionError(RuntimeError):
    """Requested a transition the current phase does not allow."""


class DeviceConfigState:
    """Owns the open/closed state of the settings overlay and its edits."""

    def __init__(
        self,
        client: BackendClient,
        sequencer: ReconfigurationSequencer,
        curve: Optional[ParameterCurve] = None,
    ) -> None:
        self._client = client
        self._sequencer = sequencer
        self._curve = curve or ParameterCurve()
        self._lock = threading.RLock()
        self._listeners: Dict[int, SettingsListener] = {}
        self._next_token = 0

        self._phase = SettingsPhase.IDLE
        self._session = 0
        self._devices: List[str] = [DEFAULT_DEVICE]
        self._applied_device = DEFAULT_DEVICE
        self._selected_device = DEFAULT_DEVICE
        self._applied_multiplier = self._curve.clamp(1.0)
        self._multiplier = self._applied_multiplier
        self._position = self._curve.to_position(self._multiplier)
        # Set once the user edits during the current session; seed queries
        # then only refresh the applied values.
        self._device_touched = False
        self._resolution_touched = False

    # -------------------------------------------------------------------------
    # Listener Management
    # -------------------------------------------------------------------------

    def add_listener(self, callback: SettingsListener) -> int:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = callback
            return token

    def remove_listener(self, token: int) -> None:
        with self._lock:
            self._listeners.pop(token, None)

    def _emit(self, event_type: SettingsEventType, data: Any = None) -> None:
        event = SettingsEvent(event_type=event_type, data=data)
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(event)
            except Exception as exc:
                logger.debug("Settings listener error: %s", exc)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def curve(self) -> ParameterCurve:
        return self._curve

    @property
    def phase(self) -> SettingsPhase:
        with self._lock:
            return self._phase

    @property
    def is_open(self) -> bool:
        return self.phase is not SettingsPhase.IDLE

    @property
    def devices(self) -> List[str]:
        with self._lock:
            return list(self._devices)

    @property
    def applied_device(self) -> str:
        with self._lock:
            return self._applied_device

    @property
    def selected_device(self) -> str:
        with self._lock:
            return self._selected_device

    @property
    def multiplier(self) -> float:
        """Pending resolution multiplier."""
        with self._lock:
            return self._multiplier

    @property
    def applied_multiplier(self) -> float:
        with self._lock:
            return self._applied_multiplier

    @property
    def position(self) -> float:
        with self._lock:
            return self._position

    def descriptors(self) -> List[DeviceDescriptor]:
        with self._lock:
            return [DeviceDescriptor(name, name == self._applied_device) for name in self._devices]

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _set_phase(self, phase: SettingsPhase) -> None:
        with self._lock:
            if self._phase is phase:
                return
            logger.debug("Settings phase %s -> %s", self._phase.name, phase.name)
            self._phase = phase
        self._emit(SettingsEventType.PHASE_CHANGED, phase)

    def open(self) -> List[Future]:
        """Enter EDITING and seed local state from three independent queries."""
        with self._lock:
            if self._phase is not SettingsPhase.IDLE:
                raise InvalidTransitionError(f"cannot open settings while {self._phase.name}")
            self._session += 1
            session = self._session
            self._device_touched = False
            self._resolution_touched = False
            self._selected_device = self._applied_device
            self._multiplier = self._applied_multiplier
            self._position = self._curve.to_position(self._multiplier)
        self._set_phase(SettingsPhase.EDITING)

        queries = [
            (self._client.list_devices(), self._on_devices, "Query devices"),
            (self._client.current_device(), self._on_current_device, "Query current device"),
            (self._client.resolution(), self._on_resolution, "Query resolution"),
        ]
        for future, handler, action in queries:
            future.add_done_callback(self._query_callback(session, handler, action))
        return [future for future, _, _ in queries]

    def _query_callback(self, session: int, handler: Callable[[Any], None], action: str):
        def _done(future: Future) -> None:
            if future.cancelled():
                return
            exc = future.exception()
            if exc is not None:
                logger.warning("%s failed: %s", action, exc)
                return
            with self._lock:
                if session != self._session or self._phase is not SettingsPhase.EDITING:
                    logger.debug("%s result ignored; settings session ended", action)
                    return
            handler(future.result())

        return _done

    def _on_devices(self, names: List[str]) -> None:
        devices = [str(name) for name in names]
        if DEFAULT_DEVICE not in devices:
            devices.insert(0, DEFAULT_DEVICE)
        with self._lock:
            self._devices = devices
        self._emit(SettingsEventType.DEVICES_CHANGED, list(devices))

    def _on_current_device(self, name: str) -> None:
        with self._lock:
            self._applied_device = str(name)
            if not self._device_touched:
                self._selected_device = str(name)
            selected = self._selected_device
        self._emit(SettingsEventType.DEVICE_CHANGED, selected)

    def _on_resolution(self, raw: int) -> None:
        multiplier = self._curve.clamp(decode_resolution(raw))
        with self._lock:
            self._applied_multiplier = multiplier
            if not self._resolution_touched:
                self._multiplier = multiplier
                self._position = self._curve.to_position(multiplier)
            pending = self._multiplier
        self._emit(SettingsEventType.RESOLUTION_CHANGED, pending)

    def toggle(self) -> None:
        """Open when idle, cancel when editing; ignored while applying."""
        phase = self.phase
        if phase is SettingsPhase.IDLE:
            self.open()
        elif phase is SettingsPhase.EDITING:
            self.cancel()
        else:
            logger.debug("Settings toggle ignored while applying")

    def cancel(self) -> None:
        """Leave EDITING without touching the backend, discarding edits."""
        with self._lock:
            if self._phase is not SettingsPhase.EDITING:
                raise InvalidTransitionError(f"cannot cancel settings while {self._phase.name}")
            self._selected_device = self._applied_device
            self._multiplier = self._applied_multiplier
            self._position = self._curve.to_position(self._multiplier)
        self._set_phase(SettingsPhase.IDLE)

    def confirm(self) -> "Future[ReconfigurationOutcome]":
        """Hand the pending edits to the sequencer and enter APPLYING."""
        with self._lock:
            if self._phase is not SettingsPhase.EDITING:
                raise InvalidTransitionError(f"cannot apply settings while {self._phase.name}")
            request = ReconfigurationRequest(self._selected_device, self._multiplier)
            logger.debug("Settings phase %s -> %s", self._phase.name, SettingsPhase.APPLYING.name)
            self._phase = SettingsPhase.APPLYING
        self._emit(SettingsEventType.PHASE_CHANGED, SettingsPhase.APPLYING)
        try:
            return self._sequencer.apply(request, on_dispatched=self._on_dispatched)
        except RuntimeError as exc:
            # Sequencer already shut down (application closing).
            logger.warning("Reconfiguration could not be queued: %s", exc)
            self._set_phase(SettingsPhase.IDLE)
            failed: Future = Future()
            failed.set_exception(exc)
            return failed

    def _on_dispatched(self, outcome: ReconfigurationOutcome) -> None:
        with self._lock:
            if outcome.applied_device is not None:
                self._applied_device = outcome.applied_device
            if outcome.resolution_ok:
                self._applied_multiplier = outcome.request.target_multiplier
            self._selected_device = self._applied_device
            self._multiplier = self._applied_multiplier
            self._position = self._curve.to_position(self._multiplier)
        self._emit(SettingsEventType.APPLIED, outcome)
        self._set_phase(SettingsPhase.IDLE)

    # -------------------------------------------------------------------------
    # Local edits
    # -------------------------------------------------------------------------

    def _require_editing(self) -> None:
        if self._phase is not SettingsPhase.EDITING:
            raise InvalidTransitionError(f"settings are not being edited ({self._phase.name})")

    def select_device(self, name: str) -> None:
        with self._lock:
            self._require_editing()
            self._selected_device = str(name)
            self._device_touched = True

    def set_position(self, position: float) -> float:
        """Move the slider; returns the resulting pending multiplier."""
        with self._lock:
            self._require_editing()
            self._position = min(max(float(position), 0.0), 1.0)
            self._multiplier = self._curve.to_multiplier(self._position)
            self._resolution_touched = True
            return self._multiplier

    def set_multiplier(self, multiplier: float) -> float:
        """Set the pending multiplier directly; returns the slider position."""
        with self._lock:
            self._require_editing()
            self._multiplier = self._curve.clamp(multiplier)
            self._position = self._curve.to_position(self._multiplier)
            self._resolution_touched = True
            return self._position


__all__ = [
    "DeviceConfigState",
    "InvalidTransitionError",
    "SettingsEvent",
    "SettingsEventType",
    "SettingsListener",
    "SettingsPhase",
]
