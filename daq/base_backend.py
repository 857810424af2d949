from __future__ import annotations

"""
Base class for capture backends feeding the waveform display.

Goals:
- One synchronous contract the front end drives from worker threads
  (start/stop, device selection, resolution, emission on request).
- Push delivery of sample batches to registered listeners.
- Shared bookkeeping: the "Default" device entry, the rolling capture window
  sized by the resolution, mono down-mix and emission decimation.

Subclasses implement the *_impl() hooks to integrate real hardware
(or simulators) while relying on the shared utilities here.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

import numpy as np

from shared.models import DEFAULT_DEVICE

from .rolling_window import RollingWindow

logger = logging.getLogger(__name__)


DEFAULT_RESOLUTION = 1024
DEFAULT_MAX_EMIT = 1024

SignalListener = Callable[[np.ndarray], None]


# ----------------------------
# Errors
# ----------------------------

class BackendError(RuntimeError):
    """Base class for capture backend failures."""


class DeviceNotFoundError(BackendError):
    """No input device with the requested name exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No device named {name!r} found")
        self.name = name


class NoDeviceAvailableError(BackendError):
    """The host reports no usable input device."""


class StreamError(BackendError):
    """Building or running the capture stream failed."""


# ----------------------------
# Base class
# ----------------------------

class CaptureBackend(ABC):
    """
    Abstract base for all capture backends.

    Typical flow:
        backend = Driver()
        token = backend.add_signal_listener(on_samples)
        backend.change_device(backend.list_devices()[0])
        backend.set_resolution(2048)
        backend.start_capture()
        backend.request_emission()   # on_samples(...) is called with a batch
        backend.stop_capture()
        backend.remove_signal_listener(token)
    """

    @classmethod
    @abstractmethod
    def backend_name(cls) -> str:
        """Return the human-friendly name of this backend."""
        raise NotImplementedError

    def __init__(
        self,
        *,
        resolution: int = DEFAULT_RESOLUTION,
        max_emit_samples: int = DEFAULT_MAX_EMIT,
    ) -> None:
        if max_emit_samples < 2:
            raise ValueError("max_emit_samples must be at least 2")
        self._validate_resolution(resolution)
        self._state_lock = threading.RLock()
        self._listener_lock = threading.Lock()
        self._listeners: Dict[int, SignalListener] = {}
        self._next_token = 0
        self._device_name: Optional[str] = None  # None means host default
        self._resolution = int(resolution)
        self._max_emit = int(max_emit_samples)
        self._window = RollingWindow(self._resolution)
        self._running = False

    # ------------------------
    # Listener management
    # ------------------------

    def add_signal_listener(self, callback: SignalListener) -> int:
        with self._listener_lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = callback
            return token

    def remove_signal_listener(self, token: int) -> None:
        with self._listener_lock:
            self._listeners.pop(token, None)

    def _emit_signal(self, samples: np.ndarray) -> None:
        with self._listener_lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(samples)
            except Exception as exc:
                logger.debug("Signal listener error: %s", exc)

    # ------------------------
    # Device selection
    # ------------------------

    @abstractmethod
    def _enumerate_devices(self) -> List[str]:
        """Names of the input devices the host offers, in host order."""
        raise NotImplementedError

    def list_devices(self) -> List[str]:
        names = [DEFAULT_DEVICE]
        for name in self._enumerate_devices():
            if name and name not in names:
                names.append(name)
        return names

    def current_device(self) -> str:
        with self._state_lock:
            return self._device_name or DEFAULT_DEVICE

    def change_device(self, name: str) -> str:
        """Select the device used by the next start. Returns the new current name."""
        logger.debug("Change device, backend: %s, name: %r", self.backend_name(), name)
        if name == DEFAULT_DEVICE:
            with self._state_lock:
                self._device_name = None
            return DEFAULT_DEVICE
        if name not in self._enumerate_devices():
            raise DeviceNotFoundError(name)
        with self._state_lock:
            self._device_name = name
        return name

    # ------------------------
    # Resolution
    # ------------------------

    @staticmethod
    def _validate_resolution(raw: int) -> None:
        if int(raw) < 2:
            raise ValueError(f"resolution must be at least 2 samples, got {raw}")

    def resolution(self) -> int:
        with self._state_lock:
            return self._resolution

    def set_resolution(self, raw: int) -> None:
        self._validate_resolution(raw)
        with self._state_lock:
            self._resolution = int(raw)
            self._window.resize(self._resolution)

    # ----------
    # Run control
    # ----------

    @property
    def running(self) -> bool:
        with self._state_lock:
            return self._running

    def start_capture(self) -> None:
        with self._state_lock:
            if self._running:
                return
            self._window.clear()
            self._start_impl(self._device_name)
            self._running = True
        logger.info("%s capture started on %s", self.backend_name(), self._device_name or DEFAULT_DEVICE)

    def stop_capture(self) -> None:
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            self._stop_impl()
        logger.info("%s capture stopped", self.backend_name())

    @abstractmethod
    def _start_impl(self, device_name: Optional[str]) -> None:
        """Open ``device_name`` (None = host default) and begin delivering frames."""
        raise NotImplementedError

    @abstractmethod
    def _stop_impl(self) -> None:
        """Stop delivering frames and release the device."""
        raise NotImplementedError

    # ----------
    # Data path
    # ----------

    def _write_frames(self, frames: np.ndarray) -> None:
        """Down-mix ``(frames, channels)`` or mono data into the capture window."""
        arr = np.asarray(frames, dtype=np.float32)
        if arr.ndim == 2:
            arr = arr.mean(axis=1)
        self._window.write(arr)

    def request_emission(self) -> None:
        """Push the current capture window to every listener."""
        window = self._window.latest()
        if window.size > self._max_emit:
            stride = int(np.ceil(window.size / self._max_emit))
            window = window[::stride]
        self._emit_signal(np.clip(window, -1.0, 1.0))


__all__ = [
    "BackendError",
    "CaptureBackend",
    "DEFAULT_MAX_EMIT",
    "DEFAULT_RESOLUTION",
    "DeviceNotFoundError",
    "NoDeviceAvailableError",
    "SignalListener",
    "StreamError",
]
