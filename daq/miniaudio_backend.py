# daq/miniaudio_backend.py
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

import miniaudio
import numpy as np

from .base_backend import CaptureBackend, DeviceNotFoundError, NoDeviceAvailableError, StreamError

logger = logging.getLogger(__name__)


class MiniaudioCaptureBackend(CaptureBackend):
    """
    Audio input capture using `miniaudio`.

    Notes
    -----
    • Devices are identified by their host name; "Default" leaves the choice
      to miniaudio (``device_id=None``).
    • The driver delivers interleaved float32 frames which are down-mixed to
      mono before they enter the capture window.
    """

    @classmethod
    def backend_name(cls) -> str:
        return "Sound Card"

    def __init__(
        self,
        *,
        sample_rate: int = 48_000,
        channels: int = 2,
        buffersize_msec: int = 20,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._sample_rate = int(sample_rate)
        self._channels = int(channels)
        self._buffersize_msec = int(buffersize_msec)
        self._device: Optional[miniaudio.CaptureDevice] = None
        self._device_lock = threading.Lock()

    # ---------- Discovery helpers ---------------------------------------------

    @staticmethod
    def _captures() -> List[Dict[str, Any]]:
        return miniaudio.Devices().get_captures()

    def _enumerate_devices(self) -> List[str]:
        return [str(dev["name"]) for dev in self._captures()]

    def _resolve(self, device_name: Optional[str]) -> tuple[Any, int]:
        """Return the miniaudio device id and channel count for a name."""
        captures = self._captures()
        if device_name is None:
            if not captures:
                raise NoDeviceAvailableError("No input device was available")
            return None, self._channels

        for dev in captures:
            if dev.get("name") != device_name:
                continue
            max_channels = 0
            for fmt in dev.get("formats") or []:
                max_channels = max(max_channels, int(fmt.get("channels", 0)))
            return dev["id"], max_channels or self._channels
        raise DeviceNotFoundError(device_name)

    # ---------- Lifecycle ------------------------------------------------------

    def _start_impl(self, device_name: Optional[str]) -> None:
        device_id, n_channels = self._resolve(device_name)

        def capture_generator():
            while True:
                data_bytes = yield
                data = np.frombuffer(data_bytes, dtype=np.float32)
                frames = data.size // n_channels
                if frames > 0:
                    self._write_frames(data[: frames * n_channels].reshape((frames, n_channels)))

        try:
            device = miniaudio.CaptureDevice(
                device_id=device_id,
                nchannels=n_channels,
                sample_rate=self._sample_rate,
                input_format=miniaudio.SampleFormat.FLOAT32,
                buffersize_msec=self._buffersize_msec,
            )
            gen = capture_generator()
            next(gen)
            device.start(gen)
        except miniaudio.MiniaudioError as exc:
            raise StreamError(f"Failed to start capture on {device_name or 'Default'}: {exc}") from exc

        with self._device_lock:
            self._device = device

    def _stop_impl(self) -> None:
        with self._device_lock:
            device, self._device = self._device, None
        if device is None:
            return
        try:
            device.stop()
        finally:
            device.close()
