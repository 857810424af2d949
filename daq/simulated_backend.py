# daq/simulated_backend.py
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

import numpy as np

from .base_backend import CaptureBackend

logger = logging.getLogger(__name__)

Waveform = Callable[[np.ndarray], np.ndarray]


def _sine(freq_hz: float, amplitude: float = 0.8) -> Waveform:
    return lambda t: amplitude * np.sin(2.0 * np.pi * freq_hz * t)


def _chirp(f0: float = 50.0, f1: float = 2000.0, period_s: float = 2.0) -> Waveform:
    def wave(t: np.ndarray) -> np.ndarray:
        tau = np.mod(t, period_s)
        k = (f1 - f0) / period_s
        return 0.7 * np.sin(2.0 * np.pi * (f0 * tau + 0.5 * k * tau * tau))
    return wave


class SimulatedCaptureBackend(CaptureBackend):
    """
    Synthesises audio-like signals for a handful of virtual input devices.

    A worker thread produces one chunk every ``chunk_interval_s`` seconds
    into the capture window, mimicking a sound card callback.
    """

    @classmethod
    def backend_name(cls) -> str:
        return "Simulated"

    def __init__(
        self,
        *,
        sample_rate: int = 48_000,
        chunk_interval_s: float = 0.01,
        noise_level: float = 0.02,
        seed: Optional[int] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._sample_rate = int(sample_rate)
        self._chunk_interval = float(chunk_interval_s)
        self._noise_level = float(noise_level)
        self._rng = np.random.default_rng(seed)
        rng = self._rng
        self._waveforms: Dict[str, Waveform] = {
            "Sine 440 Hz": _sine(440.0),
            "Chirp": _chirp(),
            "Noise": lambda t: np.clip(rng.normal(0.0, 0.3, t.size), -1.0, 1.0),
        }
        self._default_waveform: Waveform = _sine(220.0, amplitude=0.6)
        self._active: Waveform = self._default_waveform
        self._sample_counter = 0
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def _enumerate_devices(self) -> List[str]:
        return list(self._waveforms)

    # ---- Generation ----------------------------------------------------------

    def generate(self, frames: int) -> np.ndarray:
        """Produce the next ``frames`` samples of the active waveform."""
        t = (self._sample_counter + np.arange(frames)) / float(self._sample_rate)
        self._sample_counter += frames
        samples = self._active(t)
        if self._noise_level > 0:
            samples = samples + self._rng.normal(0.0, self._noise_level, frames)
        return np.clip(samples, -1.0, 1.0).astype(np.float32)

    def _run(self) -> None:
        frames = max(1, int(self._sample_rate * self._chunk_interval))
        next_deadline = time.perf_counter()
        while not self._stop_event.is_set():
            self._write_frames(self.generate(frames))
            next_deadline += self._chunk_interval
            delay = next_deadline - time.perf_counter()
            if delay < 0:
                # Fell behind; resynchronise instead of bursting.
                next_deadline = time.perf_counter()
                delay = 0.0
            self._stop_event.wait(delay)

    # ---- Lifecycle -----------------------------------------------------------

    def _start_impl(self, device_name: Optional[str]) -> None:
        if device_name is None:
            self._active = self._default_waveform
        else:
            self._active = self._waveforms[device_name]
        self._sample_counter = 0
        self._stop_event.clear()
        self._worker = threading.Thread(target=self._run, name="SimulatedCapture", daemon=True)
        self._worker.start()

    def _stop_impl(self) -> None:
        self._stop_event.set()
        if self._worker is not None:
            self._worker.join(timeout=1.0)
            self._worker = None
