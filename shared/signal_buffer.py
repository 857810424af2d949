from __future__ import annotations

from threading import Lock
from typing import Sequence

import numpy as np


class SignalBuffer:
    """
    Single-slot mailbox holding the most recent batch of samples.

    Every ingest replaces the whole slot (last write wins); nothing is
    appended. Readers get the stored array by reference. The array is marked
    read-only so accidental mutation outside the render loop raises.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._samples = self._freeze(np.zeros(0, dtype=np.float32))
        self._generation = 0

    @staticmethod
    def _freeze(arr: np.ndarray) -> np.ndarray:
        arr.setflags(write=False)
        return arr

    @property
    def generation(self) -> int:
        """Number of batches ingested so far."""
        with self._lock:
            return self._generation

    def ingest(self, batch: Sequence[float] | np.ndarray) -> None:
        arr = np.array(batch, dtype=np.float32, copy=True)
        if arr.ndim != 1:
            raise ValueError(f"batch must be 1D, got {arr.ndim}D")
        arr = self._freeze(arr)
        with self._lock:
            self._samples = arr
            self._generation += 1

    def current(self) -> np.ndarray:
        with self._lock:
            return self._samples

    def clear(self) -> None:
        with self._lock:
            self._samples = self._freeze(np.zeros(0, dtype=np.float32))

    def __len__(self) -> int:
        with self._lock:
            return int(self._samples.size)
