from __future__ import annotations

from threading import RLock

import numpy as np


class RollingWindow:
    """
    Thread-safe window over the most recent ``capacity`` mono samples.

    Backed by a preallocated NumPy array written circularly. Writes longer
    than the capacity keep only their tail.
    """

    def __init__(self, capacity: int, dtype: np.dtype | str = np.float32) -> None:
        capacity = int(capacity)
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._data = np.zeros(capacity, dtype=dtype)
        self._lock = RLock()
        self._write_pos = 0
        self._filled = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def filled(self) -> int:
        with self._lock:
            return self._filled

    def write(self, data: np.ndarray) -> None:
        arr = np.asarray(data, dtype=self._data.dtype).reshape(-1)
        frames = arr.size
        if frames == 0:
            return
        with self._lock:
            if frames >= self._capacity:
                self._data[:] = arr[-self._capacity:]
                self._write_pos = 0
                self._filled = self._capacity
                return

            start = self._write_pos
            end = start + frames
            if end <= self._capacity:
                self._data[start:end] = arr
            else:
                first = self._capacity - start
                self._data[start:] = arr[:first]
                self._data[: end - self._capacity] = arr[first:]
            self._write_pos = end % self._capacity
            self._filled = min(self._capacity, self._filled + frames)

    def latest(self, count: int | None = None) -> np.ndarray:
        """Return up to ``count`` most recent samples, oldest first, as a copy."""
        with self._lock:
            n = self._filled if count is None else min(int(count), self._filled)
            if n <= 0:
                return np.zeros(0, dtype=self._data.dtype)
            start = (self._write_pos - n) % self._capacity
            end = start + n
            if end <= self._capacity:
                return self._data[start:end].copy()
            return np.concatenate((self._data[start:], self._data[: end - self._capacity]))

    def resize(self, capacity: int) -> None:
        """Change the capacity, keeping as much recent history as fits."""
        capacity = int(capacity)
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        with self._lock:
            if capacity == self._capacity:
                return
            history = self.latest(capacity)
            self._capacity = capacity
            self._data = np.zeros(capacity, dtype=self._data.dtype)
            self._write_pos = 0
            self._filled = 0
            self.write(history)

    def clear(self) -> None:
        with self._lock:
            self._write_pos = 0
            self._filled = 0
