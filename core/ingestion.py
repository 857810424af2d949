from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from shared.signal_buffer import SignalBuffer

from .backend_client import BackendClient

logger = logging.getLogger(__name__)


@dataclass
class IngestionStats:
    ticks: int = 0
    requests: int = 0
    skipped: int = 0
    failures: int = 0
    batches: int = 0
    rejected: int = 0

    def snapshot(self) -> Dict[str, int]:
        return {
            "ticks": self.ticks,
            "requests": self.requests,
            "skipped": self.skipped,
            "failures": self.failures,
            "batches": self.batches,
            "rejected": self.rejected,
        }


class SampleIngestion:
    """Feeds the SignalBuffer from the backend's push channel.

    The backend only emits when asked, so a tick thread asks it at a fixed
    rate. Pushes and pull requests are decoupled: a push that never arrives
    does not hold back the next tick, and at most one request is in flight.
    """

    def __init__(
        self,
        client: BackendClient,
        buffer: SignalBuffer,
        *,
        rate_hz: float = 60.0,
    ) -> None:
        if rate_hz <= 0:
            raise ValueError("rate_hz must be positive")
        self._client = client
        self._buffer = buffer
        self._tick_interval = 1.0 / float(rate_hz)
        self._stop_event = threading.Event()
        self._tick_thread: Optional[threading.Thread] = None
        self._token: Optional[int] = None
        self._pending: Optional[Future] = None
        self._lock = threading.RLock()
        self._stats = IngestionStats()

    @property
    def tick_interval(self) -> float:
        return self._tick_interval

    @property
    def running(self) -> bool:
        return self._tick_thread is not None and self._tick_thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        if self._token is None:
            self._token = self._client.subscribe(self.on_signal)
        self._stop_event.clear()
        self._tick_thread = threading.Thread(target=self._tick_loop, name="SampleIngestionTick", daemon=True)
        self._tick_thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._tick_thread is not None:
            self._tick_thread.join()
            self._tick_thread = None
        if self._token is not None:
            self._client.unsubscribe(self._token)
            self._token = None

    def _tick_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as exc:
                logger.error("Sample request tick error: %s", exc)
            self._stop_event.wait(self._tick_interval)

    def tick(self) -> None:
        """Ask the backend for one emission unless the last request is outstanding."""
        with self._lock:
            self._stats.ticks += 1
            if self._pending is not None and not self._pending.done():
                self._stats.skipped += 1
                return
            self._stats.requests += 1
            future = self._client.request_emission()
            self._pending = future
        future.add_done_callback(self._on_request_done)

    def _on_request_done(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            with self._lock:
                self._stats.failures += 1
            logger.debug("Signal emission request failed: %s", exc)

    def on_signal(self, batch: np.ndarray) -> None:
        """Single entry point for every batch the backend pushes."""
        try:
            self._buffer.ingest(batch)
        except (TypeError, ValueError) as exc:
            with self._lock:
                self._stats.rejected += 1
            logger.warning("Dropping malformed signal batch: %s", exc)
            return
        with self._lock:
            self._stats.batches += 1

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return self._stats.snapshot()


__all__ = ["IngestionStats", "SampleIngestion"]
