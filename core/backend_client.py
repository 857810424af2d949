"""BackendClient - asynchronous facade over a synchronous CaptureBackend.

Every call is executed on a small worker pool and returns a
``concurrent.futures.Future`` so that neither the GUI thread nor the render
loop ever waits on the backend. Failures surface as the future's exception.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Callable, List

if TYPE_CHECKING:  # pragma: no cover - typing only
    from daq.base_backend import CaptureBackend, SignalListener
else:  # pragma: no cover - runtime fallback
    CaptureBackend = Any
    SignalListener = Any

logger = logging.getLogger(__name__)


class BackendClient:
    """Dispatches backend operations onto worker threads."""

    def __init__(self, backend: "CaptureBackend", *, max_workers: int = 4) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be positive")
        self._backend = backend
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="Backend")
        self._closed = False

    @property
    def backend(self) -> "CaptureBackend":
        return self._backend

    def _submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        if self._closed:
            future: Future = Future()
            future.set_exception(RuntimeError("backend client is shut down"))
            return future
        return self._executor.submit(fn, *args)

    # ---- Commands ------------------------------------------------------------

    def start_capture(self) -> Future:
        return self._submit(self._backend.start_capture)

    def stop_capture(self) -> Future:
        return self._submit(self._backend.stop_capture)

    def request_emission(self) -> Future:
        return self._submit(self._backend.request_emission)

    def change_device(self, name: str) -> "Future[str]":
        return self._submit(self._backend.change_device, name)

    def set_resolution(self, raw: int) -> Future:
        return self._submit(self._backend.set_resolution, int(raw))

    # ---- Queries -------------------------------------------------------------

    def list_devices(self) -> "Future[List[str]]":
        return self._submit(self._backend.list_devices)

    def current_device(self) -> "Future[str]":
        return self._submit(self._backend.current_device)

    def resolution(self) -> "Future[int]":
        return self._submit(self._backend.resolution)

    # ---- Push channel --------------------------------------------------------

    def subscribe(self, listener: "SignalListener") -> int:
        return self._backend.add_signal_listener(listener)

    def unsubscribe(self, token: int) -> None:
        self._backend.remove_signal_listener(token)

    # ---- Cleanup -------------------------------------------------------------

    def shutdown(self, wait: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=True)


def log_failure(future: Future, action: str, *, level: int = logging.WARNING) -> None:
    """Attach a done-callback that logs ``future``'s exception, if any."""

    def _done(fut: Future) -> None:
        if fut.cancelled():
            logger.debug("%s cancelled", action)
            return
        exc = fut.exception()
        if exc is not None:
            logger.log(level, "%s failed: %s", action, exc)

    future.add_done_callback(_done)


__all__ = ["BackendClient", "log_failure"]
