"""ReconfigurationSequencer - stop, apply device and resolution, restart.

The protocol runs on its own worker so callers never wait on the backend:

1. stop capture (best effort; a failure is logged and ignored)
2. change device || set resolution (dispatched together, both awaited)
3. start capture (always dispatched, result only logged)

Nothing is retried. A failed step never prevents the later ones, so the
stream is always restarted even when parts of the request did not apply.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Optional

from shared.models import ReconfigurationRequest

from .backend_client import BackendClient, log_failure
from .parameter_curve import encode_resolution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconfigurationOutcome:
    """What happened to one request, up to the dispatch of start capture."""

    request: ReconfigurationRequest
    stop_ok: bool
    applied_device: Optional[str]
    resolution_ok: bool
    start: Future

    @property
    def fully_applied(self) -> bool:
        return self.applied_device is not None and self.resolution_ok


DispatchedCallback = Callable[[ReconfigurationOutcome], None]


class ReconfigurationSequencer:
    """Runs reconfiguration requests one at a time against a BackendClient."""

    def __init__(self, client: BackendClient) -> None:
        self._client = client
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="Reconfigure")

    def apply(
        self,
        request: ReconfigurationRequest,
        on_dispatched: Optional[DispatchedCallback] = None,
    ) -> "Future[ReconfigurationOutcome]":
        """Queue ``request``; the future resolves once start capture is dispatched."""
        return self._executor.submit(self._run, request, on_dispatched)

    def _run(
        self,
        request: ReconfigurationRequest,
        on_dispatched: Optional[DispatchedCallback],
    ) -> ReconfigurationOutcome:
        logger.info(
            "Reconfiguring capture: device=%r, resolution=%.3f",
            request.target_device,
            request.target_multiplier,
        )

        stop_ok = self._await("Stop capture", self._client.stop_capture())

        device_future = self._client.change_device(request.target_device)
        resolution_future = self._client.set_resolution(encode_resolution(request.target_multiplier))
        wait([device_future, resolution_future])

        applied_device: Optional[str] = None
        if self._await("Change device", device_future):
            applied_device = device_future.result()
        resolution_ok = self._await("Set resolution", resolution_future)

        start_future = self._client.start_capture()
        log_failure(start_future, "Start capture")

        outcome = ReconfigurationOutcome(
            request=request,
            stop_ok=stop_ok,
            applied_device=applied_device,
            resolution_ok=resolution_ok,
            start=start_future,
        )
        if on_dispatched is not None:
            try:
                on_dispatched(outcome)
            except Exception as exc:
                logger.error("Reconfiguration dispatch callback failed: %s", exc)
        return outcome

    @staticmethod
    def _await(action: str, future: Future) -> bool:
        """Wait for ``future``; log and report False on failure."""
        try:
            future.result()
        except Exception as exc:
            logger.warning("%s failed: %s", action, exc)
            return False
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["DispatchedCallback", "ReconfigurationOutcome", "ReconfigurationSequencer"]
