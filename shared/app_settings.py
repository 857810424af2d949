from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
import threading
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    emission_rate_hz: float = 60.0
    fallback_refresh_hz: float = 60.0
    resolution_min: float = 0.01
    resolution_max: float = 3.0
    resolution_step: float = 0.1
    max_emit_samples: int = 1024
    backend: str = "miniaudio"
    settings_key: str = "S"
    backend_workers: int = 4


class AppSettingsStore:
    """Thread-safe in-memory store for application-wide preferences.

    Values live for the lifetime of the process only.
    """

    def __init__(self, initial: Optional[AppSettings] = None) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Callable[[AppSettings], None]] = {}
        self._next_token = 0
        self._settings = initial if initial is not None else AppSettings()

    def get(self) -> AppSettings:
        with self._lock:
            return self._settings

    def update(self, **kwargs) -> AppSettings:
        known = {f.name for f in fields(AppSettings)}
        unknown = set(kwargs) - known
        if unknown:
            raise ValueError(f"unknown settings: {', '.join(sorted(unknown))}")
        with self._lock:
            new_settings = replace(self._settings, **kwargs)
            self._settings = new_settings
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            try:
                callback(new_settings)
            except Exception as exc:
                logger.debug("App settings subscriber callback failed: %s", exc)
                continue
        return new_settings

    def subscribe(self, callback: Callable[[AppSettings], None], *, replay: bool = True) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback
            snapshot = self._settings
        if replay:
            callback(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe


__all__ = ["AppSettings", "AppSettingsStore"]
