"""Capture backend registry.

Backends live in :mod:`daq` and must subclass
:class:`~daq.base_backend.CaptureBackend`. This module loads any ``*.py``
file in the package (excluding ``base_backend.py``, ``registry.py``,
``rolling_window.py`` and module initialisers), searches for concrete
subclasses, and exposes helpers for listing and creating them. Each backend
is registered under the short name of its module (``simulated_backend`` ->
``simulated``).

Example::

    from daq.registry import list_backends, create_backend

    for backend in list_backends():
        print(backend.key, backend.name)
    backend = create_backend("simulated")
"""

from __future__ import annotations

import importlib
import inspect
import logging
import os
import pkgutil
from dataclasses import dataclass
from typing import Dict, List, Type

from .base_backend import CaptureBackend

logger = logging.getLogger(__name__)

_EXCLUDE = {"base_backend", "registry", "rolling_window", "__init__"}
_REGISTRY: Dict[str, "BackendDescriptor"] = {}
_scanned = False


@dataclass
class BackendDescriptor:
    """Metadata for a discovered capture backend."""

    key: str
    name: str
    cls: Type[CaptureBackend]
    module: str
    description: str = ""


def _short_key(module_name: str) -> str:
    short = module_name.rsplit(".", 1)[-1]
    if short.endswith("_backend"):
        short = short[: -len("_backend")]
    return short


def scan_backends(force: bool = False) -> None:
    """Populate the backend registry by inspecting modules under :mod:`daq`."""

    global _scanned
    if _scanned and not force:
        return

    _REGISTRY.clear()
    package = __name__.rsplit(".", 1)[0]
    for module_info in pkgutil.iter_modules([os.path.dirname(__file__)], package + "."):
        short_name = module_info.name.rsplit(".", 1)[-1]
        if short_name in _EXCLUDE:
            continue
        try:
            module = importlib.import_module(module_info.name)
        except Exception as exc:
            # Optional native dependency missing; the backend is simply not offered.
            logger.debug("Failed to import backend module %s: %s", module_info.name, exc)
            continue

        for _, obj in inspect.getmembers(module, inspect.isclass):
            if not issubclass(obj, CaptureBackend) or obj is CaptureBackend:
                continue
            if inspect.isabstract(obj) or obj.__module__ != module.__name__:
                continue
            key = _short_key(obj.__module__)
            if key in _REGISTRY:
                continue
            doc = inspect.getdoc(obj) or ""
            _REGISTRY[key] = BackendDescriptor(
                key=key,
                name=obj.backend_name(),
                cls=obj,
                module=obj.__module__,
                description=doc.splitlines()[0] if doc else "",
            )

    _scanned = True


def list_backends() -> List[BackendDescriptor]:
    """Return descriptors for all discovered backends."""

    scan_backends()
    return list(_REGISTRY.values())


def get_backend(key: str) -> BackendDescriptor:
    scan_backends()
    descriptor = _REGISTRY.get(key)
    if descriptor is None:
        known = ", ".join(sorted(_REGISTRY)) or "none"
        raise KeyError(f"No capture backend registered for key {key!r} (known: {known})")
    return descriptor


def create_backend(key: str, **kwargs) -> CaptureBackend:
    """Instantiate the backend associated with ``key``."""

    return get_backend(key).cls(**kwargs)


__all__ = ["BackendDescriptor", "create_backend", "get_backend", "list_backends", "scan_backends"]
