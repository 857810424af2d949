from __future__ import annotations

from dataclasses import dataclass


# ----------------------------
# Display geometry
# ----------------------------

@dataclass(frozen=True)
class ViewportDimensions:
    """Size of the drawing surface in pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "width", max(int(self.width), 0))
        object.__setattr__(self, "height", max(int(self.height), 0))

    @property
    def drawable(self) -> bool:
        return self.width > 0 and self.height > 0


# ----------------------------
# Device / configuration metadata
# ----------------------------

DEFAULT_DEVICE = "Default"


@dataclass(frozen=True)
class DeviceDescriptor:
    """An input device name as offered in the device picker."""

    name: str
    selected: bool = False


@dataclass(frozen=True)
class ReconfigurationRequest:
    """Device and resolution the user confirmed in the settings overlay.

    Created on confirmation, consumed once by the sequencer and then dropped.
    """

    target_device: str
    target_multiplier: float


__all__ = [
    "DEFAULT_DEVICE",
    "DeviceDescriptor",
    "ReconfigurationRequest",
    "ViewportDimensions",
]
