"""
Shared data structures available to both the capture engine and the GUI.
"""

from .app_settings import AppSettings, AppSettingsStore
from .models import DEFAULT_DEVICE, DeviceDescriptor, ReconfigurationRequest, ViewportDimensions
from .signal_buffer import SignalBuffer

__all__ = [
    "AppSettings",
    "AppSettingsStore",
    "DEFAULT_DEVICE",
    "DeviceDescriptor",
    "ReconfigurationRequest",
    "SignalBuffer",
    "ViewportDimensions",
]
