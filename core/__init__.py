"""Core application utilities."""

from .backend_client import BackendClient, log_failure
from .ingestion import IngestionStats, SampleIngestion
from .parameter_curve import (
    RESOLUTION_SCALE,
    ParameterCurve,
    decode_resolution,
    encode_resolution,
    format_multiplier,
)
from .reconfiguration import ReconfigurationOutcome, ReconfigurationSequencer
from .runtime import ScopelineRuntime
from .render_loop import (
    FrameScheduler,
    RenderLoop,
    RenderStats,
    Surface,
    ThreadedFrameScheduler,
    ViewportTracker,
    waveform_points,
)
from .settings_state import (
    DeviceConfigState,
    InvalidTransitionError,
    SettingsEvent,
    SettingsEventType,
    SettingsPhase,
)
from shared.models import DeviceDescriptor, ReconfigurationRequest, ViewportDimensions
from shared.signal_buffer import SignalBuffer

__all__ = [
    "BackendClient",
    "DeviceConfigState",
    "DeviceDescriptor",
    "FrameScheduler",
    "IngestionStats",
    "InvalidTransitionError",
    "ParameterCurve",
    "RESOLUTION_SCALE",
    "ReconfigurationOutcome",
    "ReconfigurationRequest",
    "ReconfigurationSequencer",
    "RenderLoop",
    "RenderStats",
    "SampleIngestion",
    "ScopelineRuntime",
    "SettingsEvent",
    "SettingsEventType",
    "SettingsPhase",
    "SignalBuffer",
    "Surface",
    "ThreadedFrameScheduler",
    "ViewportDimensions",
    "ViewportTracker",
    "decode_resolution",
    "encode_resolution",
    "format_multiplier",
    "log_failure",
    "waveform_points",
]
