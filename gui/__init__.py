__all__ = ["MainWindow", "PlotSurface", "QtFrameScheduler", "SettingsManager", "SettingsPanel", "WaveformView"]

from .main_window import MainWindow
from .frame_scheduler import QtFrameScheduler
from .plot_surface import PlotSurface
from .settings_manager import SettingsManager
from .settings_panel import SettingsPanel
from .waveform_view import WaveformView
