"""Scopeline: live audio waveform display."""

__version__ = "0.1.0"
