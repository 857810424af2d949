"""Capture backends delivering sample batches to the waveform display."""
