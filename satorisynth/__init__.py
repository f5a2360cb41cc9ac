"""Karplus-Strong plucked-string synthesis, a polyphonic voice engine, presets and WAV output."""

__version__ = "0.1.0"