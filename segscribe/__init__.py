"""Segscribe - segmented recording with rolling transcription summaries."""

__version__ = "0.1.0"
