"""Display sinks for Segscribe sessions."""

from .display import DisplayHub, DisplaySink, LoggingDisplay
from .console import ConsoleDisplay

__all__ = [
    "DisplayHub",
    "DisplaySink",
    "LoggingDisplay",
    "ConsoleDisplay",
]
