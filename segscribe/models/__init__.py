"""Data models for the Segscribe application."""

from .audio import AudioBuffer
from .segment import Segment, SegmentStatus
from .session import (
    Session,
    SessionParameters,
    SessionReport,
    SessionState,
    StopReason,
)
from .summary import (
    INITIAL_SNAPSHOT,
    DisplayKind,
    DisplayState,
    SummarySnapshot,
)

__all__ = [
    "AudioBuffer",
    "Segment",
    "SegmentStatus",
    "Session",
    "SessionParameters",
    "SessionReport",
    "SessionState",
    "StopReason",
    "INITIAL_SNAPSHOT",
    "DisplayKind",
    "DisplayState",
    "SummarySnapshot",
]
