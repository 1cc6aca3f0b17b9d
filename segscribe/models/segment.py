"""Segment data models."""

from dataclasses import dataclass
from enum import Enum

from .audio import AudioBuffer


class SegmentStatus(Enum):
    """Processing status of a recorded segment."""
    RECORDED = "recorded"
    TRANSCRIBING = "transcribing"
    TRANSCRIBED = "transcribed"
    FAILED = "failed"


@dataclass
class Segment:
    """One fixed-duration recording unit within a session."""
    index: int  # 0-based, assigned at dispatch time
    start_offset_seconds: float
    duration_seconds: float
    audio: AudioBuffer
    status: SegmentStatus = SegmentStatus.RECORDED

    @property
    def number(self) -> int:
        """1-based segment number for display."""
        return self.index + 1

    @property
    def end_offset_seconds(self) -> float:
        return self.start_offset_seconds + self.duration_seconds
