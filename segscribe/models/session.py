"""Session-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .summary import SummarySnapshot


class SessionState(Enum):
    """Lifecycle state of the session controller."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"


class StopReason(Enum):
    """Why the recording loop ended."""
    MANUAL = "manual"
    TIMEOUT = "timeout"
    COMPLETED = "completed"
    ERROR = "error"


class SessionParameters(BaseModel):
    """Recognised options for one recording session."""
    input_language: str = Field(default="en-US")
    output_language: str = Field(default="en-US")
    total_duration_seconds: int = Field(default=900, gt=0)
    segment_duration_seconds: int = Field(default=30, gt=0)

    @model_validator(mode="after")
    def _segment_divides_total(self) -> "SessionParameters":
        if self.total_duration_seconds % self.segment_duration_seconds != 0:
            raise ValueError(
                f"segment_duration_seconds ({self.segment_duration_seconds}) must evenly "
                f"divide total_duration_seconds ({self.total_duration_seconds})"
            )
        return self

    @property
    def planned_segment_count(self) -> int:
        return self.total_duration_seconds // self.segment_duration_seconds


@dataclass
class Session:
    """The single live session owned by the controller."""
    parameters: SessionParameters
    start_time: datetime = field(default_factory=datetime.now)
    elapsed_seconds: int = 0
    segments_dispatched: int = 0
    stop_reason: Optional[StopReason] = None

    @property
    def max_duration_seconds(self) -> int:
        return self.parameters.total_duration_seconds

    @property
    def segment_duration_seconds(self) -> int:
        return self.parameters.segment_duration_seconds

    @property
    def planned_segment_count(self) -> int:
        return self.parameters.planned_segment_count

    @property
    def time_limit_reached(self) -> bool:
        return self.elapsed_seconds >= self.max_duration_seconds


@dataclass
class SessionReport:
    """Outcome of a finished session, returned by ``SessionController.start``."""
    stop_reason: StopReason
    segments_dispatched: int
    transcripts: List[str]
    summary: SummarySnapshot
    elapsed_seconds: int
    started_at: datetime
    finished_at: datetime = field(default_factory=datetime.now)
    last_final_summary: Optional[SummarySnapshot] = None  # newest successful summary, if any
