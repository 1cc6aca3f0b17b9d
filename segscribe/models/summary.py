"""Summary snapshot and display state models."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class DisplayKind(Enum):
    """Kinds of state a display sink can be asked to render."""
    EMPTY = "empty"
    GENERATING = "generating"
    FINAL = "final"
    ERROR = "error"


@dataclass(frozen=True)
class DisplayState:
    """A render request pushed identically to every display sink."""
    kind: DisplayKind
    text: str = ""

    @classmethod
    def empty(cls) -> "DisplayState":
        return cls(DisplayKind.EMPTY)

    @classmethod
    def generating(cls) -> "DisplayState":
        return cls(DisplayKind.GENERATING)

    @classmethod
    def final(cls, text: str) -> "DisplayState":
        return cls(DisplayKind.FINAL, text)

    @classmethod
    def error(cls, message: str) -> "DisplayState":
        return cls(DisplayKind.ERROR, message)


@dataclass(frozen=True)
class SummarySnapshot:
    """One immutable version of the cumulative summary.

    ``based_on_log_length`` is the number of settled transcript slots the
    summary was computed from; ``ticket`` orders regenerations by start time
    and breaks ties between snapshots built from logs of equal length.
    """
    text: str
    generation: int
    based_on_log_length: int
    ticket: int = 0
    kind: DisplayKind = DisplayKind.FINAL

    @property
    def freshness(self) -> Tuple[int, int]:
        return (self.based_on_log_length, self.ticket)

    def to_display_state(self) -> DisplayState:
        if self.kind is DisplayKind.FINAL:
            return DisplayState.final(self.text)
        return DisplayState(self.kind, self.text)


INITIAL_SNAPSHOT = SummarySnapshot(
    text="",
    generation=0,
    based_on_log_length=0,
    ticket=0,
    kind=DisplayKind.EMPTY,
)
