"""Transcript log and cumulative summary aggregation.

The log is index-addressed: a slot is allocated when a segment is dispatched
and filled in place when its transcription settles, so log order always
matches recording order whatever order the background jobs finish in.

Every change to the log regenerates one summary over the whole log. A
regeneration records how many slots were settled when it started
(``based_on_log_length``) plus a start ticket, and its result only replaces
the displayed snapshot if that key is not older than the displayed one.
Regenerations are additionally run one after another unless
``serialize_regenerations`` is disabled.
"""

import asyncio
import logging
from typing import List, Optional

from ..config import DEFAULT_SUMMARY_PROMPT
from ..models.summary import INITIAL_SNAPSHOT, DisplayKind, DisplayState, SummarySnapshot
from ..ui.display import DisplayHub
from .base import SummarizationService

logger = logging.getLogger(__name__)

SEGMENT_BREAK = "\n\n--- SEGMENT BREAK ---\n\n"


class TranscriptLog:
    """Ordered transcript slots, one per dispatched segment."""

    def __init__(self):
        self._slots: List[Optional[str]] = []

    def allocate(self, index: int) -> None:
        """Reserve the slot for a newly dispatched segment."""
        if index != len(self._slots):
            raise ValueError(f"Segment {index} dispatched out of order; next slot is {len(self._slots)}")
        self._slots.append(None)

    def write(self, index: int, text: str) -> None:
        if not 0 <= index < len(self._slots):
            raise IndexError(f"No transcript slot allocated for segment {index}")
        self._slots[index] = text

    def settled_count(self) -> int:
        """Number of slots holding a transcript or a placeholder."""
        return sum(1 for slot in self._slots if slot is not None)

    def entries(self) -> List[str]:
        """All slots in recording order; unsettled slots read as empty."""
        return [slot or "" for slot in self._slots]

    def render(self) -> str:
        return SEGMENT_BREAK.join(self.entries())

    def clear(self) -> None:
        self._slots.clear()

    def __len__(self) -> int:
        return len(self._slots)


class SummaryAggregator:
    """Keeps the transcript log and the cumulative summary for one session."""

    def __init__(self,
                 service: SummarizationService,
                 display: DisplayHub,
                 prompt_template: str = DEFAULT_SUMMARY_PROMPT,
                 serialize_regenerations: bool = True):
        """Initialize summary aggregator.

        Args:
            service: Streaming summarization service
            display: Hub that forwards snapshot transitions to the sinks
            prompt_template: Prompt with a ``{transcript}`` placeholder
            serialize_regenerations: Run regenerations one at a time
        """
        self.service = service
        self.display = display
        self.prompt_template = prompt_template
        self.serialize_regenerations = serialize_regenerations

        self.log = TranscriptLog()
        self.snapshot: SummarySnapshot = INITIAL_SNAPSHOT
        self.last_final: Optional[SummarySnapshot] = None
        self.generation = 0
        self._tickets = 0
        self._lock: Optional[asyncio.Lock] = None

    def reset(self) -> None:
        """Discard the log and summary of the previous session."""
        self.log.clear()
        self.snapshot = INITIAL_SNAPSHOT
        self.last_final = None
        self.generation = 0
        self._tickets = 0
        self._lock = None
        self.display.render(DisplayState.empty())

    def allocate(self, index: int) -> None:
        self.log.allocate(index)

    def transcripts(self) -> List[str]:
        return self.log.entries()

    async def on_segment_complete(self, index: int, text: str) -> Optional[SummarySnapshot]:
        """Store a finished transcript and regenerate the summary."""
        self.log.write(index, text)
        logger.debug(f"Transcript slot {index} settled ({self.log.settled_count()}/{len(self.log)})")
        return await self.regenerate()

    async def on_segment_failed(self, index: int) -> Optional[SummarySnapshot]:
        """Write an empty placeholder so later slots keep their positions.

        A placeholder adds no text, so the summary is only regenerated when
        the log is still blank and the sinks need the empty state.
        """
        self.log.write(index, "")
        logger.info(f"Placeholder written for failed segment {index + 1}")
        if not self.log.render().strip():
            return await self.regenerate()
        return None

    async def regenerate(self) -> Optional[SummarySnapshot]:
        """Rebuild the summary from the current log.

        Returns:
            The snapshot this regeneration produced, accepted or not
        """
        if not self.serialize_regenerations:
            return await self._regenerate()

        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            return await self._regenerate()

    async def _regenerate(self) -> Optional[SummarySnapshot]:
        self._tickets += 1
        ticket = self._tickets
        based_on = self.log.settled_count()
        full_text = self.log.render()

        if not full_text.strip():
            empty = SummarySnapshot(
                text="",
                generation=self.generation,
                based_on_log_length=based_on,
                ticket=ticket,
                kind=DisplayKind.EMPTY,
            )
            self._publish(empty)
            return empty

        self.display.render(DisplayState.generating())
        logger.info(f"Regenerating summary #{ticket} from {based_on} settled segment(s)")

        summary = ""
        try:
            async for delta in self.service.summarize_stream(self.prompt_template.format(transcript=full_text)):
                summary += delta
        except Exception as e:
            logger.error(f"Summary regeneration #{ticket} failed: {e}", exc_info=True)
            failed = SummarySnapshot(
                text=f"Error updating summary: {e}",
                generation=self.generation,
                based_on_log_length=based_on,
                ticket=ticket,
                kind=DisplayKind.ERROR,
            )
            self._publish(failed)
            return failed

        produced = SummarySnapshot(
            text=summary.strip(),
            generation=self.generation + 1,
            based_on_log_length=based_on,
            ticket=ticket,
        )
        self._publish(produced)
        return produced

    def _publish(self, candidate: SummarySnapshot) -> bool:
        """Display ``candidate`` unless a fresher snapshot is already shown."""
        if candidate.freshness < self.snapshot.freshness:
            logger.debug(f"Discarding stale summary #{candidate.ticket} "
                         f"(based on {candidate.based_on_log_length}, displayed "
                         f"based on {self.snapshot.based_on_log_length})")
            return False

        if candidate.kind is DisplayKind.FINAL:
            self.generation = candidate.generation
            self.last_final = candidate
        self.snapshot = candidate
        self.display.render(candidate.to_display_state())
        return True
