"""Per-segment transcription worker."""

import logging
import time
from typing import Callable, Optional

from ..models.segment import Segment, SegmentStatus
from .base import SpeechToTextService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class TranscriptionWorker:
    """Turns one segment's audio into text through a streaming service.

    Failures are isolated to the segment: they are reported through
    ``on_error`` and the worker returns None so the caller can write a
    placeholder into the segment's log slot.
    """

    def __init__(self,
                 service: SpeechToTextService,
                 input_language: str,
                 output_language: str,
                 on_progress: Optional[ProgressCallback] = None,
                 on_error: Optional[Callable[[int, Exception], None]] = None):
        self.service = service
        self.input_language = input_language
        self.output_language = output_language
        self.on_progress = on_progress
        self.on_error = on_error

    async def transcribe(self, segment: Segment) -> Optional[str]:
        """Fold the streamed text deltas for ``segment`` into its transcript.

        Returns:
            The transcript, or None if transcription failed
        """
        segment.status = SegmentStatus.TRANSCRIBING
        start_time = time.time()
        text = ""

        logger.info(f"Transcribing segment {segment.number} "
                    f"({segment.audio.duration_seconds:.1f}s of audio)")
        try:
            async for delta in self.service.transcribe_stream(
                    segment.audio, self.input_language, self.output_language):
                text += delta
                if self.on_progress:
                    self.on_progress(segment.index, text)
        except Exception as e:
            segment.status = SegmentStatus.FAILED
            logger.error(f"Transcription failed for segment {segment.number}: {e}", exc_info=True)
            if self.on_error:
                self.on_error(segment.index, e)
            return None

        segment.status = SegmentStatus.TRANSCRIBED
        logger.info(f"Segment {segment.number} transcribed in {time.time() - start_time:.2f}s: "
                    f"'{text[:60]}'")
        return text
