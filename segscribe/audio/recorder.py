"""Records one fixed-duration segment at a time from an acquired stream."""

import asyncio
import logging

from ..errors import StreamUnavailable
from ..models.audio import AudioBuffer
from .base import AudioCaptureService, StreamHandle

logger = logging.getLogger(__name__)


class SegmentRecorder:
    """Runs blocking segment captures off the event loop.

    Only one capture may run at a time; the session loop awaits each
    ``record`` call before starting the next.
    """

    def __init__(self, capture_service: AudioCaptureService):
        self.capture_service = capture_service
        self._busy = False

    async def record(self, handle: StreamHandle, duration_seconds: float) -> AudioBuffer:
        """Capture one segment of ``duration_seconds``.

        Returns whatever was captured if the stream is stopped mid-segment,
        possibly an empty buffer.

        Raises:
            StreamUnavailable: if the stream fails before any data without a
                stop having been requested
        """
        if self._busy:
            raise RuntimeError("A segment capture is already in progress")

        self._busy = True
        loop = asyncio.get_running_loop()
        try:
            buffer = await loop.run_in_executor(
                None,
                self.capture_service.capture_segment,
                handle,
                int(duration_seconds * 1000),
            )
        except StreamUnavailable:
            if handle.stop_requested:
                logger.info("Stream closed by stop request before any audio was captured")
                return AudioBuffer(
                    data=b"",
                    sample_rate=handle.sample_rate,
                    channels=handle.channels,
                    sample_width=handle.sample_width,
                    interrupted=True,
                )
            raise
        finally:
            self._busy = False

        logger.debug(f"Recorded {buffer.duration_seconds:.2f}s of audio "
                     f"(peak={buffer.peak_level():.2f}, interrupted={buffer.interrupted})")
        return buffer
