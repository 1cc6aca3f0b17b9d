"""Session controller that drives the record/dispatch loop.

Recording is strictly sequential: one segment is captured at a time from the
single input stream. Each recorded segment gets the next index, a reserved
transcript slot and a background job (transcribe, then update the summary)
that the loop does not wait for. When the loop ends, for whatever reason,
every dispatched job is awaited before the session returns to idle, and the
capture stream is released exactly once.
"""

import asyncio
import logging
import threading
from typing import List, Optional, Sequence

from ..audio.base import AudioCaptureService, StreamHandle
from ..audio.recorder import SegmentRecorder
from ..config import DEFAULT_SUMMARY_PROMPT
from ..errors import AlreadyActive, ModelUnavailable, StreamUnavailable
from ..models.audio import AudioBuffer
from ..models.segment import Segment
from ..models.session import (
    Session,
    SessionParameters,
    SessionReport,
    SessionState,
    StopReason,
)
from ..transcription.aggregator import SummaryAggregator
from ..transcription.base import SpeechToTextService, SummarizationService
from ..transcription.worker import TranscriptionWorker
from ..ui.display import DisplayHub, DisplaySink
from .availability import ModelAvailability
from .timer import SessionTimer

logger = logging.getLogger(__name__)


class SessionController:
    """Owns the live session: its state machine, timer, capture stream and jobs."""

    def __init__(self,
                 capture_service: AudioCaptureService,
                 speech_service: SpeechToTextService,
                 summarization_service: SummarizationService,
                 sinks: Optional[Sequence[DisplaySink]] = None,
                 parameters: Optional[SessionParameters] = None,
                 availability: Optional[ModelAvailability] = None,
                 prompt_template: str = DEFAULT_SUMMARY_PROMPT,
                 serialize_regenerations: bool = True,
                 tick_interval: float = 1.0,
                 display: Optional[DisplayHub] = None):
        """Initialize session controller.

        Args:
            capture_service: Audio capture device service
            speech_service: Streaming speech-to-text service
            summarization_service: Streaming summarization service
            sinks: Display sinks to register on a new hub (ignored if ``display`` is given)
            parameters: Default session parameters for ``start``
            availability: Checked once before every session start
            prompt_template: Summary prompt with a ``{transcript}`` placeholder
            serialize_regenerations: Run summary regenerations one at a time
            tick_interval: Wall-clock seconds per timer tick
            display: Pre-built display hub
        """
        self.capture_service = capture_service
        self.speech_service = speech_service
        self.parameters = parameters or SessionParameters()
        self.availability = availability
        self.tick_interval = tick_interval

        self.display = display or DisplayHub(list(sinks or []))
        self.recorder = SegmentRecorder(capture_service)
        self.aggregator = SummaryAggregator(
            summarization_service,
            self.display,
            prompt_template=prompt_template,
            serialize_regenerations=serialize_regenerations,
        )

        self.state = SessionState.IDLE
        self.session: Optional[Session] = None
        self.timer: Optional[SessionTimer] = None
        self.worker: Optional[TranscriptionWorker] = None

        self._lock = threading.Lock()
        self._starting = False
        self._handle: Optional[StreamHandle] = None
        self._handle_released = True
        self._stop_reason: Optional[StopReason] = None
        self._jobs: List[asyncio.Task] = []

        logger.info("SessionController initialized")

    @property
    def is_active(self) -> bool:
        return self.state is not SessionState.IDLE

    @property
    def stop_requested(self) -> bool:
        return self._stop_reason is not None

    async def start(self, parameters: Optional[SessionParameters] = None) -> SessionReport:
        """Run one session to completion.

        Returns after the loop has ended and every dispatched job has
        finished.

        Raises:
            AlreadyActive: if a session is already running
            ModelUnavailable: if the availability check fails
            DeviceUnavailable: if the capture device cannot be acquired
            StreamUnavailable: if the stream fails mid-session (after cleanup)
        """
        params = parameters or self.parameters

        with self._lock:
            if self.state is not SessionState.IDLE or self._starting:
                raise AlreadyActive("A recording session is already active")
            self._starting = True

        # Availability and device checks block, so they run without holding the lock.
        try:
            if self.availability is not None and not self.availability.is_available():
                raise ModelUnavailable("Speech or summary models are not available; "
                                       "wait for provisioning to finish and try again")

            try:
                handle = self.capture_service.acquire()
            except Exception:
                logger.error("Could not acquire the capture device", exc_info=True)
                raise
        except Exception:
            with self._lock:
                self._starting = False
            raise

        with self._lock:
            self._starting = False
            self._handle = handle
            self._handle_released = False
            self._stop_reason = None
            self._jobs = []
            self.session = Session(parameters=params)
            self.state = SessionState.RECORDING

        self.aggregator.reset()
        self.worker = TranscriptionWorker(
            self.speech_service,
            params.input_language,
            params.output_language,
            on_progress=self._on_transcription_progress,
            on_error=self._on_transcription_error,
        )
        self.timer = SessionTimer(
            params.total_duration_seconds,
            on_timeout=self._on_timeout,
            on_tick=self._on_tick,
            tick_interval=self.tick_interval,
        )
        self.timer.start()

        logger.info(f"Session started: {params.planned_segment_count} x "
                    f"{params.segment_duration_seconds}s segments, "
                    f"{params.input_language} -> {params.output_language}")
        self.display.log(f"Starting {params.total_duration_seconds}s of continuous recording...")

        try:
            await self._record_loop()
        except Exception as e:
            logger.error(f"Error during session: {e}", exc_info=True)
            with self._lock:
                if self._stop_reason is None:
                    self._stop_reason = StopReason.ERROR
            self.display.log(f"Error: {e}", "error")
            raise
        finally:
            report = await self._shutdown()

        return report

    def stop(self, reason: StopReason = StopReason.MANUAL) -> None:
        """Request the session to stop. Idempotent and safe from any thread.

        Only future segments are affected: the capture stream is released at
        once, so a capture in progress returns early, and jobs already
        dispatched keep running.
        """
        with self._lock:
            if self.state is not SessionState.RECORDING or self._stop_reason is not None:
                return
            self._stop_reason = reason

        logger.info(f"Stop requested ({reason.value})")
        if self.timer is not None:
            self.timer.pause()
        self.display.log("Stopping session...")
        self._release_capture()
        if reason is StopReason.MANUAL:
            self.display.log("Recording stopped by user.")

    def _should_stop(self) -> bool:
        return self._stop_reason is not None or self.session.time_limit_reached

    async def _record_loop(self) -> None:
        session = self.session
        planned = session.planned_segment_count
        segment_seconds = session.segment_duration_seconds

        for index in range(planned):
            if self._should_stop():
                self.display.log("Session stopped manually or the time limit was reached.", "warning")
                break

            start_offset = index * segment_seconds
            self.display.segment_update(
                index,
                f"Segment {index + 1}/{planned} "
                f"(time: {start_offset}s - {start_offset + segment_seconds}s)")

            buffer = await self.recorder.record(self._handle, segment_seconds)

            if self._stop_reason is StopReason.MANUAL and buffer.interrupted:
                logger.info(f"Discarding segment {index + 1} cut short by manual stop")
                self.display.segment_update(index, "Recording stopped before the segment finished.")
                break
            if buffer.is_empty:
                if self.stop_requested:
                    break
                raise StreamUnavailable(f"Input stream produced no audio for segment {index + 1}")

            self._dispatch(index, start_offset, buffer)

    def _dispatch(self, index: int, start_offset: float, buffer: AudioBuffer) -> None:
        segment = Segment(
            index=index,
            start_offset_seconds=start_offset,
            duration_seconds=buffer.duration_seconds,
            audio=buffer,
        )
        self.aggregator.allocate(index)
        self.session.segments_dispatched += 1

        job = asyncio.get_running_loop().create_task(
            self._process_segment(segment), name=f"segment-{segment.number}")
        self._jobs.append(job)

        logger.info(f"Segment {segment.number} dispatched ({buffer.duration_seconds:.1f}s)")
        self.display.segment_update(index, "Audio recorded. Processing in the background...")

    async def _process_segment(self, segment: Segment) -> None:
        self.display.segment_update(segment.index, "Starting transcription...")

        text = await self.worker.transcribe(segment)
        if text is None:
            await self.aggregator.on_segment_failed(segment.index)
            return

        await self.aggregator.on_segment_complete(segment.index, text)
        self.display.segment_update(segment.index, "Transcript and summary updated.", text)

    async def _shutdown(self) -> SessionReport:
        with self._lock:
            self.state = SessionState.STOPPING
            if self._stop_reason is None:
                self._stop_reason = (StopReason.TIMEOUT if self.session.time_limit_reached
                                     else StopReason.COMPLETED)
            reason = self._stop_reason

        self.timer.pause()

        if self._jobs:
            if reason is StopReason.COMPLETED:
                self.display.log("All segments recorded. Waiting for background transcription to finish...")
            else:
                self.display.log("Waiting for queued segment processing to finish...")

            results = await asyncio.gather(*self._jobs, return_exceptions=True)
            for job, result in zip(self._jobs, results):
                if isinstance(result, BaseException):
                    logger.error(f"Background job {job.get_name()} failed: {result!r}")
            self.display.log("Process complete.")

        self._release_capture()
        self.timer.stop()

        report = SessionReport(
            stop_reason=reason,
            segments_dispatched=self.session.segments_dispatched,
            transcripts=self.aggregator.transcripts(),
            summary=self.aggregator.snapshot,
            last_final_summary=self.aggregator.last_final,
            elapsed_seconds=self.session.elapsed_seconds,
            started_at=self.session.start_time,
        )

        with self._lock:
            self.session.stop_reason = reason
            self._jobs = []
            self.state = SessionState.IDLE

        logger.info(f"Session finished ({reason.value}): {report.segments_dispatched} segment(s) "
                    f"in {report.elapsed_seconds}s")
        return report

    def _release_capture(self) -> None:
        with self._lock:
            if self._handle is None or self._handle_released:
                return
            self._handle_released = True
            handle = self._handle

        try:
            self.capture_service.release(handle)
        except Exception as e:
            logger.error(f"Error releasing capture device: {e}", exc_info=True)

    def _on_timeout(self) -> None:
        self.display.log("Maximum session time reached.", "warning")
        self.stop(StopReason.TIMEOUT)

    def _on_tick(self, elapsed: int, remaining: int, warning: bool) -> None:
        if self.session is not None:
            self.session.elapsed_seconds = elapsed
        self.display.timer_update(elapsed, remaining, warning)

    def _on_transcription_progress(self, index: int, text: str) -> None:
        self.display.segment_update(index, "Transcribing", text)

    def _on_transcription_error(self, index: int, error: Exception) -> None:
        self.display.segment_update(index, f"Error: failed to process segment {index + 1}: {error}")

    def close(self) -> None:
        """Detach all display sinks."""
        self.display.close()
