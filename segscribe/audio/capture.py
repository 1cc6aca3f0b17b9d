"""PyAudio-backed capture service that records fixed-length segments."""

import pyaudio
import logging

from typing import Optional

from ..errors import DeviceUnavailable, StreamUnavailable
from ..models.audio import AudioBuffer
from .base import StreamHandle

logger = logging.getLogger(__name__)


class PyAudioCaptureService:
    """Captures segments from the default input device with PyAudio."""

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize capture service with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz for speech recognition)
            chunk_size: Frames per read; bounds how quickly a stop is noticed
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

    def acquire(self) -> StreamHandle:
        """Open the input stream.

        Raises:
            DeviceUnavailable: if no input device can be opened
        """
        instance = pyaudio.PyAudio()
        try:
            stream = instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except (OSError, ValueError) as e:
            instance.terminate()
            raise DeviceUnavailable(f"Could not open audio input device: {e}") from e

        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk, {self.channels} channel(s)")
        return StreamHandle(
            stream=stream,
            pyaudio_instance=instance,
            sample_rate=self.sample_rate,
            channels=self.channels,
            sample_width=instance.get_sample_size(self.format),
        )

    def capture_segment(self, handle: StreamHandle, duration_ms: int) -> AudioBuffer:
        """Blocking read of ``duration_ms`` of audio, or less if stopped.

        Raises:
            StreamUnavailable: if the stream fails before any frame is read
        """
        frames_needed = handle.sample_rate * duration_ms // 1000
        bytes_per_frame = handle.sample_width * handle.channels
        data = bytearray()
        frames_read = 0

        while frames_read < frames_needed and not handle.stop_requested:
            with handle.lock:
                if handle.released:
                    break
                try:
                    chunk = handle.stream.read(
                        min(self.chunk_size, frames_needed - frames_read),
                        exception_on_overflow=False
                    )
                except (OSError, IOError) as e:
                    if handle.stop_requested:
                        break
                    if not data:
                        raise StreamUnavailable(f"Audio stream failed: {e}") from e
                    logger.warning(f"Audio stream failed after {frames_read} frames, "
                                   f"keeping partial segment: {e}")
                    break
            data.extend(chunk)
            frames_read += len(chunk) // bytes_per_frame

        interrupted = frames_read < frames_needed
        if interrupted:
            logger.info(f"Segment capture cut short at {frames_read}/{frames_needed} frames")

        return AudioBuffer(
            data=bytes(data),
            sample_rate=handle.sample_rate,
            channels=handle.channels,
            sample_width=handle.sample_width,
            interrupted=interrupted,
        )

    def release(self, handle: Optional[StreamHandle]) -> None:
        """Stop and close the stream. Safe to call any number of times."""
        if handle is None:
            return

        handle.stop_event.set()
        with handle.lock:
            if handle.released:
                return
            handle.released = True
            try:
                if handle.stream is not None:
                    handle.stream.stop_stream()
                    handle.stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
            finally:
                if handle.pyaudio_instance is not None:
                    handle.pyaudio_instance.terminate()
                    handle.pyaudio_instance = None
        logger.info("Audio stream released")
