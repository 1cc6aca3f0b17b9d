"""Capture-device interface shared by the recorder and capture backends."""

import threading
from typing import Any, Optional, Protocol

from ..models.audio import AudioBuffer


class StreamHandle:
    """An acquired input stream plus the state needed to release it safely.

    Reads and the final close both happen under ``lock``, so a release issued
    from another thread waits for the chunk currently being read and the
    capture then returns what it has instead of reading a closed stream.
    """

    def __init__(self,
                 stream: Any = None,
                 pyaudio_instance: Any = None,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 sample_width: int = 2):
        self.stream = stream
        self.pyaudio_instance = pyaudio_instance
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width
        self.lock = threading.Lock()
        self.stop_event = threading.Event()
        self.released = False

    @property
    def stop_requested(self) -> bool:
        return self.stop_event.is_set()


class AudioCaptureService(Protocol):
    """Capture device interface consumed by the session core."""

    def acquire(self) -> StreamHandle:
        ...

    def capture_segment(self, handle: StreamHandle, duration_ms: int) -> AudioBuffer:
        ...

    def release(self, handle: Optional[StreamHandle]) -> None:
        ...
