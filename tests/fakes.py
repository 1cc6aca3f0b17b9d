"""In-memory stand-ins for the capture device, the speech and summary services and a display sink."""

import asyncio
import threading
from typing import Dict, List, Optional, Set

from segscribe.audio.base import StreamHandle
from segscribe.errors import (
    DeviceUnavailable,
    StreamUnavailable,
    SummarizationFailure,
    TranscriptionFailure,
)
from segscribe.models.audio import AudioBuffer
from segscribe.transcription.aggregator import SEGMENT_BREAK


def segment_audio(index: int, frames: int = 160) -> bytes:
    """PCM payload whose first sample carries the segment index."""
    return index.to_bytes(2, "little") * frames


def segment_index(audio: AudioBuffer) -> int:
    return int.from_bytes(audio.data[:2], "little")


class FakeCaptureService:
    """In-memory capture device.

    Segments listed in ``block_on`` wait until the stream is released and
    then return a short, interrupted buffer, like a capture cut off by stop.
    """

    def __init__(self,
                 fail_acquire: bool = False,
                 fail_on_segment: Optional[int] = None,
                 block_on: Optional[Set[int]] = None,
                 block_timeout: float = 5.0):
        self.fail_acquire = fail_acquire
        self.fail_on_segment = fail_on_segment
        self.block_on = block_on or set()
        self.block_timeout = block_timeout
        self.acquire_calls = 0
        self.release_calls = 0
        self.captures = 0
        self.handle: Optional[StreamHandle] = None
        self._lock = threading.Lock()

    def acquire(self) -> StreamHandle:
        self.acquire_calls += 1
        if self.fail_acquire:
            raise DeviceUnavailable("no microphone")
        self.handle = StreamHandle(sample_rate=16000)
        return self.handle

    def capture_segment(self, handle: StreamHandle, duration_ms: int) -> AudioBuffer:
        with self._lock:
            index = self.captures
            self.captures += 1

        if index == self.fail_on_segment:
            raise StreamUnavailable("device unplugged")
        if index in self.block_on:
            handle.stop_event.wait(timeout=self.block_timeout)
            return AudioBuffer(data=segment_audio(index, frames=16), interrupted=True)
        return AudioBuffer(data=segment_audio(index))

    def release(self, handle: Optional[StreamHandle]) -> None:
        with self._lock:
            self.release_calls += 1
        if handle is not None:
            handle.stop_event.set()


class FakeSpeechService:
    """Streams ``text<index>`` in two deltas per segment."""

    def __init__(self,
                 failures: Optional[Set[int]] = None,
                 delays: Optional[Dict[int, float]] = None):
        self.failures = failures or set()
        self.delays = delays or {}
        self.calls: List[int] = []
        self.completed: List[int] = []
        self.languages: List[tuple] = []

    async def transcribe_stream(self, audio, input_language, output_language):
        index = segment_index(audio)
        self.calls.append(index)
        self.languages.append((input_language, output_language))
        if index in self.delays:
            await asyncio.sleep(self.delays[index])
        if index in self.failures:
            raise TranscriptionFailure(f"could not transcribe segment {index}", index)
        yield "text"
        yield str(index)
        self.completed.append(index)


class FakeSummarizationService:
    """Summarizes by counting the segments in the prompt."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.prompts: List[str] = []

    async def summarize_stream(self, prompt):
        self.prompts.append(prompt)
        if self.fail:
            raise SummarizationFailure("summary model offline")
        yield "summary of "
        yield f"{prompt.count(SEGMENT_BREAK) + 1} segment(s)"


class GatedSummarizationService:
    """Each call waits for its own gate, so tests choose completion order."""

    def __init__(self, calls: int = 2):
        self.gates = [asyncio.Event() for _ in range(calls)]
        self.prompts: List[str] = []

    async def summarize_stream(self, prompt):
        call = len(self.prompts)
        self.prompts.append(prompt)
        await self.gates[call].wait()
        yield f"summary-{call}"


class RecordingSink:
    """Display sink that records every notification it receives."""

    def __init__(self):
        self.states = []
        self.segment_updates = []
        self.timer_updates = []
        self.logs = []

    def render(self, state):
        self.states.append(state)

    def segment_update(self, index, message, text):
        self.segment_updates.append((index, message, text))

    def timer_update(self, elapsed, remaining, warning):
        self.timer_updates.append((elapsed, remaining, warning))

    def log(self, message, level):
        self.logs.append((message, level))

