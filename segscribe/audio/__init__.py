"""Audio capture and segment recording module.

The PyAudio backend lives in ``segscribe.audio.capture`` and is imported
directly by callers that need a real device.
"""

from .base import AudioCaptureService, StreamHandle
from .recorder import SegmentRecorder

__all__ = [
    'AudioCaptureService',
    'StreamHandle',
    'SegmentRecorder'
]
