"""Audio-related data models."""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class AudioBuffer:
    """A finite block of captured 16-bit PCM audio."""
    data: bytes
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2  # bytes per sample
    interrupted: bool = False  # True if capture was cut short by a stop

    @property
    def frame_count(self) -> int:
        return len(self.data) // (self.sample_width * self.channels)

    @property
    def duration_seconds(self) -> float:
        if not self.sample_rate:
            return 0.0
        return self.frame_count / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return len(self.data) == 0

    def peak_level(self) -> float:
        """Peak amplitude normalised to 0.0-1.0."""
        if self.is_empty or self.sample_width != 2:
            return 0.0
        usable = len(self.data) - (len(self.data) % 2)
        samples = np.frombuffer(self.data[:usable], dtype=np.int16)
        if samples.size == 0:
            return 0.0
        return float(np.abs(samples.astype(np.int32)).max()) / 32768.0
