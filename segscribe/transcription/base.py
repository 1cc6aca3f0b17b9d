"""Interfaces for the external speech-to-text and summarization services."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Protocol
import logging

from ..models.audio import AudioBuffer

logger = logging.getLogger(__name__)


class SpeechToTextService(Protocol):
    """Streams the transcript of one audio buffer as text deltas."""

    def transcribe_stream(self,
                          audio: AudioBuffer,
                          input_language: str,
                          output_language: str) -> AsyncIterator[str]:
        ...


class SummarizationService(Protocol):
    """Streams a summary for a prompt as text deltas."""

    def summarize_stream(self, prompt: str) -> AsyncIterator[str]:
        ...


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for speech-to-text backends."""

    def __init__(self, language: str = "en-US"):
        """Initialize backend with a default language preference."""
        self.language = language

    @abstractmethod
    def transcribe_stream(self,
                          audio: AudioBuffer,
                          input_language: str,
                          output_language: str) -> AsyncIterator[str]:
        """Transcribe an audio buffer, yielding text deltas as they arrive.

        Args:
            audio: Captured PCM audio for one segment
            input_language: Language code spoken in the audio
            output_language: Language code expected in the transcript

        Raises:
            TranscriptionFailure: if the service call fails
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
