"""Google Speech-to-Text streaming transcription backend."""

import logging
from typing import AsyncIterator, Optional

from .base import AbstractTranscriptionBackend
from ..errors import TranscriptionFailure
from ..models.audio import AudioBuffer

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

# Streaming requests must stay well under the 25KB per-message limit.
STREAM_CHUNK_BYTES = 16 * 1024


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend using streaming recognition."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 timeout: float = 60.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Default language code (e.g., 'en-US', 'ja-JP')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            timeout: Per-segment streaming deadline in seconds
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.timeout = timeout
        self.credentials = None
        self.client: Optional[speech.SpeechAsyncClient] = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"
        self._warned_translation = False

    def initialize(self) -> bool:
        """Load service account credentials and verify they are usable."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        try:
            self.credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        except (OSError, ValueError, auth_exceptions.GoogleAuthError) as e:
            logger.error(f"Could not load Google credentials: {e}")
            return False

        self.project_id = self.credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")
        return True

    def _get_client(self) -> speech.SpeechAsyncClient:
        # The async client binds to the running event loop, so it is created on first use.
        if self.client is None:
            if self.credentials is None and not self.initialize():
                raise TranscriptionFailure("Google Speech credentials are not available")
            self.client = speech.SpeechAsyncClient(credentials=self.credentials)
        return self.client

    def _recognition_config(self, audio: AudioBuffer, language: str) -> speech.StreamingRecognitionConfig:
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=audio.sample_rate,
            audio_channel_count=audio.channels,
            language_code=language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )
        return speech.StreamingRecognitionConfig(config=config, interim_results=False)

    async def transcribe_stream(self,
                                audio: AudioBuffer,
                                input_language: str,
                                output_language: str) -> AsyncIterator[str]:
        """Stream final recognition results for one segment as text deltas."""
        language = input_language or self.language
        if output_language and output_language.split('-')[0] != language.split('-')[0] \
                and not self._warned_translation:
            logger.warning(f"Google Speech does not translate; transcripts stay in "
                           f"{language} (requested {output_language})")
            self._warned_translation = True

        streaming_config = self._recognition_config(audio, language)

        async def requests():
            yield speech.StreamingRecognizeRequest(streaming_config=streaming_config)
            for offset in range(0, len(audio.data), STREAM_CHUNK_BYTES):
                yield speech.StreamingRecognizeRequest(
                    audio_content=audio.data[offset:offset + STREAM_CHUNK_BYTES])

        logger.debug(f"Streaming {len(audio.data)} bytes to Google STT; language={language}; "
                     f"enhanced={self.use_enhanced}; punctuation={self.enable_automatic_punctuation}")

        emitted = False
        try:
            responses = await self._get_client().streaming_recognize(
                requests=requests(), timeout=self.timeout)
            async for response in responses:
                for result in response.results:
                    if not result.is_final or not result.alternatives:
                        continue
                    transcript = result.alternatives[0].transcript.strip()
                    if not transcript:
                        continue
                    yield f" {transcript}" if emitted else transcript
                    emitted = True
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT streaming deadline exceeded")
            raise TranscriptionFailure(f"Google Speech timeout: {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable")
            raise TranscriptionFailure(f"Google Speech service unavailable: {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error: {e}")
            raise TranscriptionFailure(f"Google Speech API error: {e}") from e

        if not emitted:
            logger.debug("--- NO SPEECH DETECTED ---")

    def cleanup(self) -> None:
        """Drop the client; a new one is created on next use."""
        self.client = None
