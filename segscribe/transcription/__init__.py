"""Transcription and summarization module for Segscribe.

Service backends (``google_backend``, ``chatgpt_engine``) pull in their
client libraries and are imported from their own modules.
"""

from .base import AbstractTranscriptionBackend, SpeechToTextService, SummarizationService
from .worker import TranscriptionWorker
from .aggregator import SEGMENT_BREAK, SummaryAggregator, TranscriptLog

__all__ = [
    "AbstractTranscriptionBackend",
    "SpeechToTextService",
    "SummarizationService",
    "TranscriptionWorker",
    "SEGMENT_BREAK",
    "SummaryAggregator",
    "TranscriptLog",
]
