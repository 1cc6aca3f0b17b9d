"""Error types raised by the Segscribe session core."""


class SegscribeError(Exception):
    """Base class for all Segscribe errors."""


class AlreadyActive(SegscribeError):
    """A session start was requested while another session is running."""


class DeviceUnavailable(SegscribeError):
    """The capture device could not be acquired at session start."""


class StreamUnavailable(SegscribeError):
    """The input stream became invalid before a segment could be captured."""


class TranscriptionFailure(SegscribeError):
    """Transcribing a single segment failed."""

    def __init__(self, message: str, segment_index: int = -1):
        super().__init__(message)
        self.segment_index = segment_index


class SummarizationFailure(SegscribeError):
    """A single summary regeneration attempt failed."""


class ModelUnavailable(SegscribeError):
    """The speech or summarization models are not ready for a session."""
