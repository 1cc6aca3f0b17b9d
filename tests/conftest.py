"""Pytest configuration and fixtures for Segscribe tests."""

import logging
from unittest.mock import Mock, patch

import pytest

from segscribe.models.session import SessionParameters
from segscribe.services.session_controller import SessionController
from tests.fakes import (
    FakeCaptureService,
    FakeSpeechService,
    FakeSummarizationService,
    RecordingSink,
)


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no hardware or network")


@pytest.fixture
def capture_service():
    return FakeCaptureService()


@pytest.fixture
def speech_service():
    return FakeSpeechService()


@pytest.fixture
def summarization_service():
    return FakeSummarizationService()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def make_controller(capture_service, speech_service, summarization_service, recording_sink):
    """Build a controller wired to the fake services."""
    controllers = []

    def factory(total: int = 60, segment: int = 30, **kwargs) -> SessionController:
        kwargs.setdefault("capture_service", capture_service)
        kwargs.setdefault("speech_service", speech_service)
        kwargs.setdefault("summarization_service", summarization_service)
        kwargs.setdefault("sinks", [recording_sink])
        controller = SessionController(
            parameters=SessionParameters(
                total_duration_seconds=total,
                segment_duration_seconds=segment,
            ),
            **kwargs
        )
        controllers.append(controller)
        return controller

    yield factory

    for controller in controllers:
        controller.close()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Return exactly the number of frames requested (16-bit mono)
        mock_stream.read.side_effect = lambda frames, exception_on_overflow=False: b'\x00\x01' * frames
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
