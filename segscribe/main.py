"""Main application entry point for Segscribe."""

import sys
import signal
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from segscribe import __version__
from segscribe.audio.capture import PyAudioCaptureService
from segscribe.errors import SegscribeError
from segscribe.models.session import SessionReport
from segscribe.models.summary import DisplayKind
from segscribe.services.availability import BackendAvailability
from segscribe.services.session_controller import SessionController
from segscribe.transcription.chatgpt_engine import ChatGPTSummarizationEngine
from segscribe.transcription.google_backend import GoogleSpeechBackend
from segscribe.ui.console import ConsoleDisplay
from segscribe.ui.display import LoggingDisplay

from .config import SegscribeConfig

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = SegscribeConfig(config_path)
        # Set up logging (command line overrides config)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.controller: Optional[SessionController] = None
        self.speech_backend: Optional[GoogleSpeechBackend] = None

    def apply_overrides(self, args: argparse.Namespace) -> None:
        """Apply command line session overrides on top of the YAML config."""
        overrides = {
            'session.total_duration_seconds': args.duration,
            'session.segment_duration_seconds': args.segment,
            'session.input_language': args.input_language,
            'session.output_language': args.output_language,
        }
        for key, value in overrides.items():
            if value is not None:
                self.config.set(key, value)

    def init(self) -> None:
        logger.info("Initializing services...")

        params = self.config.session_parameters()

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 1)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        capture = PyAudioCaptureService(
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels
        )

        self.speech_backend = GoogleSpeechBackend(
            credentials_path=self.config.get_google_credentials_path(),
            language=params.input_language,
            use_enhanced=self.config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=self.config.get('google_cloud.enable_automatic_punctuation', True)
        )

        summarizer = ChatGPTSummarizationEngine(
            api_key=self.config.get_summary_api_key(),
            model=self.config.get('summary.model', 'gpt-4o-mini'),
            temperature=self.config.get('summary.temperature', 0.3),
            max_tokens=self.config.get('summary.max_tokens', 1000)
        )

        self.controller = SessionController(
            capture_service=capture,
            speech_service=self.speech_backend,
            summarization_service=summarizer,
            sinks=[ConsoleDisplay(params.total_duration_seconds), LoggingDisplay()],
            parameters=params,
            availability=BackendAvailability([self.speech_backend, summarizer]),
            prompt_template=self.config.get_summary_prompt(),
            serialize_regenerations=self.config.get('summary.serialize_regenerations', True)
        )

    async def run(self) -> SessionReport:
        loop = asyncio.get_running_loop()
        handled = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.controller.stop)
                handled.append(sig)
            except NotImplementedError:
                logger.debug(f"Signal handlers not supported for {sig!r} on this platform")

        try:
            return await self.controller.start()
        finally:
            for sig in handled:
                loop.remove_signal_handler(sig)

    def cleanup(self) -> None:
        if self.controller:
            self.controller.close()
        if self.speech_backend:
            self.speech_backend.cleanup()


def setup_logging(config: SegscribeConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/segscribe.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Segscribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def print_report(report: SessionReport) -> None:
    print(f"\nSession finished ({report.stop_reason.value}): "
          f"{report.segments_dispatched} segment(s), {report.elapsed_seconds}s elapsed")
    if report.summary.kind is DisplayKind.ERROR:
        print(f"\nThe last summary update failed: {report.summary.text}")

    final = report.last_final_summary
    if final is not None and final.text:
        print("\nFinal summary:")
        print(final.text)
    elif report.summary.kind is DisplayKind.EMPTY:
        print("\nNo text to summarize.")


def main() -> None:
    """Main entry point for Segscribe."""
    parser = argparse.ArgumentParser(
        description="Segscribe - segmented recording with a rolling transcript summary",
        epilog="Press Ctrl+C to stop recording; queued segments are still processed."
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (built-in defaults if omitted)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        help="Total session length in seconds (default: 900)"
    )

    parser.add_argument(
        "--segment",
        type=int,
        help="Segment length in seconds; must divide the session length (default: 30)"
    )

    parser.add_argument(
        "--input-language",
        type=str,
        help="Language spoken in the recording (e.g. en-US, ja-JP)"
    )

    parser.add_argument(
        "--output-language",
        type=str,
        help="Language for transcripts and summaries"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Segscribe v{__version__}"
    )

    args = parser.parse_args()

    server = Server(args.config, args.log_level)
    try:
        server.apply_overrides(args)
        server.init()
        report = asyncio.run(server.run())
        print_report(report)
    except ValidationError as e:
        print(f"Invalid session parameters: {e}")
        sys.exit(2)
    except (SegscribeError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)
    finally:
        server.cleanup()


if __name__ == "__main__":
    main()
