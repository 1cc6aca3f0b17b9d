"""Display sinks and the pub/sub hub that fans session state out to them."""

import itertools
import logging
from typing import Callable, List, Optional, Protocol

from pubsub import pub

from ..models.summary import DisplayKind, DisplayState

logger = logging.getLogger(__name__)

_hub_ids = itertools.count(1)


class DisplaySink(Protocol):
    """A passive render target.

    Only ``render`` is required. Sinks may also define
    ``segment_update(index, message, text)``, ``timer_update(elapsed,
    remaining, warning)`` and ``log(message, level)`` to receive the
    per-segment, timer and session notifications.
    """

    def render(self, state: DisplayState) -> None:
        ...


class DisplayHub:
    """Publishes session notifications to every registered sink.

    Each hub publishes on its own set of topics, so several hubs (and several
    controllers) can coexist in one process.
    """

    def __init__(self, sinks: Optional[List[DisplaySink]] = None, topic_root: Optional[str] = None):
        self.topic_root = topic_root or f"segscribe_hub{next(_hub_ids)}"
        self.summary_topic = f"{self.topic_root}_summary"
        self.segment_topic = f"{self.topic_root}_segment"
        self.timer_topic = f"{self.topic_root}_timer"
        self.log_topic = f"{self.topic_root}_log"

        self.sinks: List[DisplaySink] = []
        # pubsub only holds weak references, so the hub keeps the listeners alive
        self._listeners: List[tuple] = []

        for sink in sinks or []:
            self.register(sink)

        logger.debug(f"DisplayHub initialized on {self.topic_root} with {len(self.sinks)} sink(s)")

    def register(self, sink: DisplaySink) -> None:
        """Subscribe a sink to every notification it can handle."""
        self.sinks.append(sink)
        name = type(sink).__name__

        self._subscribe(_render_listener(sink.render, name), self.summary_topic)
        if hasattr(sink, 'segment_update'):
            self._subscribe(_segment_listener(sink.segment_update, name), self.segment_topic)
        if hasattr(sink, 'timer_update'):
            self._subscribe(_timer_listener(sink.timer_update, name), self.timer_topic)
        if hasattr(sink, 'log'):
            self._subscribe(_log_listener(sink.log, name), self.log_topic)

    def _subscribe(self, listener: Callable, topic: str) -> None:
        pub.subscribe(listener, topic)
        self._listeners.append((listener, topic))

    def render(self, state: DisplayState) -> None:
        pub.sendMessage(self.summary_topic, state=state)

    def segment_update(self, index: int, message: str, text: str = "") -> None:
        pub.sendMessage(self.segment_topic, index=index, message=message, text=text)

    def timer_update(self, elapsed: int, remaining: int, warning: bool) -> None:
        pub.sendMessage(self.timer_topic, elapsed=elapsed, remaining=remaining, warning=warning)

    def log(self, message: str, level: str = "info") -> None:
        pub.sendMessage(self.log_topic, message=message, level=level)

    def close(self) -> None:
        """Unsubscribe all sinks."""
        for listener, topic in self._listeners:
            try:
                pub.unsubscribe(listener, topic)
            except Exception as e:
                logger.warning(f"Error during unsubscribe from {topic}: {e}")
        self._listeners.clear()
        self.sinks.clear()


def _render_listener(fn, name):
    def listener(state):
        try:
            fn(state)
        except Exception as e:
            logger.error(f"Display sink {name} failed to render {state.kind.value}: {e}", exc_info=True)
    return listener


def _segment_listener(fn, name):
    def listener(index, message, text):
        try:
            fn(index, message, text)
        except Exception as e:
            logger.error(f"Display sink {name} failed on segment {index} update: {e}", exc_info=True)
    return listener


def _timer_listener(fn, name):
    def listener(elapsed, remaining, warning):
        try:
            fn(elapsed, remaining, warning)
        except Exception as e:
            logger.error(f"Display sink {name} failed on timer update: {e}", exc_info=True)
    return listener


def _log_listener(fn, name):
    def listener(message, level):
        try:
            fn(message, level)
        except Exception as e:
            logger.error(f"Display sink {name} failed to log message: {e}", exc_info=True)
    return listener


class LoggingDisplay:
    """Sink that writes every notification to the application log."""

    def __init__(self, name: str = "segscribe.display"):
        self.logger = logging.getLogger(name)

    def render(self, state: DisplayState) -> None:
        if state.kind is DisplayKind.ERROR:
            self.logger.error(f"Summary error: {state.text}")
        elif state.kind is DisplayKind.FINAL:
            self.logger.info(f"Summary updated:\n{state.text}")
        else:
            self.logger.info(f"Summary state: {state.kind.value}")

    def segment_update(self, index: int, message: str, text: str) -> None:
        if text:
            self.logger.debug(f"[segment {index + 1}] {message}: {text[:80]}")
        else:
            self.logger.info(f"[segment {index + 1}] {message}")

    def log(self, message: str, level: str) -> None:
        self.logger.log(getattr(logging, level.upper(), logging.INFO), message)
