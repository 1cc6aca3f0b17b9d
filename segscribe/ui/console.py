"""Terminal display sink built on rich."""

import logging
import threading
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ..models.summary import DisplayKind, DisplayState

logger = logging.getLogger(__name__)


def format_clock(elapsed_seconds: int, max_duration_seconds: int) -> str:
    """Render elapsed time as ``m:ss / N min``."""
    minutes, seconds = divmod(elapsed_seconds, 60)
    total_minutes = max_duration_seconds // 60
    return f"{minutes}:{seconds:02d} / {total_minutes} min"


class ConsoleDisplay:
    """Prints segment progress, the timer and the rolling summary to the terminal."""

    def __init__(self,
                 max_duration_seconds: int,
                 console: Optional[Console] = None,
                 timer_every_seconds: int = 30,
                 show_partial_text: bool = False):
        """Initialize console display.

        Args:
            max_duration_seconds: Session limit shown next to the elapsed time
            console: Rich console to print to
            timer_every_seconds: Print the timer every N seconds (and every
                second once the warning threshold is reached)
            show_partial_text: Print live partial transcripts as they stream
        """
        self.console = console or Console()
        self.max_duration_seconds = max_duration_seconds
        self.timer_every_seconds = timer_every_seconds
        self.show_partial_text = show_partial_text
        self._lock = threading.Lock()

    def render(self, state: DisplayState) -> None:
        with self._lock:
            if state.kind is DisplayKind.EMPTY:
                self.console.print(Panel(Text("No text to summarize yet.", style="italic dim"),
                                         title="Summary"))
            elif state.kind is DisplayKind.GENERATING:
                self.console.print(Text("Generating summary...", style="cyan"))
            elif state.kind is DisplayKind.FINAL:
                self.console.print(Panel(Text(state.text), title="Summary", border_style="green"))
            else:
                self.console.print(Panel(Text(state.text, style="bold red"),
                                         title="Summary error", border_style="red"))

    def segment_update(self, index: int, message: str, text: str) -> None:
        if text and not self.show_partial_text and message == "Transcribing":
            return
        with self._lock:
            label = Text(f"[segment {index + 1}] ", style="bold magenta")
            if message.startswith("Error"):
                label.append(message, style="red")
            else:
                label.append(message)
            self.console.print(label)
            if text:
                self.console.print(Text(text, style="white"), soft_wrap=True)

    def timer_update(self, elapsed: int, remaining: int, warning: bool) -> None:
        if not warning and elapsed % self.timer_every_seconds != 0:
            return
        if warning and remaining % 10 != 0 and remaining > 10:
            return
        with self._lock:
            style = "bold red" if warning else "bold blue"
            self.console.print(Text(format_clock(elapsed, self.max_duration_seconds), style=style))

    def log(self, message: str, level: str) -> None:
        style = {"error": "bold red", "warning": "yellow"}.get(level, "bold")
        with self._lock:
            if level == "info":
                self.console.rule(Text(message, style=style))
            else:
                self.console.print(Text(message, style=style))
