"""Elapsed-time ticker with a hard session cutoff."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

WARNING_THRESHOLD_SECONDS = 60


class SessionTimer:
    """Counts whole seconds while a session records and fires a timeout once.

    Ticks stop counting as soon as ``pause`` is called, which the controller
    does when a stop is requested; ``stop`` cancels the ticking task.
    """

    def __init__(self,
                 max_duration_seconds: int,
                 on_timeout: Callable[[], None],
                 on_tick: Optional[Callable[[int, int, bool], None]] = None,
                 tick_interval: float = 1.0):
        """Initialize session timer.

        Args:
            max_duration_seconds: Elapsed seconds at which ``on_timeout`` fires
            on_timeout: Called exactly once when the limit is reached
            on_tick: Called with (elapsed, remaining, warning) on start and every tick
            tick_interval: Wall-clock seconds per counted second
        """
        self.max_duration_seconds = max_duration_seconds
        self.on_timeout = on_timeout
        self.on_tick = on_tick
        self.tick_interval = tick_interval

        self.elapsed_seconds = 0
        self._active = False
        self._timed_out = False
        self._task: Optional[asyncio.Task] = None

    @property
    def remaining_seconds(self) -> int:
        return max(0, self.max_duration_seconds - self.elapsed_seconds)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Reset to zero and start ticking on the running event loop."""
        if self.is_running:
            logger.warning("Timer already running")
            return

        self.elapsed_seconds = 0
        self._timed_out = False
        self._active = True
        self._notify()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Timer started: limit {self.max_duration_seconds}s")

    def pause(self) -> None:
        """Stop counting without touching the event loop; safe from any thread."""
        self._active = False

    def stop(self) -> None:
        """Cancel the ticking task."""
        self._active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        logger.debug(f"Timer stopped at {self.elapsed_seconds}s")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if not self._active:
                continue

            self.elapsed_seconds += 1
            self._notify()

            if self.elapsed_seconds >= self.max_duration_seconds and not self._timed_out:
                self._timed_out = True
                self._active = False
                logger.info(f"Session time limit of {self.max_duration_seconds}s reached")
                self.on_timeout()
                return

    def _notify(self) -> None:
        if self.on_tick:
            remaining = self.remaining_seconds
            self.on_tick(self.elapsed_seconds, remaining, remaining <= WARNING_THRESHOLD_SECONDS)
