"""Debounced progress notifications for pipeline runs."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1  # seconds


@dataclass(frozen=True)
class ProgressEvent:
    percentage: int
    label: str


ProgressListener = Callable[[ProgressEvent], None]


class ProgressChannel:
    """
    One-way, fire-and-forget progress channel.

    Events closer than `interval` seconds to the previously delivered event
    are dropped. Listener errors are logged and never reach the emitter.

    Usage:
        channel = ProgressChannel(interval=0.1)
        channel.subscribe(lambda e: print(e.percentage, e.label))
        channel.emit(10, "Parsing CSV files...")
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self.clock = clock
        self._listeners: list[ProgressListener] = []
        self._last_sent: float | None = None

    def subscribe(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, percentage: float, label: str, force: bool = False) -> bool:
        """Deliver an event unless debounced. Returns True if it was delivered.

        `force` bypasses the debounce (used for the final 100% event).
        """
        if not self._listeners:
            return False

        now = self.clock()
        if not force and self._last_sent is not None and now - self._last_sent < self.interval:
            return False
        self._last_sent = now

        event = ProgressEvent(percentage=max(0, min(100, int(percentage))), label=label)
        logger.debug(f"Progress {event.percentage}%: {event.label}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Progress listener failed: {e}")
        return True
