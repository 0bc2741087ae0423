"""Fixed-window limiter for the USDA hourly call quota."""

import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateWindow:
    """Snapshot of the current window.

    Attributes:
        window_start: Clock reading (seconds) when the window opened
        count: Calls admitted in this window (never exceeds the quota)
    """

    window_start: float
    count: int


class RateLimiter:
    """Bounds upstream calls per window, shared by every query kind.

    One token is one HTTP exchange, so a batch detail request costs the same
    as a single lookup. The window resets wholesale to (now, 0) once
    window_seconds have elapsed; it does not slide. Callers refused by
    try_consume() are not queued.
    """

    def __init__(
        self,
        quota: int,
        window_seconds: float = 60 * 60,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize limiter.

        Args:
            quota: Maximum calls per window
            window_seconds: Window length (default one hour)
            clock: Returns the current time in seconds

        Raises:
            ValueError: If quota is negative or window_seconds not positive
        """
        if quota < 0:
            raise ValueError(f"Invalid quota: {quota}. Must be non-negative.")
        if window_seconds <= 0:
            raise ValueError(f"Invalid window_seconds: {window_seconds}. Must be positive.")
        self.quota = quota
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._window_start = clock()
        self._count = 0

    def try_consume(self) -> bool:
        """Take one token if the quota allows.

        Returns:
            True if the call may proceed, False if the window is exhausted
        """
        with self._lock:
            self._roll_window()
            if self._count >= self.quota:
                return False
            self._count += 1
            return True

    def remaining(self) -> int:
        with self._lock:
            self._roll_window()
            return self.quota - self._count

    def window(self) -> RateWindow:
        with self._lock:
            return RateWindow(window_start=self._window_start, count=self._count)

    def reset(self) -> None:
        """Start a fresh, empty window now."""
        with self._lock:
            self._window_start = self._clock()
            self._count = 0

    def _roll_window(self) -> None:
        # Caller holds the lock.
        now = self._clock()
        if now - self._window_start >= self.window_seconds:
            self._window_start = now
            self._count = 0
