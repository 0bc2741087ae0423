"""Single-flight request coalescing keyed by cache key.

The UI may fire overlapping requests for the same term (keystroke-driven
search plus a background refresh). Only the first caller for a key runs the
upstream call; the rest wait on its Future and receive the same value or
exception.
"""

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Hashable, TypeVar


T = TypeVar("T")


class RequestCoalescer:
    """Registry of in-flight calls, at most one per key.

    Usage:
        coalescer = RequestCoalescer()
        outcome = coalescer.run(("detail", 42), lambda: transport.get_food(42))
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight: Dict[Hashable, Future] = {}
        self._followers: Dict[Hashable, int] = {}

    def run(self, key: Hashable, fn: Callable[[], T]) -> T:
        """Run fn for key, or join the call already running for key.

        The registration is removed once fn settles, success or failure,
        before the result is delivered, so the next call for key starts
        fresh.

        Args:
            key: Hashable request identity
            fn: Zero-argument callable performing the upstream call

        Returns:
            fn's return value (shared by every attached caller)

        Raises:
            Whatever fn raised, re-raised in every attached caller
        """
        with self._lock:
            future = self._in_flight.get(key)
            is_leader = future is None
            if is_leader:
                future = Future()
                future.set_running_or_notify_cancel()
                self._in_flight[key] = future
            else:
                self._followers[key] = self._followers.get(key, 0) + 1

        if not is_leader:
            return future.result()

        try:
            result = fn()
        except BaseException as exc:
            self._release(key, future)
            future.set_exception(exc)
            raise

        self._release(key, future)
        future.set_result(result)
        return result

    def is_pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._in_flight

    def followers(self, key: Hashable) -> int:
        """Number of callers waiting on the current call for key."""
        with self._lock:
            return self._followers.get(key, 0)

    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def reset(self) -> None:
        """Forget all registrations (diagnostic).

        Callers already waiting keep their Future and still get its result.
        """
        with self._lock:
            self._in_flight.clear()
            self._followers.clear()

    def _release(self, key: Hashable, future: Future) -> None:
        with self._lock:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]
                self._followers.pop(key, None)
