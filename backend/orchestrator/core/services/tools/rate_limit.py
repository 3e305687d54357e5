# orchestrator/core/services/tools/rate_limit.py
"""Fixed-window call counters per (tool, caller)."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
from orchestrator.core.services.tools.types import RateLimit


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """
    Counts calls per (tool_name, caller) inside a fixed window.

    The first call of a window opens it with count=1. Once the clock passes
    `reset_at` the window is replaced, not extended. A call is refused when
    the window already holds `max_calls`; refused calls are not counted.
    Expired windows are swept at most once per `prune_interval_ms`.
    """

    def __init__(self, clock: Callable[[], float] = monotonic_ms, prune_interval_ms: float = 60_000):
        self._clock = clock
        self._prune_interval_ms = prune_interval_ms
        self._windows: Dict[Tuple[str, str], _Window] = {}
        self._next_prune = clock() + prune_interval_ms
        self._lock = threading.Lock()

    def check(self, tool_name: str, caller_id: Optional[str], limit: RateLimit) -> bool:
        """Count the call and return True, or return False if over the limit."""
        key = (tool_name, caller_id or "anonymous")
        now = self._clock()

        with self._lock:
            if now >= self._next_prune:
                self._prune(now)

            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + limit.window_ms)
                return True

            if window.count >= limit.max_calls:
                return False

            window.count += 1
            return True

    def _prune(self, now: float):
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        self._next_prune = now + self._prune_interval_ms

    def usage(self, tool_name: str, caller_id: Optional[str]) -> Optional[Tuple[int, float]]:
        """(count, reset_at) of the current window, if any."""
        with self._lock:
            window = self._windows.get((tool_name, caller_id or "anonymous"))
            return (window.count, window.reset_at) if window else None

    def reset(self):
        with self._lock:
            self._windows.clear()
