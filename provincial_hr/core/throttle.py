"""Login attempt throttling.

In-memory sliding-window limiter keyed by caller (client IP). Counts failed
attempts only; a successful login resets the caller's window.
"""
from __future__ import annotations
import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

logger = logging.getLogger(__name__)


class LoginThrottle:
    """Sliding-window failure counter per caller."""

    def __init__(self, max_attempts: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def tracked_callers(self) -> int:
        """Number of callers with failures still inside the window."""
        with self._lock:
            return len(self._failures)

    def _prune(self, key: str, now: float) -> Deque[float]:
        attempts = self._failures.get(key)
        if attempts is None:
            return deque()
        cutoff = now - self.window_seconds
        while attempts and attempts[0] <= cutoff:
            attempts.popleft()
        if not attempts:
            self._failures.pop(key, None)
        return attempts

    def retry_after(self, key: str) -> int:
        """Seconds until the caller may try again (0 when not throttled)."""
        now = self._clock()
        with self._lock:
            attempts = self._prune(key, now)
            if len(attempts) < self.max_attempts:
                return 0
            return max(1, math.ceil(attempts[0] + self.window_seconds - now))

    def _sweep(self, now: float) -> None:
        """Drop callers whose failures have all left the window (at most once per window)."""
        if now - self._last_sweep < self.window_seconds:
            return
        for key in list(self._failures):
            self._prune(key, now)
        self._last_sweep = now

    def record_failure(self, key: str) -> None:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            self._prune(key, now)
            self._failures.setdefault(key, deque()).append(now)

    def reset(self, key: str) -> None:
        with self._lock:
            self._failures.pop(key, None)
