"""Sliding-window request counter guarding the public tracking endpoint.

State is process-local: every worker enforces its own limit. That is enough to
damp abuse and is not meant as a quota.
"""
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


class SlidingWindowRateLimiter:
    """Per-key request counter with a window that restarts on the first request after expiry.

    Args:
        window_seconds: Length of a window
        max_requests: Requests allowed per key inside one window
        cleanup_probability: Chance per call of sweeping expired keys
        clock: Monotonic time source (injectable for tests)
        rng: Returns a float in [0, 1); drives the opportunistic sweep
    """

    def __init__(
        self,
        window_seconds: int = 60,
        max_requests: int = 10,
        cleanup_probability: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.cleanup_probability = cleanup_probability
        self._clock = clock
        self._rng = rng
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def allow(self, client_key: str) -> bool:
        """Count one request for client_key and report whether it may proceed."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(client_key)
            if entry is None or now > entry.reset_at:
                self._entries[client_key] = RateLimitEntry(count=1, reset_at=now + self.window_seconds)
                allowed = True
            elif entry.count >= self.max_requests:
                allowed = False
            else:
                entry.count += 1
                allowed = True
            if self._rng() < self.cleanup_probability:
                self._sweep(now)
        return allowed

    def _sweep(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug('Rate limiter dropped %d expired entries', len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def reset(self):
        with self._lock:
            self._entries.clear()


__all__ = ['RateLimitEntry', 'SlidingWindowRateLimiter']
