from __future__ import annotations

import time
from collections import deque


class SlidingWindowRateLimiter:
    """Per-key request timestamps over a sliding window. Keys whose window has
    emptied are dropped so the map only holds recently active clients."""

    def __init__(self, window_seconds: float = 60.0) -> None:
        self._window_seconds = window_seconds
        self._buckets: dict[str, deque[float]] = {}
        self._last_sweep = time.time()

    def __contains__(self, key: str) -> bool:
        return key in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)

    def allow(self, key: str, limit: int) -> bool:
        now = time.time()
        window_start = now - self._window_seconds

        if now - self._last_sweep >= self._window_seconds:
            self._sweep(window_start)
            self._last_sweep = now

        timestamps = self._buckets.get(key)
        if timestamps is not None:
            self._expire(key, timestamps, window_start)
            timestamps = self._buckets.get(key)

        if len(timestamps or ()) >= limit:
            return False

        self._buckets.setdefault(key, deque()).append(now)
        return True

    def _expire(self, key: str, timestamps: deque[float], window_start: float) -> None:
        while timestamps and timestamps[0] < window_start:
            timestamps.popleft()
        if not timestamps:
            del self._buckets[key]

    def _sweep(self, window_start: float) -> None:
        for key, timestamps in list(self._buckets.items()):
            self._expire(key, timestamps, window_start)
