from __future__ import annotations

from collections import defaultdict
from threading import Lock
from time import time


class MetricsStore:
    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: dict[str, int] = defaultdict(int)
        self._last_update_ts: int = int(time())

    def incr(self, key: str, value: int = 1) -> None:
        with self._lock:
            self._counters[key] += value
            self._last_update_ts = int(time())

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            merged = dict(self._counters)
            merged["metrics_last_update_ts"] = self._last_update_ts
            return merged

    def to_prometheus_text(self) -> str:
        lines = []
        for key, value in sorted(self.snapshot().items()):
            metric = key.lower().replace("-", "_")
            lines.append(f"nobg_{metric} {value}")
        return "\n".join(lines) + "\n"


metrics = MetricsStore()
