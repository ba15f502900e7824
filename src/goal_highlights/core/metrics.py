"""
Purpose: In-process counters and latencies for search and resolution activity.
Constraints: No external dependencies; file-based output only.
"""

from __future__ import annotations

import json
import threading
import time
from collections import defaultdict, deque
from pathlib import Path
from typing import Deque, Dict, Optional, Tuple


class MetricsCollector:
    """
    Thread-safe counters with rolling per-minute rates, plus latency
    observations (count / mean / max) for timed operations such as
    ``search.request``.
    """

    def __init__(self, window_seconds: int = 60):
        self.window_seconds = window_seconds
        self._lock = threading.Lock()
        self._start_time = time.time()
        self._totals: Dict[str, int] = defaultdict(int)
        self._failures: Dict[str, int] = defaultdict(int)
        self._recent: Dict[str, Deque[float]] = defaultdict(deque)
        self._latency: Dict[str, Tuple[int, float, float]] = {}

    def record(self, name: str, success: bool = True) -> None:
        now = time.time()
        with self._lock:
            self._totals[name] += 1
            if not success:
                self._failures[name] += 1
            recent = self._recent[name]
            recent.append(now)
            self._drop_expired(recent, now)

    def record_error(self, name: str = "error") -> None:
        self.record(name, success=False)

    def observe(self, name: str, seconds: float) -> None:
        with self._lock:
            count, total, peak = self._latency.get(name, (0, 0.0, 0.0))
            self._latency[name] = (count + 1, total + seconds, max(peak, seconds))

    def total(self, name: str) -> int:
        with self._lock:
            return self._totals.get(name, 0)

    def reset(self) -> None:
        with self._lock:
            self._start_time = time.time()
            self._totals.clear()
            self._failures.clear()
            self._recent.clear()
            self._latency.clear()

    def snapshot(self) -> Dict[str, object]:
        now = time.time()
        with self._lock:
            per_minute = {name: self._per_minute(recent, now) for name, recent in self._recent.items()}
            latency = {
                name: {
                    "count": count,
                    "mean_ms": round(total / count * 1000.0, 1) if count else 0.0,
                    "max_ms": round(peak * 1000.0, 1),
                }
                for name, (count, total, peak) in self._latency.items()
            }
            return {
                "timestamp_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(now)),
                "uptime_seconds": int(now - self._start_time),
                "totals": dict(self._totals),
                "failures": dict(self._failures),
                "per_minute": per_minute,
                "latency": latency,
            }

    def write_snapshot(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(self.snapshot()) + "\n")

    def _drop_expired(self, recent: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while recent and recent[0] < cutoff:
            recent.popleft()

    def _per_minute(self, recent: Deque[float], now: float) -> float:
        self._drop_expired(recent, now)
        if self.window_seconds <= 0:
            return 0.0
        return round(len(recent) * 60.0 / self.window_seconds, 3)


_GLOBAL_METRICS: Optional[MetricsCollector] = None
_GLOBAL_LOCK = threading.Lock()


def get_metrics() -> MetricsCollector:
    global _GLOBAL_METRICS
    with _GLOBAL_LOCK:
        if _GLOBAL_METRICS is None:
            _GLOBAL_METRICS = MetricsCollector()
        return _GLOBAL_METRICS
