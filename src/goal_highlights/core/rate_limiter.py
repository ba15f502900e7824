"""
Purpose: Adaptive spacing of outbound search requests.
Constraints: No network I/O; purely local tracking.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

DEFAULT_REQUESTS_PER_MINUTE = 10
SOFT_BLOCK_WINDOW_SECONDS = 600.0
SOFT_BLOCK_MULTIPLIER = 2.0


class RateLimiter:
    """
    Enforces a minimum interval between requests to one external source.

    One instance per source, shared by every caller. After a soft block
    (CAPTCHA / bot detection) the interval is multiplied for
    ``soft_block_window`` seconds following the most recent one.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        soft_block_window: float = SOFT_BLOCK_WINDOW_SECONDS,
        soft_block_multiplier: float = SOFT_BLOCK_MULTIPLIER,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = float(min_interval)
        self.soft_block_window = float(soft_block_window)
        self.soft_block_multiplier = float(soft_block_multiplier)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self.last_request_time: Optional[float] = None
        self.soft_block_count = 0
        self.last_soft_block_time: Optional[float] = None

    @classmethod
    def from_requests_per_minute(cls, requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE, **kwargs) -> "RateLimiter":
        if requests_per_minute <= 0:
            return cls(0.0, **kwargs)
        return cls(60.0 / requests_per_minute, **kwargs)

    def _interval_at(self, now: float) -> float:
        if self.soft_block_count and self.last_soft_block_time is not None:
            if now - self.last_soft_block_time < self.soft_block_window:
                return self.min_interval * self.soft_block_multiplier
        return self.min_interval

    def current_interval(self) -> float:
        with self._lock:
            return self._interval_at(self._clock())

    def wait(self) -> None:
        """Block until the interval since the previous call has elapsed."""
        with self._lock:
            now = self._clock()
            interval = self._interval_at(now)
            if self.last_request_time is not None:
                elapsed = now - self.last_request_time
                if elapsed < interval:
                    self._sleep(interval - elapsed)
            self.last_request_time = self._clock()

    def record_soft_block(self) -> None:
        with self._lock:
            self.soft_block_count += 1
            self.last_soft_block_time = self._clock()
