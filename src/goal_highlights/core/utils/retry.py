"""
Purpose: Exponential backoff schedule for resolution retries.
Constraints: Utility only; callers decide which failures are retriable.
"""

# Imports
import random
from typing import List, Optional


# Public API
def backoff_delay(
    attempt: int,
    *,
    base_delay: float = 30.0,
    max_delay: Optional[float] = None,
    jitter: float = 0.0,
) -> float:
    """
    Delay to wait before ``attempt`` (1-based). Attempt 1 never waits;
    attempt n waits base_delay * 2 ** (n - 2), plus optional positive jitter.
    """
    if attempt <= 1:
        return 0.0
    delay = base_delay * (2 ** (attempt - 2))
    if max_delay is not None:
        delay = min(max_delay, delay)
    if jitter:
        delay += random.uniform(0, jitter)
    return delay


def backoff_schedule(attempts: int, *, base_delay: float = 30.0, max_delay: Optional[float] = None) -> List[float]:
    """Delays before each of ``attempts`` attempts, without jitter."""
    return [backoff_delay(n, base_delay=base_delay, max_delay=max_delay) for n in range(1, attempts + 1)]
