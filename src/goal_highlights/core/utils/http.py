"""
Purpose: HTTP helpers for the public search endpoint.
Constraints: No retries and no response validation; callers classify responses.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

import requests

from goal_highlights.core.errors import TransportError

DEFAULT_USER_AGENT = "goal-highlights:v1.0 (highlight link resolver)"
DEFAULT_TIMEOUT = 10.0


def make_session(user_agent: Optional[str] = None) -> requests.Session:
    """Session with a descriptive User-Agent; Reddit rejects generic ones."""
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent or os.getenv("HIGHLIGHTS_USER_AGENT", DEFAULT_USER_AGENT),
            "Accept": "application/json",
        }
    )
    return session


def get(
    session: requests.Session,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Response:
    """Single GET bounded by ``timeout``; connection failures become TransportError."""
    try:
        return session.get(url, params=params, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        raise TransportError(f"Timed out after {timeout:.0f}s contacting {url}") from exc
    except requests.exceptions.RequestException as exc:
        raise TransportError(f"Request to {url} failed: {exc}") from exc
