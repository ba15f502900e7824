"""
Purpose: One time-windowed text search against r/soccer's public JSON endpoint.
Constraints: No retries and no scoring; all retry policy lives in the resolution client.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from goal_highlights.core.errors import HardError, SoftBlockError, TransportError
from goal_highlights.core.logging import UnifiedLogger
from goal_highlights.core.metrics import get_metrics
from goal_highlights.core.models import CandidatePost, as_utc
from goal_highlights.core.rate_limiter import RateLimiter
from goal_highlights.core.text_normalization import preview_text
from goal_highlights.core.utils import http

# Constants
DEFAULT_ENDPOINT = "https://www.reddit.com/r/soccer/search.json"
REDDIT_BASE_URL = "https://www.reddit.com"
MEDIA_FLAIR = "Media"
WINDOW_BEFORE = timedelta(hours=24)
WINDOW_AFTER = timedelta(hours=48)

CHALLENGE_PHRASES = (
    "prove your humanity",
    "captcha",
    "robot",
    "automated",
    "blocked",
    "rate limit",
    "too many requests",
)

_log = UnifiedLogger(__name__)
logger = _log.get_logger()


class _PostData(BaseModel):
    model_config = ConfigDict(extra="ignore")
    title: str = ""
    url: Optional[str] = ""
    permalink: str = ""
    link_flair_text: Optional[str] = None
    created_utc: float = 0.0


class _ListingChild(BaseModel):
    model_config = ConfigDict(extra="ignore")
    data: _PostData


class _ListingData(BaseModel):
    model_config = ConfigDict(extra="ignore")
    children: List[_ListingChild] = Field(default_factory=list)


class SearchListing(BaseModel):
    """The subset of Reddit's Listing envelope the fetcher relies on."""

    model_config = ConfigDict(extra="ignore")
    data: _ListingData


# Helpers
def has_challenge_markers(body: str) -> bool:
    lowered = (body or "").lower()
    return any(phrase in lowered for phrase in CHALLENGE_PHRASES)


def looks_like_html(body: str) -> bool:
    head = (body or "").lstrip()[:512].lower()
    return head.startswith("<!doctype html") or "<html" in head


def envelope_text(payload: Any) -> str:
    """Serialized payload with the post data of each child removed."""
    if not isinstance(payload, dict):
        return json.dumps(payload)
    envelope = dict(payload)
    data = envelope.get("data")
    if isinstance(data, dict) and isinstance(data.get("children"), list):
        stripped = dict(data)
        stripped["children"] = [
            {k: v for k, v in child.items() if k != "data"} if isinstance(child, dict) else child
            for child in data["children"]
        ]
        envelope["data"] = stripped
    return json.dumps(envelope)


def _to_candidate(post: _PostData) -> CandidatePost:
    permalink = post.permalink or ""
    post_url = f"{REDDIT_BASE_URL}{permalink}" if permalink.startswith("/") else permalink
    return CandidatePost(
        title=post.title,
        url=post.url or post_url,
        post_url=post_url,
        flair=post.link_flair_text or "",
        created_at=datetime.fromtimestamp(post.created_utc, tz=timezone.utc),
    )


def parse_search_response(status_code: int, body: str, flair: str = MEDIA_FLAIR) -> List[CandidatePost]:
    """
    Classify a raw search response.

    Raises SoftBlockError for bot challenges (HTTP 429, challenge phrases
    anywhere in the payload outside post data, or HTML where JSON was
    expected) and HardError for other non-2xx statuses or unparseable
    payloads. Phrases inside ``data.children[].data`` are post content.
    """
    text = body or ""
    if status_code == 429:
        raise SoftBlockError("Reddit is rate limiting requests (HTTP 429)")
    if not 200 <= status_code < 300:
        if has_challenge_markers(text):
            raise SoftBlockError(f"Reddit is blocking requests (CAPTCHA/bot detection, HTTP {status_code})")
        raise HardError(f"Reddit API error: status {status_code}, body: {preview_text(text, 200)}", status_code)

    try:
        payload: Any = json.loads(text)
    except ValueError as exc:
        if looks_like_html(text) or has_challenge_markers(text):
            raise SoftBlockError("Reddit returned HTML instead of JSON (likely CAPTCHA or rate limit)") from exc
        raise HardError(f"Could not parse search response: {exc}", status_code) from exc

    if has_challenge_markers(envelope_text(payload)):
        raise SoftBlockError("Reddit is blocking requests (CAPTCHA/bot detection)")

    try:
        listing = SearchListing.model_validate(payload)
    except ValidationError as exc:
        raise HardError(f"Unexpected search payload shape: {exc.error_count()} validation errors", status_code) from exc

    wanted = flair.strip().lower()
    candidates = [_to_candidate(child.data) for child in listing.data.children]
    return [c for c in candidates if c.flair.strip().lower() == wanted]


# Public API
class SearchFetcher:
    """
    Issues single searches through a shared RateLimiter.

    Any object with a compatible ``search(text, result_limit, match_time)``
    method can stand in for this class in the resolution client.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        *,
        session: Optional[requests.Session] = None,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = http.DEFAULT_TIMEOUT,
        flair: str = MEDIA_FLAIR,
        window_before: timedelta = WINDOW_BEFORE,
        window_after: timedelta = WINDOW_AFTER,
        user_agent: Optional[str] = None,
    ):
        self.rate_limiter = rate_limiter
        self.session = session or http.make_session(user_agent)
        self.endpoint = endpoint
        self.timeout = timeout
        self.flair = flair
        self.window_before = window_before
        self.window_after = window_after

    def build_query(self, text: str, match_time: datetime) -> str:
        """Search text restricted by flair and a created-timestamp window around kickoff."""
        kickoff = as_utc(match_time)
        start = int((kickoff - self.window_before).timestamp())
        end = int((kickoff + self.window_after).timestamp())
        return f"{text} flair:{self.flair} timestamp:{start}..{end}"

    def build_params(self, text: str, result_limit: int, match_time: datetime) -> Dict[str, Any]:
        return {
            "q": self.build_query(text, match_time),
            "restrict_sr": "on",
            "sort": "relevance",
            "limit": int(result_limit),
            "raw_json": 1,
        }

    def search(self, text: str, result_limit: int, match_time: datetime) -> List[CandidatePost]:
        self.rate_limiter.wait()
        params = self.build_params(text, result_limit, match_time)
        metrics = get_metrics()
        metrics.record("search.request")
        logger.debug("Searching r/soccer for %r (limit=%s)", text, result_limit)

        try:
            with _log.time_operation("search.request"):
                response = http.get(self.session, self.endpoint, params=params, timeout=self.timeout)
        except TransportError:
            metrics.record_error("search.transport_error")
            raise

        try:
            candidates = parse_search_response(response.status_code, response.text, self.flair)
        except SoftBlockError as exc:
            self.rate_limiter.record_soft_block()
            metrics.record_error("search.soft_block")
            logger.warning("Soft block while searching %r: %s", text, exc)
            raise
        except HardError as exc:
            metrics.record_error("search.hard_error")
            logger.warning("Search for %r failed: %s", text, exc)
            raise

        logger.debug("Search for %r returned %s %s posts", text, len(candidates), self.flair)
        return candidates
