"""
Purpose: Resolve goal highlight links: cache lookup, retry/backoff, scoring, cache writes.
Constraints: The single entry point used by the rest of the application; no UI logic.
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from goal_highlights.core.config import ConfigManager
from goal_highlights.core.config_models import HighlightSettings
from goal_highlights.core.errors import (
    CacheStorageError,
    HighlightSearchError,
    ResolutionCancelled,
    SoftBlockError,
)
from goal_highlights.core.logging import UnifiedLogger
from goal_highlights.core.metrics import get_metrics
from goal_highlights.core.models import (
    CandidatePost,
    GoalIdentity,
    GoalQuery,
    ResolutionOutcome,
    ResolutionState,
    ResolvedLink,
)
from goal_highlights.core.rate_limiter import RateLimiter
from goal_highlights.core.storage.goal_link_cache import GoalLinkCache
from goal_highlights.core.storage.goal_link_store import GoalLinkStore, JsonFileGoalLinkStore
from goal_highlights.core.utils.retry import backoff_delay
from goal_highlights.reddit_api.matcher import MatchScorer, dedupe_by_url
from goal_highlights.reddit_api.search import SearchFetcher

# Constants
MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 30.0
BATCH_SIZE = 5
BATCH_DELAY_SECONDS = 2.0
RESULT_LIMIT = 15

_log = UnifiedLogger(__name__)
logger = _log.get_logger()

BatchCallback = Callable[[int, Dict[GoalIdentity, ResolvedLink]], None]


def _raise_if_cancelled(cancel: Optional[threading.Event], identity: Optional[GoalIdentity] = None) -> None:
    if cancel is not None and cancel.is_set():
        target = f" for {identity}" if identity is not None else ""
        raise ResolutionCancelled(f"Highlight resolution cancelled{target}")


def dedupe_queries(queries: Iterable[GoalQuery]) -> List[GoalQuery]:
    """First query per identity, in input order."""
    unique: Dict[GoalIdentity, GoalQuery] = {}
    for query in queries:
        unique.setdefault(query.identity, query)
    return list(unique.values())


# Public API
class ResolutionClient:
    """
    Resolves GoalQuery -> ResolvedLink through one fetcher, one scorer and one cache.

    Per goal the flow is an explicit state machine ending in FOUND,
    CONFIRMED_ABSENT or FAILED. Only the first two are cached; failures are
    re-attempted on the next call. ``sleep`` replaces real delays in tests;
    when it is left unset, delays wake early on cancellation.
    """

    def __init__(
        self,
        fetcher: SearchFetcher,
        cache: GoalLinkCache,
        scorer: Optional[MatchScorer] = None,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        backoff_base: float = BACKOFF_BASE_SECONDS,
        backoff_max: Optional[float] = None,
        backoff_jitter: float = 0.0,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY_SECONDS,
        result_limit: int = RESULT_LIMIT,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.fetcher = fetcher
        self._cache = cache
        self.scorer = scorer or MatchScorer()
        self.max_attempts = max(1, int(max_attempts))
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.backoff_jitter = backoff_jitter
        self.batch_size = max(1, int(batch_size))
        self.batch_delay = batch_delay
        self.result_limit = result_limit
        self._sleep = sleep

    @property
    def cache(self) -> GoalLinkCache:
        """Read access for diagnostics and tests."""
        return self._cache

    def clear_cache(self) -> None:
        """Drop every cached outcome. Raises CacheStorageError if the store cannot be rewritten."""
        self._cache.clear()

    # Single goal
    def resolve(self, query: GoalQuery, cancel: Optional[threading.Event] = None) -> Optional[ResolvedLink]:
        """
        Cached or freshly searched highlight for one goal; None when confirmed absent.

        Raises the last SoftBlockError after exhausting attempts, HardError or
        TransportError immediately, and ResolutionCancelled if ``cancel`` is set.
        """
        outcome = self.resolve_outcome(query, cancel)
        if outcome.state is ResolutionState.FAILED:
            raise outcome.error
        return outcome.link

    def resolve_outcome(self, query: GoalQuery, cancel: Optional[threading.Event] = None) -> ResolutionOutcome:
        identity = query.identity
        entry = self._cache.get(identity)
        if entry is not None:
            get_metrics().record("cache.hit")
            if entry.is_resolved:
                return ResolutionOutcome(identity, ResolutionState.FOUND, link=entry.link, from_cache=True)
            return ResolutionOutcome(identity, ResolutionState.CONFIRMED_ABSENT, from_cache=True)

        outcome = self._attempt_loop(query, cancel)
        self._record_outcome(outcome)
        return outcome

    def _attempt_loop(self, query: GoalQuery, cancel: Optional[threading.Event]) -> ResolutionOutcome:
        identity = query.identity
        last_error: Optional[SoftBlockError] = None
        for attempt in range(1, self.max_attempts + 1):
            delay = backoff_delay(
                attempt,
                base_delay=self.backoff_base,
                max_delay=self.backoff_max,
                jitter=self.backoff_jitter,
            )
            if delay > 0:
                logger.info(
                    "Backing off %.0fs before attempt %s/%s for goal %s",
                    delay,
                    attempt,
                    self.max_attempts,
                    identity,
                )
                self._pause(delay, cancel)
            _raise_if_cancelled(cancel, identity)

            try:
                match = self._search_once(query, cancel)
            except SoftBlockError as exc:
                last_error = exc
                logger.warning("Attempt %s/%s for goal %s soft-blocked: %s", attempt, self.max_attempts, identity, exc)
                continue
            except HighlightSearchError as exc:
                return ResolutionOutcome(identity, ResolutionState.FAILED, error=exc, attempts=attempt)

            if match is None:
                return ResolutionOutcome(identity, ResolutionState.CONFIRMED_ABSENT, attempts=attempt)
            link = ResolvedLink.from_candidate(identity, match)
            return ResolutionOutcome(identity, ResolutionState.FOUND, link=link, attempts=attempt)

        return ResolutionOutcome(identity, ResolutionState.FAILED, error=last_error, attempts=self.max_attempts)

    def _search_once(self, query: GoalQuery, cancel: Optional[threading.Event]) -> Optional[CandidatePost]:
        """Query A (both teams + minute), then query B (scoring team + minute) over the pooled results."""
        specific = f"{query.home_team} {query.away_team} {query.minute}'"
        first = self.fetcher.search(specific, self.result_limit, query.match_time)
        match = self.scorer.select_best(first, query)
        if match is not None:
            return match

        _raise_if_cancelled(cancel, query.identity)
        broader = f"{query.scoring_team} {query.minute}'"
        second = self.fetcher.search(broader, self.result_limit, query.match_time)
        return self.scorer.select_best(dedupe_by_url([*first, *second]), query)

    def _record_outcome(self, outcome: ResolutionOutcome) -> None:
        metrics = get_metrics()
        details = {"identity": outcome.identity.key, "attempts": outcome.attempts, "state": outcome.state.value}
        try:
            if outcome.state is ResolutionState.FOUND:
                metrics.record("resolve.found")
                details["url"] = outcome.link.url
                self._cache.set_resolved(outcome.link)
            elif outcome.state is ResolutionState.CONFIRMED_ABSENT:
                metrics.record("resolve.confirmed_absent")
                self._cache.set_confirmed_absent(outcome.identity)
            else:
                metrics.record_error("resolve.failed")
                details["error"] = str(outcome.error)
                _log.log_error_with_context(
                    outcome.error,
                    {"identity": outcome.identity.key, "attempts": outcome.attempts},
                    level="WARNING",
                )
        except CacheStorageError as exc:
            logger.warning("Could not persist outcome for goal %s: %s", outcome.identity, exc)
        _log.log_activity("resolve", details, level="WARNING" if outcome.state is ResolutionState.FAILED else "INFO")

    def _pause(self, seconds: float, cancel: Optional[threading.Event]) -> None:
        if seconds <= 0:
            return
        if self._sleep is not None:
            self._sleep(seconds)
        elif cancel is not None:
            cancel.wait(seconds)
        else:
            time.sleep(seconds)

    # Batches
    def iter_resolve_many(
        self,
        queries: Iterable[GoalQuery],
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[Dict[GoalIdentity, ResolvedLink]]:
        """
        Yield partial results: the cache hits first, then one map per batch.

        Uncached goals run in batches of ``batch_size`` with ``batch_delay``
        before every batch but the first. Within a batch goals resolve one at
        a time; a failing goal is logged and skipped. Cancellation stops after
        yielding whatever the interrupted batch had found.
        """
        cached: Dict[GoalIdentity, ResolvedLink] = {}
        pending: List[GoalQuery] = []
        for query in dedupe_queries(queries):
            entry = self._cache.get(query.identity)
            if entry is None:
                pending.append(query)
            elif entry.is_resolved:
                cached[query.identity] = entry.link
        logger.debug("Batch resolve: %s cached, %s to search", len(cached), len(pending))
        yield cached

        for index, start in enumerate(range(0, len(pending), self.batch_size)):
            if index > 0:
                self._pause(self.batch_delay, cancel)
            if cancel is not None and cancel.is_set():
                logger.info("Batch resolve cancelled with %s goals left", len(pending) - start)
                return

            found: Dict[GoalIdentity, ResolvedLink] = {}
            for query in pending[start:start + self.batch_size]:
                try:
                    link = self.resolve(query, cancel)
                except ResolutionCancelled:
                    logger.info("Batch resolve cancelled during goal %s", query.identity)
                    if found:
                        yield found
                    return
                except HighlightSearchError as exc:
                    logger.warning("No highlight for goal %s: %s", query.identity, exc)
                    continue
                if link is not None:
                    found[query.identity] = link
            yield found

    def resolve_many(
        self,
        queries: Iterable[GoalQuery],
        cancel: Optional[threading.Event] = None,
        on_batch: Optional[BatchCallback] = None,
    ) -> Dict[GoalIdentity, ResolvedLink]:
        """
        Every found link keyed by identity. Confirmed-absent and failed goals are omitted.

        ``on_batch(number, partial)`` is called for each partial map; number 0
        carries the cache hits.
        """
        results: Dict[GoalIdentity, ResolvedLink] = {}
        for number, partial in enumerate(self.iter_resolve_many(queries, cancel)):
            results.update(partial)
            if on_batch is not None:
                on_batch(number, dict(partial))
        return results


def make_resolution_client(
    config: Union[ConfigManager, HighlightSettings, None] = None,
    *,
    store: Optional[GoalLinkStore] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> ResolutionClient:
    """Wire limiter, fetcher, scorer and a file-backed cache from configuration."""
    if config is None:
        config = ConfigManager().load_all()
    settings = config.settings if isinstance(config, ConfigManager) else config

    window_before = timedelta(hours=settings.search.window_before_hours)
    window_after = timedelta(hours=settings.search.window_after_hours)
    limiter = rate_limiter or RateLimiter.from_requests_per_minute(
        settings.rate_limit.requests_per_minute,
        soft_block_window=settings.rate_limit.soft_block_window,
        soft_block_multiplier=settings.rate_limit.soft_block_multiplier,
    )
    fetcher = SearchFetcher(
        limiter,
        endpoint=settings.search.endpoint,
        timeout=settings.search.timeout,
        flair=settings.search.flair,
        window_before=window_before,
        window_after=window_after,
        user_agent=settings.search.user_agent,
    )
    scorer = MatchScorer(
        settings.matching.accept_threshold,
        flair=settings.search.flair,
        window_before=window_before,
        window_after=window_after,
    )
    if store is None:
        store = JsonFileGoalLinkStore(Path(settings.cache.path) if settings.cache.path else None)
    return ResolutionClient(
        fetcher,
        GoalLinkCache(store),
        scorer,
        max_attempts=settings.retry.max_attempts,
        backoff_base=settings.retry.backoff_base,
        backoff_max=settings.retry.backoff_max,
        batch_size=settings.batch.size,
        batch_delay=settings.batch.delay,
        result_limit=settings.search.result_limit,
    )
