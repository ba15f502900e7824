"""
Purpose: Run batch resolution off the UI thread with a cancellation token.
Constraints: Threading glue only; resolution rules live in ResolutionClient.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, List, Optional

from goal_highlights.core.logging import setup_logger
from goal_highlights.core.models import GoalIdentity, GoalQuery, ResolvedLink
from goal_highlights.reddit_api.client import ResolutionClient

logger = setup_logger(__name__)

PartialCallback = Callable[[Dict[GoalIdentity, ResolvedLink]], None]


class BackgroundResolution:
    """
    One ``resolve_many`` run on a daemon thread.

    ``on_partial`` receives each non-empty partial map as it arrives, on the
    worker thread. Call ``cancel()`` when the user navigates away; the worker
    stops at the next attempt or batch boundary and no cache entry is written
    for the goal in flight.
    """

    def __init__(
        self,
        client: ResolutionClient,
        queries: Iterable[GoalQuery],
        on_partial: Optional[PartialCallback] = None,
        on_done: Optional[Callable[[Dict[GoalIdentity, ResolvedLink]], None]] = None,
    ):
        self.client = client
        self.queries: List[GoalQuery] = list(queries)
        self.on_partial = on_partial
        self.on_done = on_done
        self.cancel_event = threading.Event()
        self._results: Dict[GoalIdentity, ResolvedLink] = {}
        self._results_lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name="highlight-resolver", daemon=True)

    def start(self) -> "BackgroundResolution":
        self._thread.start()
        return self

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """True when the worker has finished."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def done(self) -> bool:
        return self._thread.ident is not None and not self._thread.is_alive()

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def results(self) -> Dict[GoalIdentity, ResolvedLink]:
        with self._results_lock:
            return dict(self._results)

    def _run(self) -> None:
        try:
            for partial in self.client.iter_resolve_many(self.queries, self.cancel_event):
                if not partial:
                    continue
                with self._results_lock:
                    self._results.update(partial)
                if self.on_partial is not None and not self.cancelled:
                    self.on_partial(dict(partial))
        except Exception as exc:
            self._error = exc
            logger.exception("Background highlight resolution failed")
            return
        if self.on_done is not None:
            self.on_done(self.results)


def resolve_in_background(
    client: ResolutionClient,
    queries: Iterable[GoalQuery],
    on_partial: Optional[PartialCallback] = None,
    on_done: Optional[Callable[[Dict[GoalIdentity, ResolvedLink]], None]] = None,
) -> BackgroundResolution:
    """Start and return a BackgroundResolution."""
    return BackgroundResolution(client, queries, on_partial=on_partial, on_done=on_done).start()
