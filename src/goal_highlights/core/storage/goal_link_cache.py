"""
Purpose: Process-wide goal link cache with positive and negative entries.
Constraints: Cache semantics only; persistence is delegated to a GoalLinkStore.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from goal_highlights.core.logging import setup_logger
from goal_highlights.core.metrics import get_metrics
from goal_highlights.core.models import (
    CacheEntry,
    CacheStatus,
    GoalIdentity,
    ResolvedLink,
    utc_now,
)
from goal_highlights.core.storage.goal_link_store import GoalLinkStore

logger = setup_logger(__name__)


class GoalLinkCache:
    """
    Identity -> CacheEntry map, lazily loaded and flushed on every mutation.

    A missing record means UNKNOWN (never searched). Records are written once
    per identity; later writes for the same identity are ignored until
    ``clear()`` drops everything. All access goes through one lock because
    the UI may read while a background batch is writing.
    """

    def __init__(self, store: GoalLinkStore):
        self.store = store
        self._lock = threading.Lock()
        self._entries: Dict[GoalIdentity, CacheEntry] = {}
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._entries = dict(self.store.load())
            self._loaded = True

    def get(self, identity: GoalIdentity) -> Optional[CacheEntry]:
        with self._lock:
            self._ensure_loaded()
            return self._entries.get(identity)

    def status(self, identity: GoalIdentity) -> CacheStatus:
        entry = self.get(identity)
        return entry.status if entry is not None else CacheStatus.UNKNOWN

    def set_resolved(self, link: ResolvedLink) -> bool:
        return self._put(CacheEntry.resolved(link))

    def set_confirmed_absent(self, identity: GoalIdentity) -> bool:
        return self._put(CacheEntry.confirmed_absent(identity, utc_now()))

    def _put(self, entry: CacheEntry) -> bool:
        """Returns False when a record already existed. Raises CacheStorageError on flush failure."""
        with self._lock:
            self._ensure_loaded()
            if entry.identity in self._entries:
                logger.debug("Cache entry for %s already present; keeping it", entry.identity)
                return False
            self._entries[entry.identity] = entry
            self.store.save(self._entries)
        get_metrics().record(f"cache.write.{entry.status.value}")
        return True

    def clear(self) -> None:
        with self._lock:
            self.store.save({})
            self._entries = {}
            self._loaded = True
        logger.info("Goal link cache cleared")

    def snapshot(self) -> Mapping[GoalIdentity, CacheEntry]:
        """Read-only copy for diagnostics."""
        with self._lock:
            self._ensure_loaded()
            return MappingProxyType(dict(self._entries))

    def __len__(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            self._ensure_loaded()
            return identity in self._entries
