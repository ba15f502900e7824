"""
Purpose: Durable storage backends for the goal link cache.
Constraints: Storage only; no network calls or cache semantics.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Dict

from goal_highlights.core.errors import CacheStorageError
from goal_highlights.core.logging import setup_logger
from goal_highlights.core.models import CacheEntry, GoalIdentity

CACHE_FILE_NAME = "goal_links.json"

logger = setup_logger(__name__)


def default_cache_path() -> Path:
    """$GOAL_LINK_CACHE_PATH, else the per-user cache directory."""
    override = os.getenv("GOAL_LINK_CACHE_PATH", "").strip()
    if override:
        return Path(override).expanduser()
    base = os.getenv("XDG_CACHE_HOME", "").strip()
    cache_root = Path(base).expanduser() if base else Path.home() / ".cache"
    return cache_root / "goal_highlights" / CACHE_FILE_NAME


class GoalLinkStore:
    """Storage interface: load the whole map, save the whole map."""

    def load(self) -> Dict[GoalIdentity, CacheEntry]:
        raise NotImplementedError

    def save(self, entries: Dict[GoalIdentity, CacheEntry]) -> None:
        raise NotImplementedError


class InMemoryGoalLinkStore(GoalLinkStore):
    """Keeps a copy of the last saved map. Used by tests and throwaway clients."""

    def __init__(self, initial: Dict[GoalIdentity, CacheEntry] = None):
        self._data: Dict[GoalIdentity, CacheEntry] = dict(initial or {})
        self.load_count = 0
        self.save_count = 0

    def load(self) -> Dict[GoalIdentity, CacheEntry]:
        self.load_count += 1
        return dict(self._data)

    def save(self, entries: Dict[GoalIdentity, CacheEntry]) -> None:
        self.save_count += 1
        self._data = dict(entries)


class JsonFileGoalLinkStore(GoalLinkStore):
    """
    Single JSON file keyed by "<match_id>:<minute>".

    Read fully on load, rewritten fully on save via a temp file and
    ``os.replace`` so a crash mid-write never leaves a truncated cache.
    Unreadable files load as an empty map; unreadable records are skipped.
    """

    def __init__(self, path: Path = None):
        self.path = Path(path) if path is not None else default_cache_path()
        self._write_lock = threading.Lock()

    def load(self) -> Dict[GoalIdentity, CacheEntry]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read goal link cache %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Goal link cache %s should contain a JSON object.", self.path)
            return {}

        entries: Dict[GoalIdentity, CacheEntry] = {}
        for key, record in data.items():
            try:
                entry = CacheEntry.from_record(record)
            except (KeyError, TypeError, ValueError) as exc:
                logger.debug("Skipping unreadable cache record %s: %s", key, exc)
                continue
            entries[entry.identity] = entry
        logger.debug("Loaded %s goal link entries from %s", len(entries), self.path)
        return entries

    def save(self, entries: Dict[GoalIdentity, CacheEntry]) -> None:
        payload = {identity.key: entry.to_record() for identity, entry in sorted(entries.items())}
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with self._write_lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
                os.replace(tmp_path, self.path)
            except OSError as exc:
                raise CacheStorageError(f"Could not write goal link cache {self.path}: {exc}") from exc
