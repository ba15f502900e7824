import json
import unittest
import unittest.mock
from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

from goal_highlights.core.errors import CacheStorageError
from goal_highlights.core.models import CacheStatus, GoalIdentity, ResolvedLink
from goal_highlights.core.storage.goal_link_cache import GoalLinkCache
from goal_highlights.core.storage.goal_link_store import (
    InMemoryGoalLinkStore,
    JsonFileGoalLinkStore,
    default_cache_path,
)

GOAL = GoalIdentity(match_id=555, minute=73)
OTHER = GoalIdentity(match_id=555, minute=12)


def make_link(identity=GOAL, url="https://streamable.com/lautaro73"):
    return ResolvedLink(
        identity=identity,
        url=url,
        title="Inter 1-0 Dortmund - Lautaro 73'",
        post_url="https://www.reddit.com/r/soccer/comments/t3goal/",
        fetched_at=datetime(2025, 1, 21, 22, 0, tzinfo=timezone.utc),
    )


class GoalLinkCacheTests(unittest.TestCase):
    def setUp(self):
        self.tmp = TemporaryDirectory()
        self.path = Path(self.tmp.name) / "goal_links.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_unknown_when_never_searched(self):
        cache = GoalLinkCache(InMemoryGoalLinkStore())
        self.assertIsNone(cache.get(GOAL))
        self.assertEqual(cache.status(GOAL), CacheStatus.UNKNOWN)
        self.assertNotIn(GOAL, cache)

    def test_entries_survive_reload_from_disk(self):
        cache = GoalLinkCache(JsonFileGoalLinkStore(self.path))
        cache.set_resolved(make_link())
        cache.set_confirmed_absent(OTHER)

        reloaded = GoalLinkCache(JsonFileGoalLinkStore(self.path))
        entry = reloaded.get(GOAL)
        self.assertEqual(entry.status, CacheStatus.RESOLVED)
        self.assertEqual(entry.link.url, "https://streamable.com/lautaro73")
        self.assertEqual(entry.link.post_url, "https://www.reddit.com/r/soccer/comments/t3goal/")
        self.assertEqual(entry.fetched_at, datetime(2025, 1, 21, 22, 0, tzinfo=timezone.utc))
        self.assertEqual(reloaded.status(OTHER), CacheStatus.CONFIRMED_ABSENT)
        self.assertEqual(len(reloaded), 2)

    def test_file_is_keyed_by_match_and_minute(self):
        cache = GoalLinkCache(JsonFileGoalLinkStore(self.path))
        cache.set_resolved(make_link())
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(list(data), ["555:73"])
        self.assertEqual(data["555:73"]["status"], "resolved")
        self.assertFalse(self.path.with_name("goal_links.json.tmp").exists())

    def test_store_is_loaded_lazily_and_once(self):
        store = InMemoryGoalLinkStore()
        cache = GoalLinkCache(store)
        self.assertEqual(store.load_count, 0)
        cache.get(GOAL)
        cache.get(OTHER)
        cache.set_confirmed_absent(GOAL)
        self.assertEqual(store.load_count, 1)
        self.assertEqual(store.save_count, 1)

    def test_records_are_written_once(self):
        store = InMemoryGoalLinkStore()
        cache = GoalLinkCache(store)
        self.assertTrue(cache.set_confirmed_absent(GOAL))
        self.assertFalse(cache.set_resolved(make_link()))
        self.assertEqual(cache.status(GOAL), CacheStatus.CONFIRMED_ABSENT)
        self.assertEqual(store.save_count, 1)

    def test_clear_drops_everything_including_disk(self):
        cache = GoalLinkCache(JsonFileGoalLinkStore(self.path))
        cache.set_resolved(make_link())
        cache.set_confirmed_absent(OTHER)
        cache.clear()
        self.assertEqual(len(cache), 0)
        self.assertEqual(GoalLinkCache(JsonFileGoalLinkStore(self.path)).status(GOAL), CacheStatus.UNKNOWN)
        self.assertTrue(cache.set_resolved(make_link()))

    def test_failed_clear_keeps_entries(self):
        store = InMemoryGoalLinkStore()
        cache = GoalLinkCache(store)
        cache.set_resolved(make_link())
        with unittest.mock.patch.object(store, "save", side_effect=CacheStorageError("read-only")):
            with self.assertRaises(CacheStorageError):
                cache.clear()
        self.assertEqual(cache.status(GOAL), CacheStatus.RESOLVED)
        self.assertEqual(GoalLinkCache(store).status(GOAL), CacheStatus.RESOLVED)

    def test_corrupt_file_loads_empty(self):
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("goal_highlights.core.storage.goal_link_store", level="WARNING"):
            cache = GoalLinkCache(JsonFileGoalLinkStore(self.path))
            self.assertEqual(len(cache), 0)

    def test_unreadable_records_are_skipped(self):
        good = {"status": "confirmed_absent", "match_id": 1, "minute": 5, "fetched_at": "2025-01-21T20:00:00+00:00"}
        self.path.write_text(json.dumps({"1:5": good, "2:9": {"status": "bogus"}}), encoding="utf-8")
        cache = GoalLinkCache(JsonFileGoalLinkStore(self.path))
        self.assertEqual(len(cache), 1)
        self.assertEqual(cache.status(GoalIdentity(1, 5)), CacheStatus.CONFIRMED_ABSENT)

    def test_snapshot_is_read_only(self):
        cache = GoalLinkCache(InMemoryGoalLinkStore())
        cache.set_confirmed_absent(GOAL)
        snapshot = cache.snapshot()
        with self.assertRaises(TypeError):
            snapshot[OTHER] = None
        cache.set_confirmed_absent(OTHER)
        self.assertEqual(len(snapshot), 1)

    def test_unwritable_path_raises_storage_error(self):
        store = JsonFileGoalLinkStore(Path(self.tmp.name))
        with self.assertRaises(CacheStorageError):
            store.save({})

    def test_default_path_honours_environment(self):
        with unittest.mock.patch.dict("os.environ", {"GOAL_LINK_CACHE_PATH": str(self.path)}):
            self.assertEqual(default_cache_path(), self.path)
        with unittest.mock.patch.dict("os.environ", {"GOAL_LINK_CACHE_PATH": "", "XDG_CACHE_HOME": self.tmp.name}):
            self.assertEqual(default_cache_path(), Path(self.tmp.name) / "goal_highlights" / "goal_links.json")


class GoalIdentityTests(unittest.TestCase):
    def test_key_round_trip(self):
        self.assertEqual(GOAL.key, "555:73")
        self.assertEqual(GoalIdentity.from_key("555:73"), GOAL)


if __name__ == "__main__":
    unittest.main()
