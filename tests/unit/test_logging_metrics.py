import json
import logging

from goal_highlights.core.logging import JsonFormatter, UnifiedLogger
from goal_highlights.core.metrics import MetricsCollector, get_metrics


def test_counters_and_failures():
    metrics = MetricsCollector()
    metrics.record("search.request")
    metrics.record("search.request")
    metrics.record_error("search.soft_block")
    snap = metrics.snapshot()
    assert snap["totals"] == {"search.request": 2, "search.soft_block": 1}
    assert snap["failures"] == {"search.soft_block": 1}
    assert snap["per_minute"]["search.request"] == 2.0


def test_latency_observations():
    metrics = MetricsCollector()
    metrics.observe("search.request", 0.1)
    metrics.observe("search.request", 0.3)
    latency = metrics.snapshot()["latency"]["search.request"]
    assert latency == {"count": 2, "mean_ms": 200.0, "max_ms": 300.0}


def test_reset_and_snapshot_file(tmp_path):
    metrics = MetricsCollector()
    metrics.record("cache.hit")
    path = tmp_path / "out" / "metrics.jsonl"
    metrics.write_snapshot(path)
    assert json.loads(path.read_text(encoding="utf-8"))["totals"] == {"cache.hit": 1}
    metrics.reset()
    assert metrics.total("cache.hit") == 0


def test_get_metrics_is_shared():
    assert get_metrics() is get_metrics()


def test_activity_is_logged_and_counted(caplog):
    log = UnifiedLogger("goal_highlights.tests.activity")
    before = get_metrics().total("activity.resolve")
    with caplog.at_level(logging.INFO, logger="goal_highlights.tests.activity"):
        log.log_activity("resolve", {"identity": "555:73", "state": "found"})
    assert "ACTIVITY: resolve" in caplog.text
    assert get_metrics().total("activity.resolve") == before + 1


def test_time_operation_feeds_latency():
    log = UnifiedLogger("goal_highlights.tests.timing")
    with log.time_operation("tests.block"):
        pass
    assert get_metrics().snapshot()["latency"]["tests.block"]["count"] >= 1


def test_json_formatter_includes_structured_fields():
    record = logging.LogRecord("goal_highlights", logging.INFO, __file__, 1, "ACTIVITY: resolve", None, None)
    record.action = "resolve"
    record.details = {"identity": "555:73"}
    out = json.loads(JsonFormatter().format(record))
    assert out["message"] == "ACTIVITY: resolve"
    assert out["action"] == "resolve"
    assert out["details"] == {"identity": "555:73"}
