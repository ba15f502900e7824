"""
Purpose: Centralized logging configuration with structured output support.
Constraints: Logging only; no business logic.
"""

# Imports
import json
import logging
import os
import sys
import threading
import time
import traceback
from contextlib import contextmanager
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from goal_highlights.core.metrics import get_metrics

_STRUCTURED_FIELDS = ("action", "details", "identity")


def _env_flag(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off")


def default_log_dir() -> Path:
    override = os.getenv("GOAL_HIGHLIGHTS_LOG_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    base = os.getenv("XDG_STATE_HOME", "").strip()
    state_root = Path(base).expanduser() if base else Path.home() / ".local" / "state"
    return state_root / "goal_highlights" / "logs"


# Public API
class UnifiedLogger:
    """Named logger whose records propagate to a once-configured root logger."""

    _lock = threading.Lock()
    _sentry_initialized = False
    _metrics_thread_started = False
    _global_initialized = False

    def __init__(self, name: str = "goal_highlights", log_level: Optional[str] = None):
        self.name = name
        if log_level is None:
            log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        level = getattr(logging, log_level, logging.INFO)

        with self._lock:
            self.logger = logging.getLogger(name)
            self.logger.setLevel(level)
            if not UnifiedLogger._global_initialized:
                UnifiedLogger._global_initialized = True
                logs_dir = default_log_dir()
                if self._ensure_root_logger(logs_dir, level):
                    if _env_flag("METRICS_ENABLED"):
                        self._start_metrics_thread(logs_dir)
                    self.logger.debug("Logging to %s", logs_dir)
                self._maybe_init_sentry()
            self.logger.propagate = True

    def get_logger(self) -> logging.Logger:
        return self.logger

    def log_activity(self, action: str, details: Dict[str, Any], level: str = "INFO") -> None:
        """Log a pipeline event with structured fields for the JSON log."""
        log_level = getattr(logging, level.upper(), logging.INFO)
        self.logger.log(log_level, f"ACTIVITY: {action}", extra={"action": action, "details": details})
        get_metrics().record(f"activity.{action}", success=log_level < logging.ERROR)

    def log_error_with_context(self, error: Exception, context: Dict[str, Any], level: str = "ERROR") -> None:
        error_details = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
        }
        if error.__traceback__ is not None:
            error_details["traceback"] = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self.logger.log(
            getattr(logging, level.upper(), logging.ERROR),
            f"ERROR: {type(error).__name__}: {error}",
            extra={"details": error_details},
        )
        get_metrics().record_error("exception")

    @contextmanager
    def time_operation(self, operation_name: str):
        """Time a block; feeds the metrics latency table and a debug line."""
        start_time = time.monotonic()
        try:
            yield
        finally:
            duration = time.monotonic() - start_time
            get_metrics().observe(operation_name, duration)
            self.logger.debug("PERFORMANCE: %s took %.2fs", operation_name, duration)

    def _ensure_root_logger(self, logs_dir: Path, level: int) -> bool:
        if not _env_flag("ENABLE_ROOT_LOGGER"):
            return False
        root_logger = logging.getLogger()
        if root_logger.handlers:
            return False

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(
            getattr(logging, os.getenv("CONSOLE_LOG_LEVEL", "WARNING").upper(), logging.WARNING)
        )
        console_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        root_logger.setLevel(level)
        root_logger.addHandler(console_handler)

        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            root_logger.warning("Log directory %s unavailable (%s); console logging only", logs_dir, exc)
            return False

        timestamp = datetime.now().strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            logs_dir / f"highlights_{timestamp}.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s")
        )
        root_logger.addHandler(file_handler)

        if _env_flag("ENABLE_JSON_LOGGING"):
            json_handler = RotatingFileHandler(
                logs_dir / f"highlights_json_{timestamp}.log",
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
            json_handler.setLevel(level)
            json_handler.setFormatter(JsonFormatter())
            root_logger.addHandler(json_handler)
        if _env_flag("METRICS_ENABLED"):
            root_logger.addHandler(_MetricsHandler())
        return True

    def _start_metrics_thread(self, logs_dir: Path) -> None:
        if UnifiedLogger._metrics_thread_started:
            return
        interval = int(os.getenv("METRICS_SNAPSHOT_INTERVAL_SEC", "60"))
        if interval <= 0:
            return
        metrics_path = logs_dir / "metrics.jsonl"

        def _loop():
            while True:
                time.sleep(interval)
                try:
                    get_metrics().write_snapshot(metrics_path)
                except OSError as exc:
                    logging.getLogger(__name__).debug("Metrics snapshot failed: %s", exc)

        t = threading.Thread(target=_loop, daemon=True, name="metrics-snapshotter")
        t.start()
        UnifiedLogger._metrics_thread_started = True

    def _maybe_init_sentry(self) -> None:
        if UnifiedLogger._sentry_initialized:
            return
        dsn = os.getenv("SENTRY_DSN", "").strip()
        if not dsn:
            return
        try:
            import sentry_sdk
            from sentry_sdk.integrations.logging import LoggingIntegration
        except ImportError:
            logging.getLogger(__name__).warning("SENTRY_DSN is set but sentry-sdk is not installed")
            return

        sentry_sdk.init(
            dsn=dsn,
            environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
            release=os.getenv("SENTRY_RELEASE"),
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
            integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        )
        UnifiedLogger._sentry_initialized = True


def setup_logger(name: str = "goal_highlights", log_level: Optional[str] = None) -> logging.Logger:
    """Return a configured logger instance."""
    return UnifiedLogger(name=name, log_level=log_level).get_logger()


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for field_name in _STRUCTURED_FIELDS:
            if hasattr(record, field_name):
                log_obj[field_name] = getattr(record, field_name)
        return json.dumps(log_obj, default=str)


class _MetricsHandler(logging.Handler):
    """Count records per level."""

    def emit(self, record: logging.LogRecord) -> None:
        metrics = get_metrics()
        metrics.record(f"log.{record.levelname.lower()}", success=record.levelno < logging.ERROR)
        if record.levelno >= logging.ERROR:
            metrics.record_error("log.error")
