"""
Purpose: Load environment and JSON configuration for the highlight resolver.
Constraints: Pure config I/O only; no network side effects.
"""

# Imports
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import ValidationError

from goal_highlights.core.config_models import HighlightSettings

logger = logging.getLogger(__name__)

# env var -> (section, field)
ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "HIGHLIGHTS_SEARCH_ENDPOINT": ("search", "endpoint"),
    "HIGHLIGHTS_USER_AGENT": ("search", "user_agent"),
    "HIGHLIGHTS_TIMEOUT": ("search", "timeout"),
    "HIGHLIGHTS_RESULT_LIMIT": ("search", "result_limit"),
    "HIGHLIGHTS_FLAIR": ("search", "flair"),
    "HIGHLIGHTS_REQUESTS_PER_MINUTE": ("rate_limit", "requests_per_minute"),
    "HIGHLIGHTS_SOFT_BLOCK_WINDOW": ("rate_limit", "soft_block_window"),
    "HIGHLIGHTS_SOFT_BLOCK_MULTIPLIER": ("rate_limit", "soft_block_multiplier"),
    "HIGHLIGHTS_MAX_ATTEMPTS": ("retry", "max_attempts"),
    "HIGHLIGHTS_BACKOFF_BASE": ("retry", "backoff_base"),
    "HIGHLIGHTS_BACKOFF_MAX": ("retry", "backoff_max"),
    "HIGHLIGHTS_BATCH_SIZE": ("batch", "size"),
    "HIGHLIGHTS_BATCH_DELAY": ("batch", "delay"),
    "GOAL_LINK_CACHE_PATH": ("cache", "path"),
    "HIGHLIGHTS_ACCEPT_THRESHOLD": ("matching", "accept_threshold"),
}


# Public API
class ConfigManager:
    """Settings for the resolver: defaults < config/settings.json < environment."""

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(os.getenv("HIGHLIGHTS_CONFIG_DIR", "") or Path.cwd() / "config")
        self.config_dir = Path(config_dir)
        self.loaded_env_file: Optional[Path] = None
        self.file_settings: Dict[str, Any] = {}
        self.settings = HighlightSettings()

    def load_all(self) -> "ConfigManager":
        self.load_env()
        self.load_settings()
        return self

    def env_files(self) -> List[Path]:
        return [
            self.config_dir / "highlights.env",
            Path.cwd() / ".env",
            Path.home() / ".goal_highlights.env",
        ]

    def load_env(self) -> "ConfigManager":
        """Load the first env file found; existing environment variables win."""
        for env_file in self.env_files():
            if env_file.exists():
                load_dotenv(env_file, override=False)
                self.loaded_env_file = env_file
                logger.debug("Loaded environment from: %s", env_file)
                break
        else:
            logger.debug("No .env file found")
        return self

    def load_settings(self) -> "ConfigManager":
        """Build HighlightSettings from settings.json and env overrides."""
        self.file_settings = self._read_settings_file()
        merged = {section: dict(values) for section, values in self.file_settings.items() if isinstance(values, dict)}
        for env_name, (section, field) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or not raw.strip():
                continue
            merged.setdefault(section, {})[field] = raw.strip()

        try:
            self.settings = HighlightSettings(**merged)
        except ValidationError as exc:
            logger.warning("Invalid highlight settings, using defaults: %s", exc)
            self.settings = HighlightSettings()
        return self

    def _read_settings_file(self) -> Dict[str, Any]:
        settings_file = self.config_dir / "settings.json"
        if not settings_file.exists():
            return {}
        try:
            with settings_file.open("r", encoding="utf-8") as f:
                content = f.read().strip()
            if not content:
                logger.warning("Empty %s, using defaults", settings_file)
                return {}
            data = json.loads(content)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Error reading %s: %s", settings_file, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Invalid format in %s, using defaults", settings_file)
            return {}
        section = data.get("highlights", data)
        return section if isinstance(section, dict) else {}

    @property
    def search(self):
        return self.settings.search

    @property
    def rate_limit(self):
        return self.settings.rate_limit

    @property
    def retry(self):
        return self.settings.retry

    @property
    def batch(self):
        return self.settings.batch

    @property
    def cache(self):
        return self.settings.cache

    @property
    def matching(self):
        return self.settings.matching
