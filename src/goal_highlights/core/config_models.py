"""
Purpose: Typed configuration models with validation.
Constraints: Pure models; no file I/O or side effects.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SearchSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    endpoint: str = "https://www.reddit.com/r/soccer/search.json"
    user_agent: str = "goal-highlights:v1.0 (highlight link resolver)"
    timeout: float = Field(default=10.0, gt=0)
    result_limit: int = Field(default=15, ge=1, le=100)
    flair: str = "Media"
    window_before_hours: float = Field(default=24.0, ge=0)
    window_after_hours: float = Field(default=48.0, ge=0)


class RateLimitSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    requests_per_minute: int = Field(default=10, ge=0)
    soft_block_window: float = Field(default=600.0, ge=0)
    soft_block_multiplier: float = Field(default=2.0, ge=1.0)


class RetrySettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_attempts: int = Field(default=3, ge=1)
    backoff_base: float = Field(default=30.0, ge=0)
    backoff_max: float = Field(default=120.0, ge=0)


class BatchSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    size: int = Field(default=5, ge=1)
    delay: float = Field(default=2.0, ge=0)


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    path: str = ""


class MatchingSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    accept_threshold: float = Field(default=60.0, gt=0)


class HighlightSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    search: SearchSettings = Field(default_factory=SearchSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
