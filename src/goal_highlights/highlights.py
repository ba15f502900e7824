"""
Purpose: Public entry points for the goal highlight resolver.
Constraints: Re-export only; no logic here.
"""

# Imports
from goal_highlights.core.errors import (
    CacheStorageError,
    HardError,
    HighlightSearchError,
    ResolutionCancelled,
    SoftBlockError,
    TransportError,
)
from goal_highlights.core.models import (
    CacheEntry,
    CacheStatus,
    GoalIdentity,
    GoalQuery,
    ResolutionOutcome,
    ResolutionState,
    ResolvedLink,
)
from goal_highlights.reddit_api.background import BackgroundResolution, resolve_in_background
from goal_highlights.reddit_api.client import ResolutionClient, make_resolution_client

__all__ = [
    "BackgroundResolution",
    "CacheEntry",
    "CacheStatus",
    "CacheStorageError",
    "GoalIdentity",
    "GoalQuery",
    "HardError",
    "HighlightSearchError",
    "ResolutionCancelled",
    "ResolutionClient",
    "ResolutionOutcome",
    "ResolutionState",
    "ResolvedLink",
    "SoftBlockError",
    "TransportError",
    "make_resolution_client",
    "resolve_in_background",
]
