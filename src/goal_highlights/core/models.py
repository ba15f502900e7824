"""
Purpose: Shared data models for goal highlight resolution.
Constraints: Data containers only; no I/O.
"""

# Imports
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Public API
@dataclass(frozen=True, order=True)
class GoalIdentity:
    """(match_id, minute) pair addressing one goal for caching purposes."""

    match_id: int
    minute: int

    @property
    def key(self) -> str:
        return f"{self.match_id}:{self.minute}"

    @classmethod
    def from_key(cls, key: str) -> "GoalIdentity":
        match_id, _, minute = str(key).partition(":")
        return cls(match_id=int(match_id), minute=int(minute))

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class GoalQuery:
    """What to search for. Owned by the caller, read-only here."""

    identity: GoalIdentity
    home_team: str
    away_team: str
    scoring_is_home: bool
    match_time: datetime

    @classmethod
    def for_goal(
        cls,
        match_id: int,
        minute: int,
        home_team: str,
        away_team: str,
        scoring_is_home: bool,
        match_time: datetime,
    ) -> "GoalQuery":
        return cls(
            identity=GoalIdentity(match_id=match_id, minute=minute),
            home_team=home_team,
            away_team=away_team,
            scoring_is_home=scoring_is_home,
            match_time=as_utc(match_time),
        )

    @property
    def minute(self) -> int:
        return self.identity.minute

    @property
    def scoring_team(self) -> str:
        return self.home_team if self.scoring_is_home else self.away_team


@dataclass(frozen=True)
class CandidatePost:
    """A single search hit; discarded after scoring."""

    title: str
    url: str
    post_url: str
    flair: str
    created_at: datetime


@dataclass(frozen=True)
class ResolvedLink:
    """Durable positive result for a goal."""

    identity: GoalIdentity
    url: str
    title: str
    post_url: str
    fetched_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_candidate(cls, identity: GoalIdentity, candidate: CandidatePost) -> "ResolvedLink":
        return cls(
            identity=identity,
            url=candidate.url,
            title=candidate.title,
            post_url=candidate.post_url,
        )


class CacheStatus(str, Enum):
    RESOLVED = "resolved"
    CONFIRMED_ABSENT = "confirmed_absent"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CacheEntry:
    """
    Stored cache record. Only RESOLVED and CONFIRMED_ABSENT are ever stored;
    UNKNOWN is the absence of a record.
    """

    status: CacheStatus
    identity: GoalIdentity
    fetched_at: datetime
    link: Optional[ResolvedLink] = None

    @classmethod
    def resolved(cls, link: ResolvedLink) -> "CacheEntry":
        return cls(
            status=CacheStatus.RESOLVED,
            identity=link.identity,
            fetched_at=link.fetched_at,
            link=link,
        )

    @classmethod
    def confirmed_absent(cls, identity: GoalIdentity, fetched_at: Optional[datetime] = None) -> "CacheEntry":
        return cls(
            status=CacheStatus.CONFIRMED_ABSENT,
            identity=identity,
            fetched_at=fetched_at or utc_now(),
        )

    @property
    def is_resolved(self) -> bool:
        return self.status is CacheStatus.RESOLVED

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "status": self.status.value,
            "match_id": self.identity.match_id,
            "minute": self.identity.minute,
            "fetched_at": self.fetched_at.isoformat(),
        }
        if self.link is not None:
            record["url"] = self.link.url
            record["title"] = self.link.title
            record["post_url"] = self.link.post_url
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CacheEntry":
        identity = GoalIdentity(match_id=int(record["match_id"]), minute=int(record["minute"]))
        fetched_at = as_utc(datetime.fromisoformat(str(record["fetched_at"]).replace("Z", "+00:00")))
        status = CacheStatus(record["status"])
        if status is CacheStatus.RESOLVED:
            link = ResolvedLink(
                identity=identity,
                url=str(record["url"]),
                title=str(record.get("title", "")),
                post_url=str(record.get("post_url", "")),
                fetched_at=fetched_at,
            )
            return cls.resolved(link)
        if status is CacheStatus.CONFIRMED_ABSENT:
            return cls.confirmed_absent(identity, fetched_at)
        raise ValueError(f"Unstorable cache status: {status.value}")


class ResolutionState(str, Enum):
    FOUND = "found"
    CONFIRMED_ABSENT = "confirmed_absent"
    FAILED = "failed"


@dataclass
class ResolutionOutcome:
    """Terminal state of one goal's resolution attempt loop."""

    identity: GoalIdentity
    state: ResolutionState
    link: Optional[ResolvedLink] = None
    error: Optional[Exception] = None
    attempts: int = 0
    from_cache: bool = False

    @property
    def found(self) -> bool:
        return self.state is ResolutionState.FOUND
