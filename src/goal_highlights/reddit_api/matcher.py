"""
Purpose: Pick the search result that best matches a goal.
Constraints: Pure scoring; no network or cache access.
"""

# Imports
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, List, Optional, Tuple

from goal_highlights.core.models import CandidatePost, GoalQuery, as_utc
from goal_highlights.core.text_normalization import (
    mentions_any,
    mentions_minute,
    normalize_text,
    scoreline_sides,
    team_aliases,
)
from goal_highlights.reddit_api.search import MEDIA_FLAIR, WINDOW_AFTER, WINDOW_BEFORE

# Constants
BOTH_TEAMS_POINTS = 50.0
ONE_TEAM_POINTS = 25.0
MINUTE_POINTS = 30.0
TIME_POINTS = 20.0
ACCEPT_THRESHOLD = 60.0


@dataclass(frozen=True)
class ScoreBreakdown:
    teams: float
    timing: float
    minute: float

    @property
    def total(self) -> float:
        return self.teams + self.timing + self.minute


# Public API
class MatchScorer:
    """
    Additive three-signal relevance score.

    Team names in the title are the strongest signal, then the goal minute
    marker, then how close the post was created to kickoff. Proximity decays
    linearly to zero at the search window edges.
    """

    def __init__(
        self,
        accept_threshold: float = ACCEPT_THRESHOLD,
        *,
        flair: str = MEDIA_FLAIR,
        window_before: timedelta = WINDOW_BEFORE,
        window_after: timedelta = WINDOW_AFTER,
    ):
        self.accept_threshold = accept_threshold
        self.flair = flair
        self.window_before = window_before
        self.window_after = window_after

    def is_highlight(self, candidate: CandidatePost) -> bool:
        return candidate.flair.strip().lower() == self.flair.strip().lower()

    def _team_points(self, title: str, query: GoalQuery) -> float:
        home_aliases = team_aliases(query.home_team, opponent=query.away_team)
        away_aliases = team_aliases(query.away_team, opponent=query.home_team)

        sides = scoreline_sides(title)
        if sides is not None:
            # A scoreline naming a club outside this fixture is another match.
            for side in sides:
                if not (mentions_any(side, home_aliases) or mentions_any(side, away_aliases)):
                    return 0.0

        normalized = normalize_text(title)
        home = mentions_any(normalized, home_aliases)
        away = mentions_any(normalized, away_aliases)
        if home and away:
            return BOTH_TEAMS_POINTS
        if home or away:
            return ONE_TEAM_POINTS
        return 0.0

    def _timing_points(self, candidate: CandidatePost, query: GoalQuery) -> float:
        delta = as_utc(candidate.created_at) - as_utc(query.match_time)
        if delta >= timedelta(0):
            limit = self.window_after
        else:
            limit = self.window_before
            delta = -delta
        if limit <= timedelta(0) or delta >= limit:
            return 0.0
        return TIME_POINTS * (1.0 - delta / limit)

    def score(self, candidate: CandidatePost, query: GoalQuery) -> ScoreBreakdown:
        return ScoreBreakdown(
            teams=self._team_points(candidate.title, query),
            timing=self._timing_points(candidate, query),
            minute=MINUTE_POINTS if mentions_minute(candidate.title, query.minute) else 0.0,
        )

    def rank(self, candidates: Iterable[CandidatePost], query: GoalQuery) -> List[Tuple[float, CandidatePost]]:
        """Highlight candidates sorted best first; ties go to the newer post."""
        scored = [(self.score(c, query).total, c) for c in candidates if self.is_highlight(c)]
        scored.sort(key=lambda item: (item[0], as_utc(item[1].created_at)), reverse=True)
        return scored

    def select_best(self, candidates: Iterable[CandidatePost], query: GoalQuery) -> Optional[CandidatePost]:
        """Best candidate clearing the acceptance threshold, or None."""
        ranked = self.rank(candidates, query)
        if not ranked:
            return None
        best_score, best = ranked[0]
        if best_score < self.accept_threshold:
            return None
        return best


def dedupe_by_url(candidates: Iterable[CandidatePost]) -> List[CandidatePost]:
    """Keep the first candidate for each URL, preserving order."""
    seen = set()
    unique: List[CandidatePost] = []
    for candidate in candidates:
        if candidate.url in seen:
            continue
        seen.add(candidate.url)
        unique.append(candidate)
    return unique
