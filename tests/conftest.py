"""
Shared pytest fixtures for goal highlight tests.
"""

import os

# Keep test runs from configuring root handlers or writing log files.
os.environ.setdefault("ENABLE_ROOT_LOGGER", "0")
os.environ.setdefault("METRICS_ENABLED", "0")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402

from goal_highlights.core.models import CandidatePost, GoalQuery  # noqa: E402

KICKOFF = datetime(2025, 1, 21, 20, 0, tzinfo=timezone.utc)


def make_post(title, url, hours_after=2.0, flair="Media", post_id="abc123"):
    return CandidatePost(
        title=title,
        url=url,
        post_url=f"https://www.reddit.com/r/soccer/comments/{post_id}/",
        flair=flair,
        created_at=KICKOFF + timedelta(hours=hours_after),
    )


@pytest.fixture
def kickoff():
    return KICKOFF


@pytest.fixture
def post_factory():
    return make_post


@pytest.fixture
def inter_query():
    """Inter (home) scoring against Dortmund in the 73rd minute."""
    return GoalQuery.for_goal(
        match_id=555,
        minute=73,
        home_team="Inter",
        away_team="Dortmund",
        scoring_is_home=True,
        match_time=KICKOFF,
    )


@pytest.fixture
def inter_goal_post():
    return make_post("Inter 1-0 Dortmund - Lautaro 73' GOAL", "https://streamable.com/lautaro73", post_id="t3goal")


@pytest.fixture
def unrelated_posts():
    return [
        make_post("Arsenal 2-1 Chelsea - Saka 12'", "https://streamable.com/saka", hours_after=1, post_id="u1"),
        make_post("Post Match Thread: Lyon 0-0 Nice", "https://streamable.com/lyon", hours_after=3, post_id="u2"),
        make_post("Amazing save from Alisson", "https://streamable.com/alisson", hours_after=5, post_id="u3"),
    ]
