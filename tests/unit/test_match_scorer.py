import pytest

from goal_highlights.core.models import GoalQuery
from goal_highlights.reddit_api.matcher import (
    BOTH_TEAMS_POINTS,
    MINUTE_POINTS,
    MatchScorer,
    dedupe_by_url,
)


@pytest.fixture
def scorer():
    return MatchScorer()


def test_selects_goal_clip_among_unrelated_posts(scorer, inter_query, inter_goal_post, unrelated_posts):
    best = scorer.select_best(unrelated_posts + [inter_goal_post], inter_query)
    assert best is inter_goal_post


def test_unrelated_posts_fall_below_threshold(scorer, inter_query, unrelated_posts):
    assert scorer.select_best(unrelated_posts, inter_query) is None


def test_no_candidates(scorer, inter_query):
    assert scorer.select_best([], inter_query) is None


def test_non_media_posts_are_discarded(scorer, inter_query, post_factory):
    thread = post_factory("Inter 1-0 Dortmund - Lautaro 73'", "https://reddit.com/thread", flair="Match Thread")
    assert scorer.rank([thread], inter_query) == []
    assert scorer.select_best([thread], inter_query) is None


def test_score_breakdown(scorer, inter_query, inter_goal_post):
    breakdown = scorer.score(inter_goal_post, inter_query)
    assert breakdown.teams == BOTH_TEAMS_POINTS
    assert breakdown.minute == MINUTE_POINTS
    # Two hours into a 48 hour window.
    assert breakdown.timing == pytest.approx(20.0 * (1 - 2 / 48))
    assert breakdown.total == pytest.approx(breakdown.teams + breakdown.minute + breakdown.timing)


def test_timing_is_zero_outside_window(scorer, inter_query, post_factory):
    late = post_factory("Inter 1-0 Dortmund 73'", "https://streamable.com/late", hours_after=72)
    early = post_factory("Inter 1-0 Dortmund 73'", "https://streamable.com/early", hours_after=-30)
    assert scorer.score(late, inter_query).timing == 0.0
    assert scorer.score(early, inter_query).timing == 0.0


def test_tie_goes_to_newer_post(scorer, inter_query, post_factory):
    older = post_factory("Inter 1-0 Dortmund 73'", "https://streamable.com/older", hours_after=50, post_id="o")
    newer = post_factory("Inter 1-0 Dortmund 73'", "https://streamable.com/newer", hours_after=60, post_id="n")
    assert scorer.select_best([older, newer], inter_query) is newer
    assert scorer.select_best([newer, older], inter_query) is newer


def test_one_team_without_minute_is_rejected(scorer, inter_query, post_factory):
    clip = post_factory("Lautaro scores a screamer for Inter", "https://streamable.com/lautaro")
    assert scorer.score(clip, inter_query).total < scorer.accept_threshold
    assert scorer.select_best([clip], inter_query) is None


def test_custom_threshold(inter_query, post_factory):
    clip = post_factory("Lautaro scores a screamer for Inter", "https://streamable.com/lautaro")
    assert MatchScorer(accept_threshold=40).select_best([clip], inter_query) is clip


def test_dedupe_keeps_first_per_url(post_factory):
    a = post_factory("first", "https://streamable.com/a", post_id="1")
    b = post_factory("second", "https://streamable.com/b", post_id="2")
    a_again = post_factory("first again", "https://streamable.com/a", post_id="3")
    assert dedupe_by_url([a, b, a_again]) == [a, b]


@pytest.mark.parametrize(
    "home,away,title",
    [
        ("West Ham United", "Liverpool", "Newcastle United 1-0 Liverpool - Isak 73'"),
        ("Manchester City", "Arsenal", "Manchester United 1-0 Arsenal - Fernandes 73'"),
        ("Real Madrid", "Sevilla", "Atletico Madrid 1-0 Sevilla - Griezmann 73'"),
    ],
)
def test_clip_from_another_fixture_is_rejected(scorer, post_factory, kickoff, home, away, title):
    query = GoalQuery.for_goal(31, 73, home, away, scoring_is_home=True, match_time=kickoff)
    wrong = post_factory(title, "https://streamable.com/wrong")
    assert scorer.score(wrong, query).teams == 0.0
    assert scorer.select_best([wrong], query) is None


def test_clip_from_the_right_fixture_still_matches(scorer, post_factory, kickoff):
    query = GoalQuery.for_goal(31, 73, "West Ham United", "Liverpool", scoring_is_home=True, match_time=kickoff)
    right = post_factory("West Ham 1-0 Liverpool - Bowen 73'", "https://streamable.com/bowen")
    assert scorer.score(right, query).teams == BOTH_TEAMS_POINTS
    assert scorer.select_best([right], query) is right


def test_bracketed_scoreline(scorer, inter_query, post_factory):
    clip = post_factory("Inter [1]-0 Dortmund - Lautaro 73'", "https://streamable.com/bracket")
    assert scorer.score(clip, inter_query).teams == BOTH_TEAMS_POINTS
