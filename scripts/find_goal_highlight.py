#!/usr/bin/env python3
"""
Resolve the highlight clip for one goal and print what happened.

Examples:
    python scripts/find_goal_highlight.py 4813581 73 "Inter" "Dortmund" \
        --kickoff 2025-01-21T20:00:00Z --home-scored
    python scripts/find_goal_highlight.py --show-cache
    python scripts/find_goal_highlight.py --clear-cache
"""

import argparse
from datetime import datetime

from goal_highlights.core.config import ConfigManager
from goal_highlights.core.errors import CacheStorageError
from goal_highlights.core.logging import UnifiedLogger
from goal_highlights.core.metrics import get_metrics
from goal_highlights.core.models import CacheStatus, GoalQuery
from goal_highlights.reddit_api.client import make_resolution_client

logger = UnifiedLogger("FindGoalHighlight").get_logger()


def parse_kickoff(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid ISO-8601 kickoff time: {value}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find the r/soccer highlight clip for a goal.")
    parser.add_argument("match_id", nargs="?", type=int, help="Match id from the match-data feed")
    parser.add_argument("minute", nargs="?", type=int, help="Goal minute")
    parser.add_argument("home_team", nargs="?", help="Home team name")
    parser.add_argument("away_team", nargs="?", help="Away team name")
    parser.add_argument("--kickoff", type=parse_kickoff, help="Kickoff time, ISO-8601 (UTC if no offset)")
    side = parser.add_mutually_exclusive_group()
    side.add_argument("--home-scored", dest="scoring_is_home", action="store_true", default=True)
    side.add_argument("--away-scored", dest="scoring_is_home", action="store_false")
    parser.add_argument("--show-cache", action="store_true", help="List cached outcomes and exit")
    parser.add_argument("--clear-cache", action="store_true", help="Remove every cached outcome and exit")
    parser.add_argument("--metrics", action="store_true", help="Print a metrics snapshot after resolving")
    return parser


def show_cache(client) -> None:
    snapshot = client.cache.snapshot()
    if not snapshot:
        print("Cache is empty.")
        return
    for identity, entry in sorted(snapshot.items()):
        if entry.status is CacheStatus.RESOLVED:
            print(f"{identity}  found   {entry.link.url}  ({entry.link.title})")
        else:
            print(f"{identity}  absent  searched {entry.fetched_at.isoformat()}")


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    client = make_resolution_client(ConfigManager().load_all())

    if args.show_cache:
        show_cache(client)
        return 0
    if args.clear_cache:
        try:
            client.clear_cache()
        except CacheStorageError as exc:
            logger.error("Could not clear cache: %s", exc)
            return 1
        print("Cache cleared.")
        return 0

    missing = [name for name in ("match_id", "minute", "home_team", "away_team", "kickoff") if getattr(args, name) is None]
    if missing:
        parser.error(f"missing required arguments: {', '.join(missing)}")

    query = GoalQuery.for_goal(
        match_id=args.match_id,
        minute=args.minute,
        home_team=args.home_team,
        away_team=args.away_team,
        scoring_is_home=args.scoring_is_home,
        match_time=args.kickoff,
    )
    print(f"Searching for {query.scoring_team} {query.minute}' in {query.home_team} vs {query.away_team}...")
    outcome = client.resolve_outcome(query)
    source = "cache" if outcome.from_cache else f"{outcome.attempts} attempt(s)"
    if outcome.link is not None:
        print(f"Found ({source}): {outcome.link.title}")
        print(f"  Video: {outcome.link.url}")
        print(f"  Post:  {outcome.link.post_url}")
    elif outcome.error is not None:
        print(f"Failed after {source}: {outcome.error}")
    else:
        print(f"No highlight found ({source}).")

    if args.metrics:
        print(get_metrics().snapshot())
    return 0 if outcome.error is None else 1


if __name__ == "__main__":
    raise SystemExit(main())
