"""
Purpose: Normalize post titles and team names, and spot goal-minute markers.
Constraints: Pure helpers only; no side effects.
"""

# Imports
import re
import unicodedata
from textwrap import shorten
from typing import Dict, List, Optional, Sequence, Set, Tuple

# Constants
_CLUB_TOKENS: Set[str] = {
    "fc", "cf", "afc", "sc", "ac", "as", "ssc", "cd", "ud", "sd", "rc", "rcd",
    "club", "de", "bv", "bsc", "vfb", "vfl", "sv", "tsg", "fk", "sk", "if",
    "calcio", "and", "the", "1", "04", "05", "09", "1899", "1900", "1909",
}

# Words shared by many clubs; never an alias on their own.
_GENERIC_WORDS: Set[str] = {
    "united", "city", "town", "county", "real", "athletic", "atletico", "sporting",
    "rovers", "wanderers", "albion", "olympique", "borussia", "racing", "dynamo",
    "dinamo", "inter", "royal", "union", "saint", "west", "north", "south",
    "manchester", "madrid", "milan", "sheffield", "bristol", "birmingham",
}

# Common English-language short forms used in r/soccer titles.
KNOWN_ALIASES: Dict[str, List[str]] = {
    "manchester united": ["man utd", "man united", "mufc"],
    "manchester city": ["man city", "mcfc"],
    "tottenham hotspur": ["tottenham", "spurs"],
    "tottenham": ["spurs"],
    "wolverhampton wanderers": ["wolves"],
    "wolverhampton": ["wolves"],
    "brighton hove albion": ["brighton"],
    "brighton and hove albion": ["brighton"],
    "newcastle united": ["newcastle"],
    "west ham united": ["west ham"],
    "nottingham forest": ["forest", "nottm forest"],
    "paris saint germain": ["psg", "paris sg"],
    "internazionale": ["inter"],
    "inter milan": ["inter"],
    "ac milan": ["milan"],
    "borussia dortmund": ["dortmund", "bvb"],
    "borussia monchengladbach": ["gladbach", "monchengladbach"],
    "bayern munchen": ["bayern", "bayern munich"],
    "bayern munich": ["bayern"],
    "rb leipzig": ["leipzig"],
    "bayer leverkusen": ["leverkusen"],
    "atletico madrid": ["atletico", "atleti"],
    "fc barcelona": ["barcelona", "barca"],
    "barcelona": ["barca"],
    "athletic club": ["athletic bilbao", "bilbao"],
    "sporting cp": ["sporting lisbon"],
    "olympique marseille": ["marseille", "om"],
    "olympique lyonnais": ["lyon", "ol"],
    "psv eindhoven": ["psv"],
}

# "Home 1-0 Away - Scorer 73'", optionally with the scoring side's goals in brackets.
_SCORELINE = re.compile(r"(?P<home>[^\d\[\]]+?)\s*\[?\d{1,2}\]?\s*[-–]\s*\[?\d{1,2}\]?\s*(?P<away>[^\d\[\]\-–|]+)")

_MINUTE_TEMPLATE = r"(?<![\d+]){minute}(?:\s*\+\s*\d{{1,2}})?\s*(?:['’′`]|\s*min\b|\s*mins\b|(?:st|nd|rd|th)\s+min)"


# Helpers
def preview_text(text: str, width: int = 80) -> str:
    """Return a single-line preview of text, trimmed to width."""
    if not text:
        return "(no title)"
    sanitized = " ".join(text.split())
    return shorten(sanitized, width=width, placeholder="...")


def normalize_text(text: str) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = stripped.replace("&", " and ")
    cleaned = re.sub(r"[^0-9a-z]+", " ", stripped.lower())
    return " ".join(cleaned.split())


def team_aliases(name: str, opponent: Optional[str] = None) -> List[str]:
    """
    Names a team is likely to appear under in a post title, longest first.

    Includes the normalized full name, the name without club tokens
    ("FC", "AC", "1899"...), known short forms, the longest word that is not
    shared by many clubs, and initials for names of three or more words.
    Short forms that also appear in ``opponent`` are dropped.
    """
    full = normalize_text(name)
    if not full:
        return []
    derived: Set[str] = set()

    words = full.split()
    core_words = [w for w in words if w not in _CLUB_TOKENS]
    core = " ".join(core_words)
    if core:
        derived.add(core)

    for candidate in (full, core):
        derived.update(KNOWN_ALIASES.get(candidate, []))

    distinctive = [w for w in core_words if len(w) >= 4 and w not in _GENERIC_WORDS]
    if distinctive:
        derived.add(max(distinctive, key=len))

    if len(core_words) >= 3:
        derived.add("".join(w[0] for w in core_words))

    derived = {a for a in derived if len(a) >= 3 or a in KNOWN_ALIASES.get(core, [])}
    opponent_text = normalize_text(opponent or "")
    if opponent_text:
        derived = {a for a in derived if not mentions_any(opponent_text, [a])}
    derived.add(full)
    return sorted(derived, key=len, reverse=True)


def scoreline_sides(title: str) -> Optional[Tuple[str, str]]:
    """
    Normalized (home, away) text around a "1-0" style scoreline, or None when
    the title has no scoreline or a side is left without a name.
    """
    match = _SCORELINE.search(title or "")
    if match is None:
        return None
    sides = []
    for part in (match.group("home"), match.group("away")):
        side = normalize_text(part)
        if not [w for w in side.split() if w not in _CLUB_TOKENS]:
            return None
        sides.append(side)
    return sides[0], sides[1]


def mentions_any(normalized_title: str, aliases: Sequence[str]) -> bool:
    """Whole-word match of any alias inside an already normalized title."""
    padded = f" {normalized_title} "
    return any(f" {alias} " in padded for alias in aliases if alias)


def mentions_minute(title: str, minute: int) -> bool:
    """True when the raw title carries a goal-minute marker like 73', 90+2' or 73 min."""
    if not title:
        return False
    pattern = re.compile(_MINUTE_TEMPLATE.format(minute=int(minute)), re.IGNORECASE)
    return bool(pattern.search(title))
