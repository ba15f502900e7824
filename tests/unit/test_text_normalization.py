import unittest

from goal_highlights.core.text_normalization import (
    mentions_any,
    mentions_minute,
    normalize_text,
    preview_text,
    scoreline_sides,
    team_aliases,
)


class NormalizeTextTest(unittest.TestCase):
    def test_strips_accents_and_punctuation(self):
        self.assertEqual(normalize_text("Atlético Madrid!"), "atletico madrid")
        self.assertEqual(normalize_text("Brighton & Hove Albion"), "brighton and hove albion")

    def test_empty_input(self):
        self.assertEqual(normalize_text(""), "")

    def test_preview_text_is_single_line(self):
        out = preview_text("line1\nline2   with   spaces", width=10)
        self.assertNotIn("\n", out)
        self.assertTrue(out.endswith("..."))


class TeamAliasesTest(unittest.TestCase):
    def test_initials_and_known_short_forms(self):
        aliases = team_aliases("Paris Saint-Germain")
        self.assertIn("paris saint germain", aliases)
        self.assertIn("psg", aliases)

    def test_club_tokens_are_dropped(self):
        self.assertIn("koln", team_aliases("1. FC Köln"))
        self.assertIn("hoffenheim", team_aliases("TSG 1899 Hoffenheim"))

    def test_known_aliases(self):
        self.assertIn("man utd", team_aliases("Manchester United"))
        self.assertIn("dortmund", team_aliases("Borussia Dortmund"))
        self.assertIn("spurs", team_aliases("Tottenham Hotspur"))

    def test_aliases_sorted_longest_first(self):
        aliases = team_aliases("Borussia Dortmund")
        self.assertEqual(aliases, sorted(aliases, key=len, reverse=True))

    def test_generic_club_words_are_not_aliases(self):
        self.assertNotIn("united", team_aliases("West Ham United"))
        self.assertNotIn("manchester", team_aliases("Manchester City"))
        self.assertNotIn("madrid", team_aliases("Real Madrid"))
        self.assertIn("west ham", team_aliases("West Ham United"))

    def test_short_forms_shared_with_opponent_are_dropped(self):
        aliases = team_aliases("AC Milan", opponent="Inter Milan")
        self.assertNotIn("milan", aliases)
        self.assertIn("ac milan", aliases)

    def test_mentions_any_requires_whole_words(self):
        title = normalize_text("International friendly: Brazil vs Japan")
        self.assertFalse(mentions_any(title, team_aliases("Inter")))
        self.assertTrue(mentions_any(normalize_text("Inter 1-0 Dortmund"), team_aliases("Inter")))


class ScorelineTest(unittest.TestCase):
    def test_sides_around_score(self):
        self.assertEqual(
            scoreline_sides("Newcastle United 1-0 Liverpool - Isak 73'"),
            ("newcastle united", "liverpool"),
        )

    def test_no_scoreline(self):
        self.assertIsNone(scoreline_sides("Lautaro scores a screamer for Inter"))
        self.assertIsNone(scoreline_sides("Late winner 90+2'"))


class MinuteMarkerTest(unittest.TestCase):
    def test_apostrophe_marker(self):
        self.assertTrue(mentions_minute("Inter 1-0 Dortmund - Lautaro 73' GOAL", 73))
        self.assertTrue(mentions_minute("Lautaro 73’", 73))

    def test_other_minutes_do_not_match(self):
        self.assertFalse(mentions_minute("Lautaro 173'", 73))
        self.assertFalse(mentions_minute("Lautaro 74'", 73))
        self.assertFalse(mentions_minute("Inter 73 points this season", 73))

    def test_stoppage_time(self):
        self.assertTrue(mentions_minute("Late winner 90+2'", 90))
        self.assertFalse(mentions_minute("Late winner 90+2'", 2))

    def test_written_minutes(self):
        self.assertTrue(mentions_minute("Goal in the 45 min", 45))
        self.assertTrue(mentions_minute("Header, 12th min", 12))

    def test_empty_title(self):
        self.assertFalse(mentions_minute("", 10))


if __name__ == "__main__":
    unittest.main()
