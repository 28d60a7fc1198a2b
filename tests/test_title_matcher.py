# tests/test_title_matcher.py

"""Tests for containment matching of search-result titles."""

import unittest

from tcg_repricer.filters.title_matcher import TitleMatcher


class TestIsMatch(unittest.TestCase):
    """The card name must contain the candidate title."""

    def test_card_name_contains_title(self) -> None:
        self.assertTrue(
            TitleMatcher.is_match("Island [Unlimited Edition]", "Island")
        )

    def test_case_insensitive(self) -> None:
        self.assertTrue(
            TitleMatcher.is_match("LIGHTNING BOLT (M10)", "lightning bolt")
        )

    def test_reverse_containment_is_not_a_match(self) -> None:
        """A title longer than the card name never matches."""
        self.assertFalse(
            TitleMatcher.is_match("Island", "Island [Unlimited Edition]")
        )

    def test_blank_title_never_matches(self) -> None:
        self.assertFalse(TitleMatcher.is_match("Island", "   "))


class TestBestMatch(unittest.TestCase):
    """Selecting one candidate among the search results."""

    def test_prefers_most_specific_contained_title(self) -> None:
        """'Island (Foil)' wins over 'Island' for a foil card name."""
        index = TitleMatcher.best_match(
            "Island (Foil) [Set Name]", ["Island", "Island (Foil)"]
        )
        self.assertEqual(index, 1)

    def test_only_contained_title_wins(self) -> None:
        """Plain 'Island' is chosen when it is the only contained title."""
        index = TitleMatcher.best_match(
            "Island [Set Name]", ["Island (Foil)", "Island"]
        )
        self.assertEqual(index, 1)

    def test_equal_length_tie_goes_to_first(self) -> None:
        index = TitleMatcher.best_match(
            "Plains Island Bundle", ["Plains", "Island"]
        )
        self.assertEqual(index, 0)

    def test_no_match_returns_none(self) -> None:
        self.assertIsNone(
            TitleMatcher.best_match(
                "Black Lotus", ["Island", "Island (Foil)"]
            )
        )

    def test_empty_candidates(self) -> None:
        self.assertIsNone(TitleMatcher.best_match("Island", []))


if __name__ == "__main__":
    unittest.main()
