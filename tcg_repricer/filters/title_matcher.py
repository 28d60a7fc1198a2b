# tcg_repricer/filters/title_matcher.py

"""Match a catalog product name against scraped search-result titles."""

import logging

logger = logging.getLogger("tcg_repricer.filters")


class TitleMatcher:
    """Containment matching between a card name and candidate titles."""

    @staticmethod
    def is_match(card_name: str, candidate_title: str) -> bool:
        """True if *card_name* contains *candidate_title*, ignoring case.

        The direction matters: catalog names carry extra qualifiers
        (set name, edition) that search-result titles do not.
        """
        title = candidate_title.strip().lower()
        if not title:
            return False
        return title in card_name.lower()

    @classmethod
    def best_match(
        cls,
        card_name: str,
        candidate_titles: list[str],
    ) -> int | None:
        """Return the index of the best contained candidate, or None.

        The longest contained title wins, so "Island (Foil)" beats
        "Island" for "Island (Foil) [Set Name]". Titles of equal
        length keep page order: the first one found wins.
        """
        best_index: int | None = None
        best_length = 0
        for index, title in enumerate(candidate_titles):
            if not cls.is_match(card_name, title):
                continue
            length = len(title.strip())
            if length > best_length:
                best_index = index
                best_length = length

        if best_index is None:
            logger.info(
                "No candidate contained in '%s' (%d candidates)",
                card_name,
                len(candidate_titles),
            )
            return None

        logger.debug(
            "Matched '%s' to candidate #%d '%s'",
            card_name,
            best_index,
            candidate_titles[best_index],
        )
        return best_index
