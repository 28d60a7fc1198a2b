# tcg_repricer/scrapers/base_scraper.py

"""Abstract base class for reference price sources."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from tcg_repricer.config.settings import Settings
from tcg_repricer.models.reference_price import ReferencePrice


class BasePriceSource(ABC):
    """Abstract base class for reference price sources.

    Subclasses look a card up by name and return a
    :class:`ReferencePrice`, or ``None`` when nothing usable was found.
    Lookups are best-effort: implementations log and swallow their own
    failures instead of raising into the reconciliation loop.
    """

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"tcg_repricer.{source_name}"
        )
        self.settings = Settings()
        self.selectors: dict[str, str] = self._load_selectors()

    def _load_selectors(self) -> dict[str, str]:
        """Load CSS selectors for this source from selectors.json."""
        with open(self.settings.SELECTORS_PATH) as f:
            all_selectors: dict[str, Any] = json.load(f)
        result: dict[str, str] = all_selectors.get(
            self.source_name, {}
        )
        return result

    @staticmethod
    def extract_price(text: str | None) -> float | None:
        """Extract a numeric price from a string like '$1,299.00'.

        Returns None when the text holds no number (e.g. '-' or '').
        """
        if not text:
            return None
        cleaned = text.replace(",", "")
        numbers = re.findall(r"\d+(?:\.\d+)?", cleaned)
        if not numbers:
            return None
        return float(numbers[0])

    @abstractmethod
    async def lookup(self, card_name: str) -> ReferencePrice | None:
        """Return the reference price for *card_name*, or None."""
        ...
