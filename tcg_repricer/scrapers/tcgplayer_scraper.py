# tcg_repricer/scrapers/tcgplayer_scraper.py

"""Reference prices from tcgplayer.com via a headless Chromium session."""

import urllib.parse
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Page, async_playwright

from tcg_repricer.filters.title_matcher import TitleMatcher
from tcg_repricer.models.reference_price import ReferencePrice
from tcg_repricer.scrapers.base_scraper import BasePriceSource

# Resolves once any price cell on the detail page has rendered text;
# a blank foil cell must not hold up the normal price.
_PRICES_RENDERED_JS = """
(selector) => {
    const cells = document.querySelectorAll(selector);
    return cells.length > 0
        && Array.from(cells).some((c) => c.textContent.trim() !== "");
}
"""


class TCGPlayerPriceSource(BasePriceSource):
    """Scraper for TCGplayer market prices.

    TCGplayer has no public pricing API and renders both the search
    results and the price guide client-side, so every lookup drives a
    real browser:

    1. open the search page for the card name and wait for result cards,
    2. pick the result whose title is contained in the card name,
    3. open its product page and wait for the price cells to fill in,
    4. read the "Normal" and "Foil" market prices.

    The rendered HTML is handed to BeautifulSoup for parsing so the
    matching and extraction rules stay testable without a browser.
    One browser process is launched per lookup and always closed.
    """

    def __init__(self) -> None:
        super().__init__("tcgplayer")

    # ------------------------------------------------------------------
    # Browser session
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _browser_session(self) -> AsyncIterator[Page]:
        """Launch Chromium, yield a fresh page, close on every exit path."""
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(
                headless=True,
                args=self.settings.BROWSER_ARGS,
            )
            try:
                page = await browser.new_page()
                page.set_default_timeout(
                    self.settings.BROWSER_TIMEOUT_MS
                )
                yield page
            finally:
                await browser.close()

    # ------------------------------------------------------------------
    # Parsing (pure, operates on rendered HTML)
    # ------------------------------------------------------------------

    def build_search_url(self, card_name: str) -> str:
        """Return the search page URL for *card_name*."""
        encoded = urllib.parse.quote_plus(card_name)
        return self.settings.SEARCH_URL.format(query=encoded)

    def _absolute_url(self, href: str) -> str:
        if href and not href.startswith("http"):
            return self.settings.BASE_URL + href
        return href

    def parse_candidates(
        self, soup: BeautifulSoup,
    ) -> list[tuple[str, str]]:
        """Extract ``(title, url)`` pairs from a rendered search page."""
        candidates: list[tuple[str, str]] = []
        for card in soup.select(self.selectors["search_result"]):
            title_el = card.select_one(self.selectors["result_title"])
            if title_el is None:
                continue

            link_el: Tag | None
            if card.name == "a":
                link_el = card
            else:
                link_el = card.select_one(self.selectors["result_link"])
            href = ""
            if link_el is not None:
                raw_href = link_el.get("href", "")
                href = str(raw_href) if raw_href else ""

            candidates.append(
                (
                    title_el.get_text(strip=True),
                    self._absolute_url(href),
                )
            )
        return candidates

    def parse_prices(
        self, soup: BeautifulSoup,
    ) -> tuple[float | None, float | None]:
        """Return ``(normal, foil)`` market prices from a product page.

        Labelled price-guide rows are preferred; a label mentioning foil
        fills the foil price and any other label the normal one. Without
        labels the price cells are read positionally: normal first, foil
        second.
        """
        normal: float | None = None
        foil: float | None = None
        labelled = False

        for row in soup.select(self.selectors["price_guide_row"]):
            label_el = row.select_one(self.selectors["price_label"])
            value_el = row.select_one(self.selectors["price_value"])
            if label_el is None or value_el is None:
                continue
            label = label_el.get_text(strip=True).lower()
            value = self.extract_price(value_el.get_text())
            if "foil" in label:
                labelled = True
                if foil is None:
                    foil = value
            else:
                # "Normal", "Near Mint" and similar non-foil printings
                labelled = True
                if normal is None:
                    normal = value

        if labelled:
            return normal, foil

        values = [
            self.extract_price(el.get_text())
            for el in soup.select(self.selectors["price_cells"])
        ]
        if values:
            normal = values[0]
        if len(values) > 1:
            foil = values[1]
        return normal, foil

    # ------------------------------------------------------------------
    # Browser-driven lookup
    # ------------------------------------------------------------------

    async def _wait_for_prices(self, page: Page) -> None:
        """Block until at least one price cell has rendered text."""
        await page.wait_for_function(
            _PRICES_RENDERED_JS,
            arg=self.selectors["price_cells"],
        )

    async def _lookup_in_page(
        self, page: Page, card_name: str,
    ) -> ReferencePrice | None:
        search_url = self.build_search_url(card_name)
        self.logger.info("[tcgplayer] Searching %s", search_url)
        await page.goto(search_url, wait_until="domcontentloaded")
        await page.wait_for_selector(self.selectors["search_result"])

        soup = BeautifulSoup(await page.content(), "lxml")
        candidates = self.parse_candidates(soup)
        index = TitleMatcher.best_match(
            card_name, [title for title, _ in candidates]
        )
        if index is None:
            return None

        title, url = candidates[index]
        if not url:
            self.logger.warning(
                "[tcgplayer] Match '%s' has no product link", title
            )
            return None

        self.logger.info("[tcgplayer] Opening product page %s", url)
        await page.goto(url, wait_until="domcontentloaded")
        await self._wait_for_prices(page)

        detail = BeautifulSoup(await page.content(), "lxml")
        normal, foil = self.parse_prices(detail)
        reference = ReferencePrice(
            matched_title=title,
            normal=normal,
            foil=foil,
            currency=self.settings.SOURCE_CURRENCY,
            url=url,
        )
        if reference.is_empty:
            self.logger.warning(
                "[tcgplayer] No parseable price on %s", url
            )
            return None
        return reference

    async def lookup(self, card_name: str) -> ReferencePrice | None:
        """Look up the market price of *card_name* on TCGplayer."""
        try:
            async with self._browser_session() as page:
                return await self._lookup_in_page(page, card_name)
        except Exception as exc:
            self.logger.warning(
                "[tcgplayer] Lookup failed for '%s': %s",
                card_name,
                exc,
                exc_info=True,
            )
            return None
