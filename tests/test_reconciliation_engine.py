# tests/test_reconciliation_engine.py

"""Tests for ReconciliationEngine decisions and failure isolation."""

import unittest
from typing import Any
from unittest.mock import MagicMock

from helpers import load_catalog, load_products, make_config

from tcg_repricer.models.catalog import CatalogEntry
from tcg_repricer.models.reference_price import ReferencePrice
from tcg_repricer.scrapers.base_scraper import BasePriceSource
from tcg_repricer.services.catalog_writer import CatalogWriter, WriteResult
from tcg_repricer.services.currency_converter import CurrencyConverter
from tcg_repricer.services.errors import ConversionError
from tcg_repricer.services.reconciliation_engine import (
    CONVERSION_FAILED,
    CURRENCY_MISMATCH,
    DRY_RUN,
    NO_LISTED_PRICE,
    NO_PRICE,
    NO_VARIANT,
    UNCHANGED,
    UPDATED,
    WRITE_FAILED,
    ReconciliationEngine,
)

ISLAND = "Island (Foil) [Unlimited Edition]"
BOLT = "Lightning Bolt"


class FakePriceSource(BasePriceSource):
    """Price source answering from a name -> ReferencePrice dict."""

    def __init__(self, prices: dict[str, ReferencePrice | None]) -> None:
        super().__init__("fake")
        self.prices = prices
        self.looked_up: list[str] = []

    async def lookup(self, card_name: str) -> ReferencePrice | None:
        self.looked_up.append(card_name)
        return self.prices.get(card_name)


def _identity_converter() -> MagicMock:
    converter = MagicMock(spec=CurrencyConverter)
    converter.convert.side_effect = (
        lambda amount, from_cur, to_cur: round(amount, 2)
    )
    return converter


def _ok_writer() -> MagicMock:
    writer = MagicMock(spec=CatalogWriter)
    writer.update_variant_price.return_value = WriteResult(
        ok=True, status_code=200
    )
    return writer


def _catalog_with_prices(prices: dict[str, str]) -> list[CatalogEntry]:
    """Catalog fixture with some variant prices replaced by id."""
    products: list[dict[str, Any]] = load_products()
    for product in products:
        for variant in product["variants"]:
            if variant["id"] in prices:
                variant["pricing"]["basePrice"]["value"] = prices[variant["id"]]
    return [CatalogEntry.from_api(p) for p in products]


class TestReconciliationEngine(unittest.IsolatedAsyncioTestCase):
    """reconcile() over the catalog fixture."""

    def setUp(self) -> None:
        self.catalog = load_catalog()
        self.converter = _identity_converter()
        self.writer = _ok_writer()

    def _engine(
        self,
        prices: dict[str, ReferencePrice | None],
        **config: Any,
    ) -> tuple[ReconciliationEngine, FakePriceSource]:
        source = FakePriceSource(prices)
        engine = ReconciliationEngine(
            price_source=source,
            converter=self.converter,
            writer=self.writer,
            config=make_config(**config),
        )
        return engine, source

    async def test_updates_only_changed_variants(self) -> None:
        engine, _ = self._engine(
            {
                ISLAND: ReferencePrice(ISLAND, normal=1.5, foil=4.0),
                BOLT: ReferencePrice(BOLT, normal=12.5),
            }
        )

        report = await engine.reconcile(self.catalog)

        self.writer.update_variant_price.assert_called_once_with(
            "prod-island", "var-island-nm", 1.5, False
        )
        statuses = [(o.variant_id, o.status) for o in report.outcomes]
        self.assertEqual(
            statuses,
            [
                ("var-island-nm", UPDATED),
                ("var-island-foil", UNCHANGED),
                ("var-bolt", UNCHANGED),
                ("", NO_VARIANT),
            ],
        )
        self.assertEqual(report.products_processed, 3)
        self.assertEqual(report.writes_attempted, 1)

    async def test_decision_records_old_and_new(self) -> None:
        engine, _ = self._engine(
            {ISLAND: ReferencePrice(ISLAND, normal=1.5)}
        )
        report = await engine.reconcile(self.catalog[:1])
        decision = report.outcomes[0].decision
        assert decision is not None
        self.assertEqual(decision.old_amount, 1.22)
        self.assertEqual(decision.new_amount, 1.5)
        self.assertTrue(decision.should_update)

    async def test_second_run_issues_no_writes(self) -> None:
        """Once applied, an unchanged reference price writes nothing."""
        prices = {
            ISLAND: ReferencePrice(ISLAND, normal=1.5, foil=4.25),
            BOLT: ReferencePrice(BOLT, normal=13.0),
        }
        engine, _ = self._engine(prices)
        await engine.reconcile(self.catalog)
        self.assertEqual(self.writer.update_variant_price.call_count, 3)

        self.writer.reset_mock()
        updated = _catalog_with_prices(
            {
                "var-island-nm": "1.50",
                "var-island-foil": "4.25",
                "var-bolt": "13.00",
            }
        )
        engine, _ = self._engine(prices)
        report = await engine.reconcile(updated)

        self.writer.update_variant_price.assert_not_called()
        self.assertEqual(report.count(UNCHANGED), 3)

    async def test_partial_price_leaves_foil_untouched(self) -> None:
        engine, _ = self._engine(
            {ISLAND: ReferencePrice(ISLAND, normal=2.0, foil=None)}
        )

        report = await engine.reconcile(self.catalog[:1])

        self.writer.update_variant_price.assert_called_once_with(
            "prod-island", "var-island-nm", 2.0, False
        )
        by_variant = {o.variant_id: o.status for o in report.outcomes}
        self.assertEqual(by_variant["var-island-foil"], NO_PRICE)

    async def test_untracked_condition_ignored(self) -> None:
        """'Lightly Played' has no reference price key and is skipped."""
        engine, _ = self._engine(
            {ISLAND: ReferencePrice(ISLAND, normal=9.0, foil=9.0)}
        )
        report = await engine.reconcile(self.catalog[:1])
        variant_ids = [o.variant_id for o in report.outcomes]
        self.assertNotIn("var-island-lp", variant_ids)

    async def test_no_match_skips_product(self) -> None:
        engine, source = self._engine(
            {BOLT: ReferencePrice(BOLT, normal=14.0)}
        )

        report = await engine.reconcile(self.catalog)

        self.assertEqual(report.outcomes[0].product_id, "prod-island")
        self.assertEqual(report.outcomes[0].status, NO_PRICE)
        self.writer.update_variant_price.assert_called_once_with(
            "prod-bolt", "var-bolt", 14.0, True
        )
        self.assertEqual(source.looked_up, [ISLAND, BOLT])

    async def test_write_failure_does_not_stop_next_product(self) -> None:
        self.writer.update_variant_price.side_effect = [
            WriteResult(ok=False, status_code=400, body="Invalid price"),
            WriteResult(ok=True, status_code=200),
        ]
        engine, _ = self._engine(
            {
                ISLAND: ReferencePrice(ISLAND, normal=1.5),
                BOLT: ReferencePrice(BOLT, normal=14.0),
            }
        )

        report = await engine.reconcile(self.catalog)

        self.assertEqual(self.writer.update_variant_price.call_count, 2)
        self.assertEqual(report.outcomes[0].status, WRITE_FAILED)
        self.assertIn("Invalid price", report.outcomes[0].message)
        bolt = [o for o in report.outcomes if o.product_id == "prod-bolt"]
        self.assertEqual(bolt[0].status, UPDATED)

    async def test_conversion_failure_skips_variant(self) -> None:
        self.converter.convert.side_effect = [
            ConversionError("no rate"),
            4.5,
            14.0,
        ]
        engine, _ = self._engine(
            {
                ISLAND: ReferencePrice(ISLAND, normal=1.5, foil=4.5),
                BOLT: ReferencePrice(BOLT, normal=14.0),
            }
        )

        report = await engine.reconcile(self.catalog)

        self.assertEqual(report.outcomes[0].status, CONVERSION_FAILED)
        self.assertEqual(report.outcomes[1].status, UPDATED)
        self.assertEqual(self.writer.update_variant_price.call_count, 2)

    async def test_converts_into_target_currency(self) -> None:
        products = load_products()
        products[1]["variants"][0]["pricing"]["basePrice"]["currency"] = "EUR"
        catalog = [CatalogEntry.from_api(p) for p in products]
        engine, _ = self._engine(
            {BOLT: ReferencePrice(BOLT, normal=10.0, currency="USD")},
            target_currency="EUR",
        )
        await engine.reconcile(catalog[1:2])
        self.converter.convert.assert_called_once_with(10.0, "USD", "EUR")

    async def test_dry_run_never_writes(self) -> None:
        engine, _ = self._engine(
            {
                ISLAND: ReferencePrice(ISLAND, normal=1.5, foil=5.0),
                BOLT: ReferencePrice(BOLT, normal=14.0),
            },
            dry_run=True,
        )

        report = await engine.reconcile(self.catalog)

        self.writer.update_variant_price.assert_not_called()
        self.assertEqual(report.count(DRY_RUN), 3)

    async def test_variant_without_listed_price(self) -> None:
        products = load_products()
        del products[1]["variants"][0]["pricing"]
        catalog = [CatalogEntry.from_api(p) for p in products]
        engine, _ = self._engine({BOLT: ReferencePrice(BOLT, normal=14.0)})

        report = await engine.reconcile(catalog[1:2])

        self.assertEqual(report.outcomes[0].status, NO_LISTED_PRICE)
        self.writer.update_variant_price.assert_not_called()

    async def test_listing_in_other_currency_is_skipped(self) -> None:
        """A USD listing is never overwritten with a CAD amount."""
        products = load_products()
        products[1]["variants"][0]["pricing"]["basePrice"] = {
            "currency": "USD",
            "value": "10.00",
        }
        catalog = [CatalogEntry.from_api(p) for p in products]
        self.converter.convert.side_effect = (
            lambda amount, from_cur, to_cur: round(amount * 1.37, 2)
        )
        engine, _ = self._engine({BOLT: ReferencePrice(BOLT, normal=10.0)})

        report = await engine.reconcile(catalog[1:2])

        outcome = report.outcomes[0]
        self.assertEqual(outcome.status, CURRENCY_MISMATCH)
        self.assertIn("USD", outcome.message)
        self.assertIsNone(outcome.decision)
        self.converter.convert.assert_not_called()
        self.writer.update_variant_price.assert_not_called()
        self.assertEqual(report.writes_attempted, 0)

    async def test_product_without_variants_not_looked_up(self) -> None:
        engine, source = self._engine({})
        report = await engine.reconcile(self.catalog[2:])
        self.assertEqual(report.outcomes[0].status, NO_VARIANT)
        self.assertEqual(source.looked_up, [])

    async def test_progress_callback_in_catalog_order(self) -> None:
        seen: list[tuple[int, int, str]] = []
        engine, _ = self._engine({})
        engine.on_progress = lambda i, n, e: seen.append((i, n, e.id))

        await engine.reconcile(self.catalog)

        self.assertEqual(
            seen,
            [
                (1, 3, "prod-island"),
                (2, 3, "prod-bolt"),
                (3, 3, "prod-empty"),
            ],
        )

    async def test_empty_catalog(self) -> None:
        engine, _ = self._engine({})
        report = await engine.reconcile([])
        self.assertEqual(report.outcomes, [])
        self.assertEqual(report.products_processed, 0)


if __name__ == "__main__":
    unittest.main()
