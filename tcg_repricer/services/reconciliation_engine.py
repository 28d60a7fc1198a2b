# tcg_repricer/services/reconciliation_engine.py

"""Orchestrates price reconciliation across the whole catalog."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from tcg_repricer.config.settings import RunConfig, Settings
from tcg_repricer.models.catalog import CatalogEntry, Variant
from tcg_repricer.models.reference_price import PriceDecision, ReferencePrice
from tcg_repricer.scrapers.base_scraper import BasePriceSource
from tcg_repricer.services.catalog_writer import CatalogWriter
from tcg_repricer.services.currency_converter import CurrencyConverter
from tcg_repricer.services.errors import ConversionError

logger = logging.getLogger("tcg_repricer.reconcile")

UPDATED = "updated"
UNCHANGED = "unchanged"
DRY_RUN = "dry_run"
NO_PRICE = "no_price"
NO_VARIANT = "no_variant"
NO_LISTED_PRICE = "no_listed_price"
CURRENCY_MISMATCH = "currency_mismatch"
CONVERSION_FAILED = "conversion_failed"
WRITE_FAILED = "write_failed"


@dataclass
class ReconcileOutcome:
    """What happened to one product, or one variant of it, this run."""

    product_id: str
    product_name: str
    status: str
    variant_id: str = ""
    condition: str | None = None
    decision: PriceDecision | None = None
    message: str = ""


@dataclass
class ReconcileReport:
    """Container for a completed reconciliation run."""

    outcomes: list[ReconcileOutcome] = field(
        default_factory=lambda: list[ReconcileOutcome]()
    )
    products_processed: int = 0

    def count(self, status: str) -> int:
        """Number of outcomes with the given status."""
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def writes_attempted(self) -> int:
        """Number of variants a write request was sent for, successful or not."""
        return self.count(UPDATED) + self.count(WRITE_FAILED)


ProgressCallback = Callable[[int, int, CatalogEntry], None]


class ReconciliationEngine:
    """Compares listed prices with reference prices and updates them.

    Products are handled strictly in catalog order, one at a time.
    Lookup, conversion and write failures only affect the product or
    variant they happen on.
    """

    def __init__(
        self,
        price_source: BasePriceSource,
        converter: CurrencyConverter,
        writer: CatalogWriter,
        config: RunConfig,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.price_source = price_source
        self.converter = converter
        self.writer = writer
        self.config = config
        self.on_progress = on_progress
        self._written: set[tuple[str, str]] = set()

    # ── Private helpers ──────────────────────────────────

    @staticmethod
    def tracked_variants(
        entry: CatalogEntry,
    ) -> list[tuple[Variant, str]]:
        """Return ``(variant, price_key)`` pairs to reconcile.

        Condition-tagged catalogs track every variant whose condition
        is listed in ``Settings.CONDITION_PRICE_KEYS``; flat catalogs
        track the single default variant against the normal price.
        """
        if not entry.variants:
            return []
        if not entry.has_condition_variants:
            return [(entry.variants[0], "normal")]

        tracked: list[tuple[Variant, str]] = []
        for variant in entry.variants:
            key = Settings.CONDITION_PRICE_KEYS.get(
                (variant.condition or "").strip().lower()
            )
            if key is None:
                logger.debug(
                    "Untracked condition '%s' on %s/%s",
                    variant.condition,
                    entry.id,
                    variant.id,
                )
                continue
            tracked.append((variant, key))
        return tracked

    async def _reconcile_variant(
        self,
        entry: CatalogEntry,
        variant: Variant,
        price_key: str,
        reference: ReferencePrice,
    ) -> ReconcileOutcome:
        outcome = ReconcileOutcome(
            product_id=entry.id,
            product_name=entry.name,
            status=NO_PRICE,
            variant_id=variant.id,
            condition=variant.condition,
        )

        if variant.price is None:
            outcome.status = NO_LISTED_PRICE
            logger.warning(
                "Variant %s of '%s' has no listed price",
                variant.id,
                entry.name,
            )
            return outcome

        listed_currency = variant.price.currency.upper()
        if listed_currency != self.config.target_currency.upper():
            outcome.status = CURRENCY_MISMATCH
            outcome.message = (
                f"listed in {listed_currency}, "
                f"target is {self.config.target_currency}"
            )
            logger.warning(
                "Variant %s of '%s' is listed in %s, not %s; skipping",
                variant.id,
                entry.name,
                listed_currency,
                self.config.target_currency,
            )
            return outcome

        amount = reference.amount_for(price_key)
        if amount is None:
            logger.warning(
                "No %s price found for '%s'", price_key, entry.name
            )
            return outcome

        try:
            new_amount = await asyncio.to_thread(
                self.converter.convert,
                amount,
                reference.currency,
                self.config.target_currency,
            )
        except ConversionError as exc:
            outcome.status = CONVERSION_FAILED
            outcome.message = str(exc)
            logger.warning(
                "Conversion failed for '%s': %s", entry.name, exc
            )
            return outcome

        decision = PriceDecision(
            product_id=entry.id,
            product_name=entry.name,
            variant_id=variant.id,
            condition=variant.condition,
            old_amount=variant.price.amount,
            new_amount=new_amount,
        )
        outcome.decision = decision

        if not decision.should_update:
            outcome.status = UNCHANGED
            logger.info(
                "'%s' %s unchanged at %.2f",
                entry.name,
                price_key,
                decision.old_amount,
            )
            return outcome

        if self.config.dry_run:
            outcome.status = DRY_RUN
            logger.info(
                "[dry-run] '%s' %s would change %.2f -> %.2f",
                entry.name,
                price_key,
                decision.old_amount,
                decision.new_amount,
            )
            return outcome

        written_key = (entry.id, variant.id)
        if written_key in self._written:
            outcome.status = UNCHANGED
            outcome.message = "already written this run"
            return outcome

        result = await asyncio.to_thread(
            self.writer.update_variant_price,
            entry.id,
            variant.id,
            new_amount,
            not entry.has_condition_variants,
        )
        self._written.add(written_key)
        if result.ok:
            outcome.status = UPDATED
        else:
            outcome.status = WRITE_FAILED
            outcome.message = (
                f"HTTP {result.status_code}: {result.body}"
                if result.status_code is not None
                else result.body
            )
        return outcome

    # ── Public entry points ──────────────────────────────

    async def reconcile_entry(
        self, entry: CatalogEntry,
    ) -> list[ReconcileOutcome]:
        """Reconcile all tracked variants of one catalog entry."""
        targets = self.tracked_variants(entry)
        if not targets:
            logger.warning("Product '%s' has no variants to update", entry.name)
            return [
                ReconcileOutcome(
                    product_id=entry.id,
                    product_name=entry.name,
                    status=NO_VARIANT,
                )
            ]

        reference = await self.price_source.lookup(entry.name)
        if reference is None or reference.is_empty:
            logger.warning("Failed to find a price for '%s'", entry.name)
            return [
                ReconcileOutcome(
                    product_id=entry.id,
                    product_name=entry.name,
                    status=NO_PRICE,
                )
            ]

        outcomes: list[ReconcileOutcome] = []
        for variant, price_key in targets:
            outcomes.append(
                await self._reconcile_variant(
                    entry, variant, price_key, reference
                )
            )
        return outcomes

    async def reconcile(
        self, catalog: list[CatalogEntry],
    ) -> ReconcileReport:
        """Reconcile every catalog entry, in retrieval order."""
        report = ReconcileReport()
        total = len(catalog)
        for index, entry in enumerate(catalog, 1):
            if self.on_progress is not None:
                self.on_progress(index, total, entry)
            logger.info("(%d/%d) %s", index, total, entry.name)
            report.outcomes.extend(await self.reconcile_entry(entry))
            report.products_processed += 1

        logger.info(
            "Reconciliation finished: %d products, %d updated, "
            "%d unchanged, %d failed writes",
            report.products_processed,
            report.count(UPDATED),
            report.count(UNCHANGED),
            report.count(WRITE_FAILED),
        )
        return report
