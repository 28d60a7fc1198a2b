# tcg_repricer/cli/runner.py

"""Headless repricing run: fetch, back up, reconcile, summarise."""

import asyncio
import logging
from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tcg_repricer.config.settings import RunConfig, load_run_config
from tcg_repricer.models.catalog import CatalogEntry
from tcg_repricer.scrapers.base_scraper import BasePriceSource
from tcg_repricer.scrapers.tcgplayer_scraper import TCGPlayerPriceSource
from tcg_repricer.services.catalog_client import CatalogClient
from tcg_repricer.services.catalog_writer import CatalogWriter
from tcg_repricer.services.currency_converter import CurrencyConverter
from tcg_repricer.services.errors import RepricerError
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
    ReconcileReport,
    ReconciliationEngine,
)
from tcg_repricer.storage.backup_sink import BackupSink

logger = logging.getLogger("tcg_repricer.cli")

# Stderr console for progress so stdout stays clean for the summary
_err = Console(stderr=True)

_STATUS_STYLES: dict[str, str] = {
    UPDATED: "green",
    DRY_RUN: "cyan",
    UNCHANGED: "dim",
    WRITE_FAILED: "red",
    CONVERSION_FAILED: "yellow",
    NO_PRICE: "yellow",
    NO_LISTED_PRICE: "yellow",
    CURRENCY_MISMATCH: "yellow",
    NO_VARIANT: "dim",
}


def _print_progress(index: int, total: int, entry: CatalogEntry) -> None:
    _err.print(f"[bold]({index}/{total})[/bold] {escape(entry.name)}")


def _print_summary(report: ReconcileReport, currency: str) -> None:
    """Render a Rich table of every variant decision to stdout."""
    table = Table(
        title="Price Reconciliation",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Product", max_width=50)
    table.add_column("Condition")
    table.add_column("Old", justify="right")
    table.add_column("New", justify="right", style="green")
    table.add_column("Status", justify="center")
    table.add_column("Notes", overflow="fold", style="dim")

    for idx, outcome in enumerate(report.outcomes, 1):
        decision = outcome.decision
        old = f"{currency} {decision.old_amount:,.2f}" if decision else "—"
        new = f"{currency} {decision.new_amount:,.2f}" if decision else "—"
        style = _STATUS_STYLES.get(outcome.status, "white")
        table.add_row(
            str(idx),
            escape(outcome.product_name[:50]),
            escape(outcome.condition or "—"),
            old,
            new,
            f"[{style}]{outcome.status}[/{style}]",
            escape(outcome.message[:120]),
        )

    Console().print(table)


def _summary_counts(report: ReconcileReport) -> str:
    """One-line tally of outcome statuses; zero-count skips are omitted."""
    parts: list[str] = [f"{report.count(UPDATED)} updated"]
    if report.count(DRY_RUN):
        parts.append(f"{report.count(DRY_RUN)} would change")
    parts.append(f"{report.count(UNCHANGED)} unchanged")
    skipped = report.count(NO_PRICE) + report.count(CONVERSION_FAILED)
    if skipped:
        parts.append(f"{skipped} without price")
    for status, label in (
        (NO_LISTED_PRICE, "without listed price"),
        (CURRENCY_MISMATCH, "in another currency"),
        (NO_VARIANT, "without variants"),
        (WRITE_FAILED, "failed writes"),
    ):
        if report.count(status):
            parts.append(f"{report.count(status)} {label}")
    return ", ".join(parts)


async def run_reconciliation(
    config: RunConfig,
    client: CatalogClient | None = None,
    price_source: BasePriceSource | None = None,
    converter: CurrencyConverter | None = None,
    writer: CatalogWriter | None = None,
    backup: BackupSink | None = None,
) -> ReconcileReport:
    """Fetch the catalog, back it up, then reconcile every product.

    Catalog and backup failures propagate; nothing is written to the
    platform unless the backup succeeded.
    """
    client = client or CatalogClient(config)
    backup = backup or BackupSink(
        config.backup_dir, datetime.now(timezone.utc)
    )

    catalog = await asyncio.to_thread(client.get_products)
    _err.print(f"[bold]Fetched {len(catalog)} products[/bold]")

    backup_path = backup.save(catalog)
    _err.print(f"[dim]Backup → {escape(str(backup_path))}[/dim]")

    engine = ReconciliationEngine(
        price_source=price_source or TCGPlayerPriceSource(),
        converter=converter or CurrencyConverter(),
        writer=writer or CatalogWriter(config),
        config=config,
        on_progress=_print_progress,
    )
    return await engine.reconcile(catalog)


async def cli_reconcile(
    target_currency: str | None,
    backup_dir: str | None,
    dry_run: bool,
) -> int:
    """Run one repricing pass and return an exit code (0=ok, 1=fatal)."""
    try:
        config = load_run_config(
            target_currency=target_currency,
            backup_dir=backup_dir,
            dry_run=dry_run,
        )
        if config.dry_run:
            _err.print("[cyan]Dry run: no prices will be written[/cyan]")
        report = await run_reconciliation(config)
    except RepricerError as exc:
        logger.critical("Run aborted: %s", exc, exc_info=True)
        _err.print(f"[red]❌ {escape(str(exc))}[/red]")
        return 1
    except Exception as exc:
        logger.critical("Unexpected error during run", exc_info=True)
        _err.print(f"[red]❌ Unexpected error: {escape(str(exc))}[/red]")
        return 1

    _print_summary(report, config.target_currency)
    _err.print(
        f"[green]✓ {report.products_processed} products processed"
        f" ({_summary_counts(report)})[/green]"
    )
    return 0
