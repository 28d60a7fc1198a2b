# main.py

"""Entry point for the tcg_repricer price synchronisation run."""

import argparse
import asyncio
import logging
import sys

from tcg_repricer.config.logging_config import setup_logging
from tcg_repricer.config.settings import Settings

logger = logging.getLogger("tcg_repricer.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="tcg_repricer",
        description=(
            "Sync Squarespace listing prices with TCGplayer market prices."
        ),
        epilog=f"Requires {Settings.API_KEY_ENV} in the environment or .env.",
    )
    parser.add_argument(
        "-c",
        "--currency",
        default=None,
        dest="target_currency",
        help=(
            "Listing currency to convert into "
            f"(default: $TARGET_CURRENCY or {Settings.TARGET_CURRENCY})."
        ),
    )
    parser.add_argument(
        "-b",
        "--backup-dir",
        default=None,
        dest="backup_dir",
        help="Directory for the catalog backup (default: backups/).",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Compute price changes without writing them.",
    )
    return parser


def main() -> None:
    """Parse arguments, run one reconciliation pass and exit."""
    log_file = setup_logging()
    logger.info("tcg_repricer starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    from tcg_repricer.cli.runner import cli_reconcile

    exit_code = asyncio.run(
        cli_reconcile(
            target_currency=args.target_currency,
            backup_dir=args.backup_dir,
            dry_run=args.dry_run,
        )
    )
    logger.info("tcg_repricer finished with exit code %d", exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
