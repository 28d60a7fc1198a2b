# tcg_repricer/config/settings.py

"""Central configuration for the tcg_repricer pipeline."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from tcg_repricer.services.errors import MissingCredentialError

load_dotenv()


class Settings:
    """Central configuration for the tcg_repricer pipeline."""

    # --- Commerce platform ---
    API_URL: str = "https://api.squarespace.com/1.0"
    API_KEY_ENV: str = "SQUARESPACE_API_KEY"
    USER_AGENT: str = "tcg-repricer/1.0"
    REQUEST_TIMEOUT: int = 30           # Seconds before a request times out

    # --- Reference prices ---
    SEARCH_URL: str = (
        "https://www.tcgplayer.com/search/all/product?q={query}"
    )
    BASE_URL: str = "https://www.tcgplayer.com"
    BROWSER_TIMEOUT_MS: int = 30_000    # Per-wait Playwright timeout
    BROWSER_ARGS: list[str] = ["--no-sandbox"]

    # --- Currency ---
    SOURCE_CURRENCY: str = "USD"
    TARGET_CURRENCY: str = "CAD"
    FX_URL: str = "https://api.frankfurter.dev/v1/latest"

    # Variant "Condition" attribute -> reference price key
    CONDITION_PRICE_KEYS: dict[str, str] = {
        "near mint": "normal",
        "near mint foil": "foil",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = (
        BASE_DIR / "tcg_repricer" / "config" / "selectors.json"
    )
    BACKUP_DIR: Path = BASE_DIR / "backups"
    LOGS_DIR: Path = BASE_DIR / "logs"


@dataclass(frozen=True)
class RunConfig:
    """Per-run configuration, loaded once at startup and read-only after."""

    api_key: str
    api_url: str = Settings.API_URL
    target_currency: str = Settings.TARGET_CURRENCY
    source_currency: str = Settings.SOURCE_CURRENCY
    backup_dir: Path = Settings.BACKUP_DIR
    dry_run: bool = False


def load_run_config(
    target_currency: str | None = None,
    backup_dir: str | None = None,
    dry_run: bool = False,
) -> RunConfig:
    """Build the run configuration from the environment and CLI overrides.

    Raises ``MissingCredentialError`` when the API token is not set.
    """
    api_key = os.getenv(Settings.API_KEY_ENV, "").strip()
    if not api_key:
        raise MissingCredentialError(
            f"Missing required environment variable {Settings.API_KEY_ENV}"
        )

    currency = (
        target_currency
        or os.getenv("TARGET_CURRENCY")
        or Settings.TARGET_CURRENCY
    )
    return RunConfig(
        api_key=api_key,
        api_url=os.getenv("SQUARESPACE_API_URL", Settings.API_URL).rstrip("/"),
        target_currency=currency.upper(),
        backup_dir=(
            Path(backup_dir) if backup_dir else Settings.BACKUP_DIR
        ),
        dry_run=dry_run,
    )
