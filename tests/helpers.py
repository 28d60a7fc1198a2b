# tests/helpers.py

"""Builders shared by the test modules."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

from tcg_repricer.config.settings import RunConfig
from tcg_repricer.models.catalog import CatalogEntry

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture_text(name: str) -> str:
    """Return the text of a fixture file."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def load_products() -> list[dict[str, Any]]:
    """Return the raw product dicts of the catalog fixture."""
    data: list[dict[str, Any]] = json.loads(
        load_fixture_text("squarespace_products.json")
    )
    return data


def load_catalog() -> list[CatalogEntry]:
    """Return the catalog fixture as CatalogEntry objects."""
    return [CatalogEntry.from_api(p) for p in load_products()]


def make_config(**overrides: Any) -> RunConfig:
    """RunConfig with a dummy key and a local API URL."""
    values: dict[str, Any] = {
        "api_key": "test-key",
        "api_url": "https://api.example.test/1.0",
        "target_currency": "CAD",
    }
    values.update(overrides)
    return RunConfig(**values)


def make_response(
    status_code: int = 200,
    payload: Any = None,
    text: str | None = None,
) -> MagicMock:
    """Mock curl_cffi response with .status_code, .json() and .text."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.text = text if text is not None else json.dumps(payload)
    return resp
