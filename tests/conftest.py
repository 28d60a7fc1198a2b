# tests/conftest.py

"""Shared pytest fixtures for all repricer tests."""

from collections.abc import Generator

import pytest

_ENV_VARS = (
    "SQUARESPACE_API_KEY",
    "SQUARESPACE_API_URL",
    "TARGET_CURRENCY",
)


@pytest.fixture(autouse=True)
def clean_env(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Drop credentials a local .env may have loaded into os.environ."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
