# tcg_repricer/services/catalog_client.py

"""Read side of the Squarespace Commerce products API."""

import logging
from typing import Any

from curl_cffi import requests as curl_requests

from tcg_repricer.config.settings import RunConfig, Settings
from tcg_repricer.models.catalog import CatalogEntry
from tcg_repricer.services.errors import AuthError, NetworkError

logger = logging.getLogger("tcg_repricer.catalog")

PRODUCTS_PATH = "/commerce/products"


def platform_headers(config: RunConfig) -> dict[str, str]:
    """Bearer-authenticated headers for every platform request."""
    return {
        "Authorization": f"Bearer {config.api_key}",
        "User-Agent": Settings.USER_AGENT,
        "Accept": "application/json",
    }


def raise_for_platform_status(resp: curl_requests.Response) -> None:
    """Map a non-2xx platform response onto AuthError / NetworkError."""
    if 200 <= resp.status_code < 300:
        return
    if resp.status_code in (401, 403):
        raise AuthError(
            f"Platform rejected the API key (HTTP {resp.status_code})",
            status_code=resp.status_code,
        )
    raise NetworkError(
        f"HTTP {resp.status_code} from platform: {resp.text[:500]}",
        status_code=resp.status_code,
    )


class CatalogClient:
    """Retrieves the merchant's full product catalog."""

    def __init__(
        self,
        config: RunConfig,
        session: curl_requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or curl_requests.Session()
        self.url = config.api_url + PRODUCTS_PATH

    def _fetch_page(self, cursor: str | None) -> dict[str, Any]:
        """GET one page of products; *cursor* None means the first page."""
        params: dict[str, str] = {}
        if cursor:
            params["cursor"] = cursor
        try:
            resp = self.session.get(
                self.url,
                headers=platform_headers(self.config),
                params=params,
                timeout=Settings.REQUEST_TIMEOUT,
            )
        except Exception as exc:
            raise NetworkError(
                f"Products request failed: {exc}"
            ) from exc

        raise_for_platform_status(resp)
        try:
            data: dict[str, Any] = resp.json()
        except ValueError as exc:
            raise NetworkError(
                f"Products response is not JSON: {exc}"
            ) from exc
        return data

    def get_products(self) -> list[CatalogEntry]:
        """Fetch every page and return the entries in response order.

        Follows ``pagination.nextPageCursor`` until the platform stops
        returning one; there is no page limit.
        """
        entries: list[CatalogEntry] = []
        cursor: str | None = None
        page = 0

        while True:
            page += 1
            data = self._fetch_page(cursor)
            batch: list[dict[str, Any]] = data.get("products") or []
            entries.extend(CatalogEntry.from_api(p) for p in batch)
            logger.info(
                "Fetched catalog page %d (%d products, %d so far)",
                page,
                len(batch),
                len(entries),
            )

            pagination: dict[str, Any] = data.get("pagination") or {}
            cursor = pagination.get("nextPageCursor") or None
            if cursor is None or pagination.get("hasNextPage") is False:
                break

        return entries
