# tcg_repricer/services/catalog_writer.py

"""Write side of the Squarespace Commerce products API."""

import logging
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from tcg_repricer.config.settings import RunConfig, Settings
from tcg_repricer.services.catalog_client import (
    PRODUCTS_PATH,
    platform_headers,
)

logger = logging.getLogger("tcg_repricer.catalog")


@dataclass
class WriteResult:
    """Outcome of a single price update request."""

    ok: bool
    status_code: int | None = None
    body: str = ""


def format_amount(amount: float) -> str:
    """Two-decimal string the platform expects, e.g. 12.5 -> '12.50'."""
    return f"{amount:.2f}"


class CatalogWriter:
    """Applies price updates to individual product variants.

    Failed writes are returned, not raised: one rejected update must
    not stop the rest of the run.
    """

    def __init__(
        self,
        config: RunConfig,
        session: curl_requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or curl_requests.Session()
        self.base_url = config.api_url + PRODUCTS_PATH

    def _base_price(self, new_amount: float) -> dict[str, Any]:
        return {
            "basePrice": {
                "currency": self.config.target_currency,
                "value": format_amount(new_amount),
            }
        }

    def update_variant_price(
        self,
        product_id: str,
        variant_id: str,
        new_amount: float,
        flat: bool = False,
    ) -> WriteResult:
        """Set the base price of one variant.

        The condition-tagged schema updates the variant endpoint
        directly; the *flat* single-variant schema updates the product.
        """
        headers = {
            **platform_headers(self.config),
            "Content-Type": "application/json",
        }
        try:
            if flat:
                resp = self.session.put(
                    f"{self.base_url}/{product_id}",
                    headers=headers,
                    json={
                        "variants": [
                            {
                                "id": variant_id,
                                "pricing": self._base_price(new_amount),
                            }
                        ]
                    },
                    timeout=Settings.REQUEST_TIMEOUT,
                )
            else:
                resp = self.session.post(
                    f"{self.base_url}/{product_id}/variants/{variant_id}",
                    headers=headers,
                    json={"pricing": self._base_price(new_amount)},
                    timeout=Settings.REQUEST_TIMEOUT,
                )
        except Exception as exc:
            logger.error(
                "Price update request failed for %s/%s: %s",
                product_id,
                variant_id,
                exc,
                exc_info=True,
            )
            return WriteResult(ok=False, body=str(exc))

        if 200 <= resp.status_code < 300:
            logger.info(
                "Updated %s/%s to %s %s",
                product_id,
                variant_id,
                format_amount(new_amount),
                self.config.target_currency,
            )
            return WriteResult(ok=True, status_code=resp.status_code)

        logger.error(
            "Price update rejected for %s/%s: HTTP %d %s",
            product_id,
            variant_id,
            resp.status_code,
            resp.text,
        )
        return WriteResult(
            ok=False, status_code=resp.status_code, body=resp.text
        )
