# tcg_repricer/services/currency_converter.py

"""Currency conversion backed by the Frankfurter exchange-rate API."""

import logging
from typing import Any

from curl_cffi import requests as curl_requests

from tcg_repricer.config.settings import Settings
from tcg_repricer.services.errors import ConversionError

logger = logging.getLogger("tcg_repricer.currency")


class CurrencyConverter:
    """Converts reference prices into the listing currency.

    Rates are fetched live once per currency pair and cached for the
    lifetime of the converter, i.e. for one run.
    """

    def __init__(
        self,
        session: curl_requests.Session | None = None,
        fx_url: str = Settings.FX_URL,
    ) -> None:
        self.session = session or curl_requests.Session()
        self.fx_url = fx_url
        self._rates: dict[tuple[str, str], float] = {}

    def get_rate(self, from_currency: str, to_currency: str) -> float:
        """Return units of *to_currency* per one *from_currency*."""
        pair = (from_currency.upper(), to_currency.upper())
        if pair[0] == pair[1]:
            return 1.0
        if pair in self._rates:
            return self._rates[pair]

        try:
            resp = self.session.get(
                self.fx_url,
                params={"base": pair[0], "symbols": pair[1]},
                timeout=Settings.REQUEST_TIMEOUT,
            )
        except Exception as exc:
            raise ConversionError(
                f"Exchange rate request failed for {pair[0]}->{pair[1]}: {exc}"
            ) from exc

        if resp.status_code != 200:
            raise ConversionError(
                f"HTTP {resp.status_code} fetching {pair[0]}->{pair[1]} rate"
            )

        try:
            data: dict[str, Any] = resp.json()
        except ValueError as exc:
            raise ConversionError(
                f"Exchange rate response is not JSON: {exc}"
            ) from exc

        rate = (data.get("rates") or {}).get(pair[1])
        if not isinstance(rate, (int, float)) or rate <= 0:
            raise ConversionError(f"Unexpected FX response: {data}")

        self._rates[pair] = float(rate)
        logger.info("Exchange rate %s->%s = %s", pair[0], pair[1], rate)
        return float(rate)

    def convert(
        self, amount: float, from_currency: str, to_currency: str,
    ) -> float:
        """Convert *amount* and round it to cents."""
        rate = self.get_rate(from_currency, to_currency)
        return round(amount * rate, 2)
