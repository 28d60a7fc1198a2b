# tcg_repricer/models/reference_price.py

"""Reference price and per-variant decision models."""

from dataclasses import dataclass


@dataclass
class ReferencePrice:
    """Market prices scraped for one matched product title."""

    matched_title: str
    normal: float | None = None
    foil: float | None = None
    currency: str = "USD"
    url: str = ""

    @property
    def is_empty(self) -> bool:
        """True when neither the normal nor the foil price parsed."""
        return self.normal is None and self.foil is None

    def amount_for(self, price_key: str) -> float | None:
        """Return the amount for ``"normal"`` or ``"foil"``."""
        if price_key == "foil":
            return self.foil
        return self.normal


@dataclass(frozen=True)
class PriceDecision:
    """Whether a variant's listed price should change this run."""

    product_id: str
    product_name: str
    variant_id: str
    condition: str | None
    old_amount: float
    new_amount: float

    @property
    def should_update(self) -> bool:
        """Exact comparison; no tolerance."""
        return self.old_amount != self.new_amount
