# tcg_repricer/models/catalog.py

"""Catalog data model mirroring the commerce platform's product JSON."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Money:
    """A price amount parsed from the platform's decimal string."""

    amount: float
    currency: str

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "Money | None":
        """Parse ``{"currency": "CAD", "value": "12.50"}``; None if absent."""
        if not data or data.get("value") in (None, ""):
            return None
        try:
            amount = float(str(data["value"]))
        except ValueError:
            return None
        return cls(amount=amount, currency=str(data.get("currency", "")))


@dataclass
class Variant:
    """A sellable unit of a product, optionally tagged with a condition."""

    id: str
    price: Money | None = None
    condition: str | None = None
    sku: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Variant":
        """Build a Variant from one entry of a product's ``variants`` list."""
        pricing: dict[str, Any] = data.get("pricing") or {}
        attributes: dict[str, Any] = data.get("attributes") or {}
        condition = attributes.get("Condition")
        return cls(
            id=str(data.get("id", "")),
            price=Money.from_api(pricing.get("basePrice")),
            condition=str(condition) if condition else None,
            sku=str(data.get("sku", "") or ""),
        )


@dataclass
class CatalogEntry:
    """A product of the merchant's catalog with its variants."""

    id: str
    name: str
    variants: list[Variant] = field(
        default_factory=lambda: list[Variant]()
    )
    raw: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any](), repr=False
    )

    @property
    def has_condition_variants(self) -> bool:
        """True when the richer, condition-tagged schema is in use."""
        return any(v.condition for v in self.variants)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CatalogEntry":
        """Build a CatalogEntry from one item of the ``products`` list."""
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "") or ""),
            variants=[
                Variant.from_api(v) for v in data.get("variants") or []
            ],
            raw=data,
        )
