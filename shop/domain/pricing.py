"""
Order pricing: subtotal, tax, shipping and total.

All amounts are ``Decimal``. Subtotal is accumulated exactly, tax is rounded
to cents once, and the total is the sum of the three cent amounts, so
``total_price == subtotal + tax_price + shipping_price`` always holds.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol

from shop.domain.errors import ValidationError

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class PricedItem(Protocol):
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class PricingConfig:
    """Pricing constants. Built once from settings and passed in explicitly."""

    tax_rate: Decimal = Decimal("0.10")
    free_shipping_threshold: Decimal = Decimal("100.00")
    flat_shipping_fee: Decimal = Decimal("10.00")

    def __post_init__(self):
        if self.tax_rate < 0:
            raise ValueError("Tax rate must be non-negative")
        if self.flat_shipping_fee < 0:
            raise ValueError("Shipping fee must be non-negative")

    @classmethod
    def from_settings(cls) -> "PricingConfig":
        from django.conf import settings

        conf = getattr(settings, "SHOP_PRICING", {})
        defaults = cls()
        return cls(
            tax_rate=Decimal(str(conf.get("TAX_RATE", defaults.tax_rate))),
            free_shipping_threshold=Decimal(
                str(conf.get("FREE_SHIPPING_THRESHOLD", defaults.free_shipping_threshold))
            ),
            flat_shipping_fee=Decimal(str(conf.get("FLAT_SHIPPING_FEE", defaults.flat_shipping_fee))),
        )


@dataclass(frozen=True)
class OrderTotals:
    """Computed monetary fields of an order."""

    subtotal: Decimal
    tax_price: Decimal
    shipping_price: Decimal
    total_price: Decimal

    @classmethod
    def zero(cls) -> "OrderTotals":
        zero = Decimal("0.00")
        return cls(zero, zero, zero, zero)


class PricingCalculator:
    """Pure calculator for order totals."""

    def __init__(self, config: PricingConfig | None = None):
        self.config = config or PricingConfig()

    def calculate(self, items: Iterable[PricedItem]) -> OrderTotals:
        subtotal = Decimal("0")
        for item in items:
            if item.quantity < 1:
                raise ValidationError("Quantity must be at least 1")
            if item.unit_price < 0:
                raise ValidationError("Unit price must be non-negative")
            subtotal += Decimal(item.unit_price) * item.quantity

        tax_price = to_money(subtotal * self.config.tax_rate)
        if subtotal > self.config.free_shipping_threshold:
            shipping_price = Decimal("0.00")
        else:
            shipping_price = to_money(self.config.flat_shipping_fee)
        subtotal = to_money(subtotal)

        return OrderTotals(
            subtotal=subtotal,
            tax_price=tax_price,
            shipping_price=shipping_price,
            total_price=to_money(subtotal + tax_price + shipping_price),
        )
