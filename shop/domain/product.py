"""
Domain model for shop products.
"""
from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from shop.domain.pricing import to_money


def discounted_price(price: Decimal, original_price: Decimal, discount: Decimal) -> Decimal:
    """Sale price: originalPrice * (1 - discount/100) when both are set."""
    if original_price > 0 and discount > 0:
        return to_money(original_price * (1 - discount / Decimal(100)))
    return price


class Product:
    """Product entity as seen by the order flow."""

    def __init__(
        self,
        id: UUID | None = None,
        name: str = "",
        price: Decimal = Decimal("0.00"),
        count_in_stock: int = 0,
        is_active: bool = True,
        image: str = "",
        original_price: Decimal = Decimal("0.00"),
        discount: Decimal = Decimal("0"),
    ):
        if price < 0:
            raise ValueError("Price must be non-negative")
        if count_in_stock < 0:
            raise ValueError("Stock cannot be negative")
        if not 0 <= discount <= 100:
            raise ValueError("Discount must be between 0 and 100")

        self.id = id or uuid4()
        self.name = name
        self.original_price = original_price
        self.discount = discount
        self.price = discounted_price(price, original_price, discount)
        self.count_in_stock = count_in_stock
        self.is_active = is_active
        self.image = image

    @property
    def in_stock(self) -> bool:
        return self.count_in_stock > 0

    def can_fulfil(self, quantity: int) -> bool:
        return self.is_active and self.count_in_stock >= quantity
