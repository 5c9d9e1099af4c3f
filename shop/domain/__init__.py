from shop.domain.order import Order, OrderLineItem, OrderStatus, PaymentMethod
from shop.domain.pricing import OrderTotals, PricingCalculator, PricingConfig
from shop.domain.product import Product

__all__ = [
    "Order",
    "OrderLineItem",
    "OrderStatus",
    "PaymentMethod",
    "OrderTotals",
    "PricingCalculator",
    "PricingConfig",
    "Product",
]
