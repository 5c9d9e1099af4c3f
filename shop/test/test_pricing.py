"""
Unit tests for the pricing calculator.
"""
from decimal import Decimal
from uuid import uuid4

from django.test import SimpleTestCase, override_settings

from shop.domain.errors import ValidationError
from shop.domain.order import OrderLineItem
from shop.domain.pricing import OrderTotals, PricingCalculator, PricingConfig


class Line:
    """Minimal priced line, bypassing OrderLineItem's own checks."""

    def __init__(self, unit_price, quantity):
        self.unit_price = Decimal(unit_price)
        self.quantity = quantity


class PricingCalculatorTest(SimpleTestCase):

    def setUp(self):
        self.calculator = PricingCalculator(PricingConfig())

    def test_totals_below_threshold_pay_shipping(self):
        """Subtotal 60 pays tax and the flat fee."""
        totals = self.calculator.calculate([
            OrderLineItem(product_id=uuid4(), quantity=3, unit_price=Decimal("20.00")),
        ])
        self.assertEqual(totals.subtotal, Decimal("60.00"))
        self.assertEqual(totals.tax_price, Decimal("6.00"))
        self.assertEqual(totals.shipping_price, Decimal("10.00"))
        self.assertEqual(totals.total_price, Decimal("76.00"))

    def test_threshold_boundary_is_not_free(self):
        """Exactly the threshold still pays shipping."""
        totals = self.calculator.calculate([Line("50.00", 2)])
        self.assertEqual(totals.subtotal, Decimal("100.00"))
        self.assertEqual(totals.shipping_price, Decimal("10.00"))

    def test_above_threshold_ships_free(self):
        totals = self.calculator.calculate([Line("100.01", 1)])
        self.assertEqual(totals.shipping_price, Decimal("0.00"))
        self.assertEqual(totals.total_price, Decimal("110.01"))

    def test_subtotal_is_exact_sum(self):
        """No float drift across many small items."""
        lines = [Line("0.10", 1) for _ in range(30)] + [Line("19.99", 3)]
        totals = self.calculator.calculate(lines)
        self.assertEqual(totals.subtotal, Decimal("62.97"))
        self.assertEqual(
            totals.total_price,
            totals.subtotal + totals.tax_price + totals.shipping_price,
        )

    def test_tax_rounds_half_up_to_cents(self):
        totals = self.calculator.calculate([Line("0.05", 1)])
        self.assertEqual(totals.tax_price, Decimal("0.01"))

    def test_empty_items_give_zero_subtotal(self):
        totals = self.calculator.calculate([])
        self.assertEqual(totals.subtotal, Decimal("0.00"))
        self.assertEqual(totals.shipping_price, Decimal("10.00"))

    def test_same_input_same_output(self):
        lines = [Line("12.34", 2), Line("5.55", 7)]
        self.assertEqual(self.calculator.calculate(lines), self.calculator.calculate(lines))

    def test_zero_quantity_fails(self):
        with self.assertRaises(ValidationError):
            self.calculator.calculate([Line("10.00", 0)])

    def test_negative_price_fails(self):
        with self.assertRaises(ValidationError):
            self.calculator.calculate([Line("-1.00", 1)])

    def test_custom_config(self):
        calculator = PricingCalculator(PricingConfig(
            tax_rate=Decimal("0.11"),
            free_shipping_threshold=Decimal("50.00"),
            flat_shipping_fee=Decimal("4.99"),
        ))
        totals = calculator.calculate([Line("30.00", 1)])
        self.assertEqual(totals.tax_price, Decimal("3.30"))
        self.assertEqual(totals.shipping_price, Decimal("4.99"))
        self.assertEqual(totals.total_price, Decimal("38.29"))

    def test_zero_totals(self):
        self.assertEqual(OrderTotals.zero().total_price, Decimal("0.00"))


class PricingConfigTest(SimpleTestCase):

    def test_negative_tax_rate_rejected(self):
        with self.assertRaises(ValueError):
            PricingConfig(tax_rate=Decimal("-0.01"))

    @override_settings(SHOP_PRICING={
        "TAX_RATE": "0.20",
        "FREE_SHIPPING_THRESHOLD": "75",
        "FLAT_SHIPPING_FEE": "5.00",
    })
    def test_from_settings(self):
        config = PricingConfig.from_settings()
        self.assertEqual(config.tax_rate, Decimal("0.20"))
        self.assertEqual(config.free_shipping_threshold, Decimal("75"))
        self.assertEqual(config.flat_shipping_fee, Decimal("5.00"))

    @override_settings(SHOP_PRICING={})
    def test_from_settings_defaults(self):
        self.assertEqual(PricingConfig.from_settings(), PricingConfig())
