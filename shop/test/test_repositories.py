"""
Integration tests for repositories.
"""
from decimal import Decimal
from uuid import uuid4

from django.test import TestCase

from shop.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from shop.domain.order import Order, OrderLineItem, OrderStatus, PaymentMethod
from shop.domain.pricing import PricingCalculator
from shop.infra.models import OrderItemORM, ProductORM
from shop.infra.repositories import CustomerRepository, OrderRepository, ProductRepository
from shop.test.helpers import make_address, make_customer, make_product


class ProductRepositoryTest(TestCase):

    def setUp(self):
        self.repo = ProductRepository()
        self.product = make_product(stock=5)

    def test_decrement(self):
        self.repo.adjust_stock(self.product.id, -3)
        self.assertEqual(self.repo.get_stock(self.product.id), 2)

    def test_increment(self):
        self.repo.adjust_stock(self.product.id, 4)
        self.assertEqual(self.repo.get_stock(self.product.id), 9)

    def test_decrement_to_zero(self):
        self.repo.adjust_stock(self.product.id, -5)
        self.assertEqual(self.repo.get_stock(self.product.id), 0)

    def test_overdraw_fails_and_leaves_stock(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            self.repo.adjust_stock(self.product.id, -6)
        self.assertEqual(ctx.exception.requested, 6)
        self.assertEqual(self.repo.get_stock(self.product.id), 5)

    def test_second_decrement_sees_first(self):
        """Two takes of 3 from 5: the second one must fail."""
        self.repo.adjust_stock(self.product.id, -3)
        with self.assertRaises(InsufficientStockError):
            self.repo.adjust_stock(self.product.id, -3)
        self.assertEqual(self.repo.get_stock(self.product.id), 2)

    def test_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.repo.adjust_stock(uuid4(), 1)
        with self.assertRaises(NotFoundError):
            self.repo.adjust_stock("not-a-uuid", -1)

    def test_inactive_product_not_found(self):
        self.repo.deactivate(self.product.id)
        with self.assertRaises(NotFoundError):
            self.repo.find_by_id(self.product.id)
        self.assertFalse(self.repo.find_by_id(self.product.id, active_only=False).is_active)
        self.assertTrue(ProductORM.objects.filter(id=self.product.id).exists())

    def test_list_active(self):
        hidden = make_product(name="Old Bowl", stock=0)
        self.repo.deactivate(hidden.id)
        products = self.repo.list_active()
        self.assertEqual([p.id for p in products], [self.product.id])
        self.assertTrue(products[0].in_stock)

    def test_create_applies_discount(self):
        product = make_product(
            name="Aquarium",
            price="150.00",
            original_price=Decimal("120.00"),
            discount=Decimal("10"),
        )
        self.assertEqual(product.price, Decimal("108.00"))
        self.assertEqual(self.repo.find_by_id(product.id).price, Decimal("108.00"))

    def test_create_rejects_negative_price(self):
        with self.assertRaises(ValidationError):
            make_product(name="Broken", price="-1.00")

    def test_save_does_not_touch_stock(self):
        product = self.repo.find_by_id(self.product.id)
        self.repo.adjust_stock(product.id, -2)
        product.name = "Premium Dog Food"
        self.repo.save(product)
        reloaded = self.repo.find_by_id(product.id)
        self.assertEqual(reloaded.name, "Premium Dog Food")
        self.assertEqual(reloaded.count_in_stock, 3)


class OrderRepositoryTest(TestCase):

    def setUp(self):
        self.repo = OrderRepository()
        self.customer_id = make_customer()
        self.product_ids = [uuid4(), uuid4()]

    def _order(self):
        return Order.place(
            customer_id=self.customer_id,
            items=[
                OrderLineItem(product_id=self.product_ids[0], quantity=1, unit_price=Decimal("70.00"), name="Bed"),
                OrderLineItem(product_id=self.product_ids[1], quantity=2, unit_price=Decimal("15.50"), name="Bowl"),
            ],
            shipping_address=make_address(),
            payment_method=PaymentMethod.PAYPAL,
            calculator=PricingCalculator(),
            notes="Leave at the door",
        )

    def test_save_and_load(self):
        order = self._order()
        self.repo.save(order)
        self.assertIsNotNone(order.created_at)

        loaded = self.repo.get_by_id(order.id)
        self.assertEqual(loaded.status, OrderStatus.PENDING)
        self.assertEqual(loaded.payment_method, PaymentMethod.PAYPAL)
        self.assertEqual([item.product_id for item in loaded.items], self.product_ids)
        self.assertEqual(loaded.items[1].unit_price, Decimal("15.50"))
        self.assertEqual(loaded.shipping_address, make_address())
        self.assertEqual(loaded.totals, order.totals)
        self.assertEqual(loaded.notes, "Leave at the door")

    def test_resave_keeps_items(self):
        order = self._order()
        self.repo.save(order)
        order.cancel(order.created_at)
        self.repo.save(order)
        self.assertEqual(OrderItemORM.objects.filter(order_id=order.id).count(), 2)
        self.assertEqual(self.repo.get_by_id(order.id).status, OrderStatus.CANCELLED)

    def test_missing_order(self):
        self.assertIsNone(self.repo.get_by_id(uuid4()))
        self.assertIsNone(self.repo.get_by_id("bogus"))

    def test_delete(self):
        order = self._order()
        self.repo.save(order)
        self.repo.delete(order.id)
        self.assertFalse(self.repo.exists(order.id))
        self.assertFalse(OrderItemORM.objects.filter(order_id=order.id).exists())

    def test_customer_listing_and_stats(self):
        first, second = self._order(), self._order()
        self.repo.save(first)
        self.repo.save(second)
        second.cancel(second.created_at)
        self.repo.save(second)

        other = CustomerRepository().create(name="Other", email="other@example.com")
        self.assertEqual(self.repo.get_by_customer(other), [])
        self.assertEqual(len(self.repo.get_by_customer(self.customer_id)), 2)

        stats = self.repo.get_stats()
        self.assertEqual(stats["total_orders"], 2)
        self.assertEqual(Decimal(stats["total_sales"]), first.total_price)
        self.assertEqual(stats["status_counts"], {"pending": 1, "cancelled": 1})
        self.assertEqual(len(stats["recent_orders"]), 2)
