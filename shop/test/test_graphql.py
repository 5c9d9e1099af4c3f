"""
Integration tests for GraphQL API.
"""
import json

from django.test import TestCase

from shop.infra.repositories import ProductRepository
from shop.test.helpers import address_payload, make_customer, make_product

CREATE_ORDER = """
    mutation CreateOrder($input: CreateOrderInput!) {
        createOrder(input: $input) {
            id
            status
            subtotal
            taxPrice
            shippingPrice
            totalPrice
            items { product name quantity price }
        }
    }
"""

PAY_ORDER = """
    mutation PayOrder($id: ID!, $result: PaymentResultInput, $cod: Boolean) {
        payOrder(id: $id, paymentResult: $result, cashOnDelivery: $cod) {
            id
            status
            isPaid
        }
    }
"""


class GraphQLAPITest(TestCase):
    """Integration tests for GraphQL API."""

    def setUp(self):
        self.customer_id = make_customer(email="owner@example.com")
        self.admin_id = make_customer(name="Admin", email="admin@example.com", role="admin")
        self.product = make_product(name="Fish Flakes", price="8.00", stock=5)

    def execute(self, query, variables=None, user=None):
        headers = {}
        user = self.customer_id if user is None else user
        if user:
            headers["X-User-ID"] = str(user)
        response = self.client.post(
            "/graphql/",
            data=json.dumps({"query": query, "variables": variables or {}}),
            content_type="application/json",
            headers=headers,
        )
        return response

    def create_order(self, quantity=3, payment_method="paypal"):
        response = self.execute(CREATE_ORDER, {"input": {
            "items": [{"product": str(self.product.id), "quantity": quantity}],
            "shippingAddress": address_payload(),
            "paymentMethod": payment_method,
        }})
        return response.json()

    def test_create_order_mutation(self):
        """Test createOrder mutation."""
        result = self.create_order(3)

        self.assertNotIn("errors", result)
        order = result["data"]["createOrder"]
        self.assertEqual(order["status"], "pending")
        self.assertEqual(order["subtotal"], "24.00")
        self.assertEqual(order["taxPrice"], "2.40")
        self.assertEqual(order["shippingPrice"], "10.00")
        self.assertEqual(order["totalPrice"], "36.40")
        self.assertEqual(order["items"][0]["name"], "Fish Flakes")
        self.assertEqual(ProductRepository().get_stock(self.product.id), 2)

    def test_insufficient_stock_error_code(self):
        result = self.create_order(9)
        self.assertIsNone(result["data"])
        self.assertEqual(result["errors"][0]["extensions"]["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(ProductRepository().get_stock(self.product.id), 5)

    def test_validation_error_code(self):
        result = self.create_order(0)
        self.assertEqual(result["errors"][0]["extensions"]["code"], "VALIDATION_ERROR")

    def test_requires_user(self):
        response = self.execute("query { myOrders { id } }", user="")
        self.assertEqual(response.json()["errors"][0]["extensions"]["code"], "AUTHENTICATION_REQUIRED")

    def test_order_queries(self):
        order_id = self.create_order(1)["data"]["createOrder"]["id"]

        result = self.execute(
            "query Get($id: ID!) { order(id: $id) { id status progressPercentage } }",
            {"id": order_id},
        ).json()
        self.assertEqual(result["data"]["order"], {"id": order_id, "status": "pending", "progressPercentage": 10})

        mine = self.execute("query { myOrders { id } }").json()
        self.assertEqual(mine["data"]["myOrders"], [{"id": order_id}])

    def test_my_orders_clamps_paging(self):
        order_id = self.create_order(1)["data"]["createOrder"]["id"]
        result = self.execute("query { myOrders(limit: -1, offset: -5) { id } }").json()
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["myOrders"], [{"id": order_id}])

    def test_pay_and_cancel(self):
        order_id = self.create_order(1)["data"]["createOrder"]["id"]

        paid = self.execute(PAY_ORDER, {"id": order_id, "result": {"id": "PAY-9", "status": "COMPLETED"}}).json()
        self.assertEqual(paid["data"]["payOrder"], {"id": order_id, "status": "processing", "isPaid": True})

        cancelled = self.execute(
            "mutation Cancel($id: ID!) { cancelOrder(id: $id) { status } }",
            {"id": order_id},
        ).json()
        self.assertEqual(cancelled["data"]["cancelOrder"]["status"], "cancelled")
        self.assertEqual(ProductRepository().get_stock(self.product.id), 5)

    def test_cash_on_delivery_confirmation(self):
        order_id = self.create_order(1, payment_method="cash-on-delivery")["data"]["createOrder"]["id"]
        result = self.execute(PAY_ORDER, {"id": order_id, "cod": True}).json()
        self.assertEqual(result["data"]["payOrder"], {"id": order_id, "status": "processing", "isPaid": True})

    def test_status_update_requires_admin(self):
        order_id = self.create_order(1)["data"]["createOrder"]["id"]
        mutation = """
            mutation Status($id: ID!, $status: String!) {
                updateOrderStatus(id: $id, status: $status) { status }
            }
        """
        denied = self.execute(mutation, {"id": order_id, "status": "processing"}).json()
        self.assertEqual(denied["errors"][0]["extensions"]["code"], "FORBIDDEN")

        moved = self.execute(mutation, {"id": order_id, "status": "processing"}, user=self.admin_id).json()
        self.assertEqual(moved["data"]["updateOrderStatus"]["status"], "processing")

        skipped = self.execute(mutation, {"id": order_id, "status": "delivered"}, user=self.admin_id).json()
        self.assertEqual(skipped["errors"][0]["extensions"]["code"], "INVALID_TRANSITION")

    def test_get_returns_hint(self):
        response = self.client.get("/graphql/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("message", response.json())
