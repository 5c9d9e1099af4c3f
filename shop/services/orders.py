"""
Order lifecycle: creation, payment, status changes and cancellation,
with the paired stock adjustments.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from shop.domain.errors import (
    AuthorizationError,
    InsufficientStockError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from shop.domain.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    PaymentResult,
    ShippingAddress,
)
from shop.domain.pricing import PricingCalculator, PricingConfig
from shop.infra.models import CustomerORM
from shop.infra.repositories import CustomerRepository, OrderRepository, ProductRepository
from shop.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """The customer on whose behalf an operation runs."""
    customer_id: UUID
    is_admin: bool = False

    @classmethod
    def from_customer(cls, customer: CustomerORM) -> "Actor":
        return cls(customer_id=customer.id, is_admin=customer.is_admin)

    def can_access(self, order: Order) -> bool:
        return self.is_admin or order.is_owned_by(self.customer_id)


class OrderService:
    """Service for order lifecycle operations."""

    def __init__(
        self,
        order_repo: OrderRepository | None = None,
        product_repo: ProductRepository | None = None,
        customer_repo: CustomerRepository | None = None,
        notifier: NotificationDispatcher | None = None,
        calculator: PricingCalculator | None = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.product_repo = product_repo or ProductRepository()
        self.customer_repo = customer_repo or CustomerRepository()
        self.notifier = notifier or NotificationDispatcher()
        self.calculator = calculator or PricingCalculator(PricingConfig.from_settings())

    def create_order(
        self,
        customer_id,
        items: list[dict],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> Order:
        """
        Place a pending order and take its quantities out of stock.

        ``items`` is a list of ``{"product_id": ..., "quantity": ...}``.
        Each product's stock is decremented by an independent atomic update;
        if any decrement fails, the ones already applied are put back and the
        order row is deleted before the error is re-raised.
        """
        if not items:
            raise ValidationError("No order items")

        customer = self.customer_repo.get_by_id(customer_id)
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found")
        if actor and not (actor.is_admin or str(actor.customer_id) == str(customer.id)):
            raise AuthorizationError("Not authorized to place orders for this customer")

        lines = []
        for product_id, quantity in self._merge_quantities(items).items():
            product = self.product_repo.find_by_id(product_id)
            if product.count_in_stock < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for product: {product.name} "
                    f"(requested {quantity}, available {product.count_in_stock})",
                    product_id=product.id,
                    requested=quantity,
                )
            lines.append(OrderLineItem(
                product_id=product.id,
                quantity=quantity,
                unit_price=product.price,
                name=product.name,
                image=product.image,
            ))

        order = Order.place(
            customer_id=customer.id,
            items=lines,
            shipping_address=shipping_address,
            payment_method=PaymentMethod(payment_method),
            calculator=self.calculator,
            notes=notes,
        )
        self.order_repo.save(order)
        self._take_stock(order)

        logger.info(
            "order_created",
            extra={
                "order_id": str(order.id),
                "user_id": str(customer.id),
                "operation": "create_order",
                "status": order.status.value,
            },
        )
        transaction.on_commit(lambda: self.notifier.order_placed(order, customer))
        return order

    def mark_as_paid(
        self,
        order_id,
        payment_result: PaymentResult | None = None,
        cash_on_delivery: bool = False,
        actor: Actor | None = None,
    ) -> Order:
        """Record payment; a second call on a paid order changes nothing."""
        with transaction.atomic():
            order = self._get_for_update(order_id)
            self._authorize(order, actor)

            if cash_on_delivery or order.payment_method is PaymentMethod.CASH_ON_DELIVERY:
                changed = order.confirm_cash_on_delivery(timezone.now())
            else:
                changed = order.mark_paid(payment_result, timezone.now())

            if changed:
                self.order_repo.save(order)

        logger.info(
            "order_payment_recorded" if changed else "order_payment_noop",
            extra={
                "order_id": str(order.id),
                "operation": "mark_as_paid",
                "status": order.status.value,
            },
        )
        return order

    def update_status(
        self,
        order_id,
        new_status,
        tracking_number: str | None = None,
        actor: Actor | None = None,
    ) -> Order:
        """Advance an order one step; ``cancelled`` is routed to cancel_order()."""
        if actor and not actor.is_admin:
            raise AuthorizationError("Only admins can change order status")
        try:
            new_status = OrderStatus(new_status)
        except ValueError:
            raise InvalidTransitionError(f"Unknown order status: {new_status}") from None

        if new_status == OrderStatus.CANCELLED:
            try:
                return self.cancel_order(order_id, actor=actor)
            except InvalidStateError as e:
                raise InvalidTransitionError(e.message) from e

        with transaction.atomic():
            order = self._get_for_update(order_id)
            previous = order.status
            order.transition_to(new_status, timezone.now(), tracking_number=tracking_number)
            self.order_repo.save(order)

        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(order.id),
                "operation": "update_status",
                "status": f"{previous.value}->{order.status.value}",
            },
        )
        return order

    def cancel_order(self, order_id, actor: Actor | None = None) -> Order:
        """Cancel a non-delivered order and put its quantities back in stock."""
        with transaction.atomic():
            order = self._get_for_update(order_id)
            self._authorize(order, actor)

            order.cancel(timezone.now())
            self.order_repo.save(order)
            self._return_stock(order.items)

            customer = self.customer_repo.get_by_id(order.customer_id)
            transaction.on_commit(lambda: self.notifier.order_cancelled(order, customer))

        logger.info(
            "order_cancelled",
            extra={"order_id": str(order.id), "operation": "cancel_order", "status": order.status.value},
        )
        return order

    def get_order(self, order_id, actor: Actor | None = None) -> Order:
        """Get order by ID."""
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        self._authorize(order, actor)
        return order

    def get_orders_by_customer(self, customer_id, limit: int = 50, offset: int = 0) -> list[Order]:
        """Get orders by customer with pagination."""
        return self.order_repo.get_by_customer(customer_id, limit=limit, offset=offset)

    def get_all_orders(self, limit: int = 50, offset: int = 0, actor: Actor | None = None) -> list[Order]:
        self._require_admin(actor)
        return self.order_repo.get_all(limit=limit, offset=offset)

    def get_dashboard_stats(self, actor: Actor | None = None) -> dict:
        self._require_admin(actor)
        return self.order_repo.get_stats()

    def _merge_quantities(self, items: list[dict]) -> dict[str, int]:
        """Validate quantities and sum repeated products, keeping first-seen order."""
        merged: dict[str, int] = {}
        for item in items:
            quantity = item.get("quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise ValidationError("Quantity must be a whole number of at least 1")
            product_id = str(item.get("product_id") or "").strip().lower()
            if not product_id:
                raise ValidationError("Each order item needs a product")
            merged[product_id] = merged.get(product_id, 0) + quantity
        return merged

    def _take_stock(self, order: Order) -> None:
        applied: list[OrderLineItem] = []
        try:
            for item in order.items:
                self.product_repo.adjust_stock(item.product_id, -item.quantity)
                applied.append(item)
        except Exception as e:
            self._return_stock(applied)
            self.order_repo.delete(order.id)
            logger.warning(
                "order_creation_rolled_back",
                extra={
                    "order_id": str(order.id),
                    "operation": "create_order",
                    "error": str(e),
                },
            )
            raise

    def _return_stock(self, items) -> None:
        for item in items:
            try:
                self.product_repo.adjust_stock(item.product_id, item.quantity)
            except NotFoundError:
                logger.warning(
                    "stock_restore_skipped_missing_product",
                    extra={"product_id": str(item.product_id), "delta": item.quantity},
                )

    def _get_for_update(self, order_id) -> Order:
        order = self.order_repo.get_by_id(order_id, for_update=True)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def _authorize(self, order: Order, actor: Actor | None) -> None:
        if actor is not None and not actor.can_access(order):
            raise AuthorizationError("Not authorized to access this order")

    def _require_admin(self, actor: Actor | None) -> None:
        if actor is not None and not actor.is_admin:
            raise AuthorizationError("Admin access required")
