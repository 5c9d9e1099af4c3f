"""
Domain model for Order aggregate.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from shop.domain.errors import InvalidStateError, InvalidTransitionError, ValidationError
from shop.domain.pricing import OrderTotals, PricingCalculator


class OrderStatus(str, Enum):
    """Order status enumeration."""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Each forward move advances exactly one step.
FORWARD_TRANSITIONS = {
    OrderStatus.PENDING: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}

PROGRESS_PERCENTAGE = {
    OrderStatus.PENDING: 10,
    OrderStatus.PROCESSING: 25,
    OrderStatus.SHIPPED: 50,
    OrderStatus.DELIVERED: 100,
    OrderStatus.CANCELLED: 0,
}


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CREDIT_CARD = "credit-card"
    PAYPAL = "paypal"
    CASH_ON_DELIVERY = "cash-on-delivery"

    @property
    def is_online(self) -> bool:
        return self is not PaymentMethod.CASH_ON_DELIVERY


@dataclass(frozen=True)
class ShippingAddress:
    """Shipping address value object."""
    full_name: str
    address: str
    city: str
    country: str
    phone_number: str
    postal_code: str = ""

    def __post_init__(self):
        for field in ("full_name", "address", "city", "country", "phone_number"):
            if not str(getattr(self, field) or "").strip():
                raise ValidationError(f"Shipping address field '{field}' is required")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ShippingAddress":
        return cls(
            full_name=data.get("full_name", ""),
            address=data.get("address", ""),
            city=data.get("city", ""),
            country=data.get("country", ""),
            phone_number=data.get("phone_number", ""),
            postal_code=data.get("postal_code", ""),
        )


@dataclass(frozen=True)
class PaymentResult:
    """Payment provider confirmation."""
    id: str
    status: str
    update_time: str = ""
    email_address: str = ""

    def __post_init__(self):
        if not self.id or not self.status:
            raise ValidationError("Payment result requires 'id' and 'status'")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentResult":
        return cls(
            id=data.get("id", ""),
            status=data.get("status", ""),
            update_time=data.get("update_time", ""),
            email_address=data.get("email_address", ""),
        )


@dataclass(frozen=True)
class OrderLineItem:
    """Order line item: product reference plus a snapshot taken at order time."""
    product_id: UUID
    quantity: int
    unit_price: Decimal
    name: str = ""
    image: str = ""

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if self.unit_price < 0:
            raise ValidationError("Unit price must be non-negative")

    @property
    def subtotal(self) -> Decimal:
        """Calculate item subtotal."""
        return self.unit_price * self.quantity


class Order:
    """Order aggregate root."""

    def __init__(
        self,
        id: UUID | None = None,
        customer_id: UUID | None = None,
        items: list[OrderLineItem] | None = None,
        shipping_address: ShippingAddress | None = None,
        payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD,
        status: OrderStatus = OrderStatus.PENDING,
        totals: OrderTotals | None = None,
        is_paid: bool = False,
        is_delivered: bool = False,
        payment_result: PaymentResult | None = None,
        tracking_number: str | None = None,
        notes: str | None = None,
        created_at: datetime | None = None,
        paid_at: datetime | None = None,
        shipped_at: datetime | None = None,
        delivered_at: datetime | None = None,
        cancelled_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.customer_id = customer_id
        self._items = tuple(items or ())
        self.shipping_address = shipping_address
        self.payment_method = PaymentMethod(payment_method)
        self._status = OrderStatus(status)
        self._totals = totals or OrderTotals.zero()
        self.is_paid = is_paid
        self.is_delivered = is_delivered
        self.payment_result = payment_result
        self.tracking_number = tracking_number
        self.notes = notes
        self.created_at = created_at
        self.paid_at = paid_at
        self.shipped_at = shipped_at
        self.delivered_at = delivered_at
        self.cancelled_at = cancelled_at

    @classmethod
    def place(
        cls,
        customer_id: UUID,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        calculator: PricingCalculator,
        notes: str | None = None,
    ) -> "Order":
        """Build a new pending order with computed totals."""
        if not items:
            raise ValidationError("No order items")
        order = cls(
            customer_id=customer_id,
            items=items,
            shipping_address=shipping_address,
            payment_method=payment_method,
            notes=notes,
        )
        order.recompute_totals(calculator)
        return order

    @property
    def items(self) -> tuple[OrderLineItem, ...]:
        """Get order items (immutable)."""
        return self._items

    @property
    def status(self) -> OrderStatus:
        """Get order status."""
        return self._status

    @property
    def totals(self) -> OrderTotals:
        return self._totals

    @property
    def subtotal(self) -> Decimal:
        return self._totals.subtotal

    @property
    def tax_price(self) -> Decimal:
        return self._totals.tax_price

    @property
    def shipping_price(self) -> Decimal:
        return self._totals.shipping_price

    @property
    def total_price(self) -> Decimal:
        return self._totals.total_price

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def progress_percentage(self) -> int:
        return PROGRESS_PERCENTAGE[self._status]

    def recompute_totals(self, calculator: PricingCalculator) -> OrderTotals:
        """Recompute monetary fields. Call only when line items change."""
        self._totals = calculator.calculate(self._items)
        return self._totals

    def is_owned_by(self, customer_id: UUID) -> bool:
        return str(self.customer_id) == str(customer_id)

    def _ensure_payable(self) -> None:
        if self._status in TERMINAL_STATUSES:
            raise InvalidStateError(f"Cannot pay for a {self._status.value} order")

    def mark_paid(self, payment_result: PaymentResult | None, now: datetime) -> bool:
        """
        Record an online payment.

        Returns False when the order was already paid (nothing changes).
        """
        self._ensure_payable()
        if self.is_paid:
            return False
        if payment_result is None:
            raise ValidationError("Payment result is required")

        self.is_paid = True
        self.paid_at = now
        self.payment_result = payment_result
        if self._status == OrderStatus.PENDING:
            self._status = OrderStatus.PROCESSING
        return True

    def confirm_cash_on_delivery(self, now: datetime) -> bool:
        """
        Record a cash-on-delivery payment; no payment result is needed.

        Returns False when the order was already paid (nothing changes).
        """
        self._ensure_payable()
        if self.payment_method is not PaymentMethod.CASH_ON_DELIVERY:
            raise ValidationError(
                f"Order was placed with {self.payment_method.value}; a payment result is required"
            )
        if self.is_paid:
            return False

        self.is_paid = True
        self.paid_at = now
        if self._status == OrderStatus.PENDING:
            self._status = OrderStatus.PROCESSING
        return True

    def transition_to(self, new_status: OrderStatus, now: datetime, tracking_number: str | None = None) -> None:
        """Move one step forward along pending -> processing -> shipped -> delivered."""
        if self._status in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"Order is {self._status.value}; no further status changes are allowed"
            )
        if new_status == OrderStatus.CANCELLED:
            raise InvalidTransitionError("Cancellation must go through cancel()")
        expected = FORWARD_TRANSITIONS[self._status]
        if new_status != expected:
            raise InvalidTransitionError(
                f"Cannot move order from {self._status.value} to {new_status.value}"
            )

        if new_status == OrderStatus.SHIPPED:
            tracking_number = tracking_number or self.tracking_number
            if not tracking_number:
                raise ValidationError("Tracking number is required for shipped orders")
            self.tracking_number = tracking_number
            self.shipped_at = now
        elif new_status == OrderStatus.DELIVERED:
            self.is_delivered = True
            self.delivered_at = now

        self._status = new_status

    def cancel(self, now: datetime) -> None:
        """Cancel order. Stock restoration is the caller's job."""
        if self.is_delivered or self._status == OrderStatus.DELIVERED:
            raise InvalidStateError("Cannot cancel a delivered order")
        if self._status == OrderStatus.CANCELLED:
            raise InvalidStateError("Order is already cancelled")

        self._status = OrderStatus.CANCELLED
        self.cancelled_at = now
