"""
Infrastructure repositories for domain entities.
"""
from __future__ import annotations

import logging
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, F, Q, Sum

from shop.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from shop.domain.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentResult,
    ShippingAddress,
)
from shop.domain.pricing import OrderTotals
from shop.domain.product import Product
from shop.infra.models import CustomerORM, OrderItemORM, OrderORM, ProductORM

logger = logging.getLogger(__name__)


def _parse_uuid(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class CustomerRepository:
    """Repository for Customer entities."""

    def get_by_id(self, customer_id) -> CustomerORM | None:
        """Get customer by ID."""
        customer_uuid = _parse_uuid(customer_id)
        if customer_uuid is None:
            return None
        return CustomerORM.objects.filter(id=customer_uuid).first()

    def create(self, name: str, email: str, role: str = "user") -> UUID:
        """Create new customer."""
        new_customer = CustomerORM.objects.create(
            name=name,
            email=email,
            role=role,
        )
        return new_customer.id


class ProductRepository:
    """Repository for products and their stock counter."""

    def find_by_id(self, product_id, active_only: bool = True) -> Product:
        """Get product by ID; raises NotFoundError when missing (or inactive)."""
        product_uuid = _parse_uuid(product_id)
        queryset = ProductORM.objects.all()
        if active_only:
            queryset = queryset.filter(is_active=True)
        product_orm = queryset.filter(id=product_uuid).first() if product_uuid else None
        if product_orm is None:
            raise NotFoundError(f"Product {product_id} not found")
        return self._to_domain(product_orm)

    def list_active(self, limit: int = 50, offset: int = 0) -> list[Product]:
        products = ProductORM.objects.filter(is_active=True).order_by("name")[offset:offset + limit]
        return [self._to_domain(p) for p in products]

    def create(self, name: str, price, count_in_stock: int = 0, **fields) -> Product:
        """Create product; the discount price rule is applied on save."""
        product_orm = ProductORM(name=name, price=price, count_in_stock=count_in_stock, **fields)
        try:
            product_orm.full_clean()
        except DjangoValidationError as e:
            raise ValidationError(f"Invalid product: {e.message_dict}") from e
        product_orm.save()
        return self._to_domain(product_orm)

    def save(self, product: Product) -> UUID:
        """Persist catalogue fields. Stock is only changed through adjust_stock()."""
        product_orm, _ = ProductORM.objects.update_or_create(
            id=product.id,
            defaults={
                "name": product.name,
                "price": product.price,
                "original_price": product.original_price,
                "discount": product.discount,
                "image": product.image,
                "is_active": product.is_active,
            },
            create_defaults={
                "name": product.name,
                "price": product.price,
                "original_price": product.original_price,
                "discount": product.discount,
                "image": product.image,
                "is_active": product.is_active,
                "count_in_stock": product.count_in_stock,
            },
        )
        return product_orm.id

    def deactivate(self, product_id) -> None:
        """Soft delete: products are never removed."""
        updated = ProductORM.objects.filter(id=_parse_uuid(product_id)).update(is_active=False)
        if not updated:
            raise NotFoundError(f"Product {product_id} not found")

    def adjust_stock(self, product_id, delta: int) -> None:
        """
        Apply ``count_in_stock += delta`` as one conditional UPDATE.

        The ``count_in_stock >= -delta`` guard is evaluated by the database in
        the same statement as the write, so concurrent adjustments of one
        product cannot oversell or lose updates.
        """
        product_uuid = _parse_uuid(product_id)
        if product_uuid is None:
            raise NotFoundError(f"Product {product_id} not found")

        queryset = ProductORM.objects.filter(id=product_uuid)
        if delta < 0:
            queryset = queryset.filter(count_in_stock__gte=-delta)

        if queryset.update(count_in_stock=F("count_in_stock") + delta):
            logger.info(
                "stock_adjusted",
                extra={"product_id": str(product_uuid), "delta": delta},
            )
            return

        product_orm = ProductORM.objects.filter(id=product_uuid).only("name", "count_in_stock").first()
        if product_orm is None:
            raise NotFoundError(f"Product {product_id} not found")
        raise InsufficientStockError(
            f"Insufficient stock for product: {product_orm.name} "
            f"(requested {-delta}, available {product_orm.count_in_stock})",
            product_id=product_uuid,
            requested=-delta,
        )

    def get_stock(self, product_id) -> int:
        product_uuid = _parse_uuid(product_id)
        product_orm = ProductORM.objects.filter(id=product_uuid).only("count_in_stock").first() if product_uuid else None
        if product_orm is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product_orm.count_in_stock

    def _to_domain(self, product_orm: ProductORM) -> Product:
        return Product(
            id=product_orm.id,
            name=product_orm.name,
            price=product_orm.price,
            count_in_stock=product_orm.count_in_stock,
            is_active=product_orm.is_active,
            image=product_orm.image,
            original_price=product_orm.original_price,
            discount=product_orm.discount,
        )


class OrderRepository:
    """Repository for Order aggregate."""

    def get_by_id(self, order_id, for_update: bool = False) -> Order | None:
        """Get order by ID with items (no N+1). ``for_update`` locks the row."""
        order_uuid = _parse_uuid(order_id)
        if order_uuid is None:
            return None
        queryset = OrderORM.objects.prefetch_related("items")
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return self._to_domain(queryset.get(id=order_uuid))
        except OrderORM.DoesNotExist:
            return None

    def get_by_customer(self, customer_id, limit: int = 50, offset: int = 0) -> list[Order]:
        """Get orders by customer with pagination, newest first."""
        orders_orm = (
            OrderORM.objects
            .filter(customer_id=customer_id)
            .prefetch_related("items")
            .order_by("-created_at")[offset:offset + limit]
        )
        return [self._to_domain(order_orm) for order_orm in orders_orm]

    def get_all(self, limit: int = 50, offset: int = 0) -> list[Order]:
        orders_orm = OrderORM.objects.prefetch_related("items").order_by("-created_at")[offset:offset + limit]
        return [self._to_domain(order_orm) for order_orm in orders_orm]

    @transaction.atomic
    def save(self, order: Order) -> UUID:
        """
        Save order aggregate.

        Line items are written only when the order row is first created;
        later saves touch the order's own fields.
        """
        order_orm, created = OrderORM.objects.update_or_create(
            id=order.id,
            defaults={
                "customer_id": order.customer_id,
                "shipping_address": order.shipping_address.to_dict() if order.shipping_address else {},
                "payment_method": order.payment_method.value,
                "payment_result": order.payment_result.to_dict() if order.payment_result else None,
                "subtotal": order.subtotal,
                "tax_price": order.tax_price,
                "shipping_price": order.shipping_price,
                "total_price": order.total_price,
                "is_paid": order.is_paid,
                "is_delivered": order.is_delivered,
                "status": order.status.value,
                "tracking_number": order.tracking_number,
                "notes": order.notes,
                "paid_at": order.paid_at,
                "shipped_at": order.shipped_at,
                "delivered_at": order.delivered_at,
                "cancelled_at": order.cancelled_at,
            }
        )

        if created:
            OrderItemORM.objects.bulk_create([
                OrderItemORM(
                    order=order_orm,
                    product_id=item.product_id,
                    position=position,
                    name=item.name,
                    image=item.image,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for position, item in enumerate(order.items)
            ])
            order.created_at = order_orm.created_at

        return order_orm.id

    def delete(self, order_id) -> None:
        """Physically remove an order. Used only to compensate a failed creation."""
        OrderORM.objects.filter(id=order_id).delete()

    def exists(self, order_id) -> bool:
        return OrderORM.objects.filter(id=order_id).exists()

    def get_stats(self, recent: int = 5) -> dict:
        """Aggregate figures for the admin dashboard."""
        totals = OrderORM.objects.aggregate(
            total_orders=Count("id"),
            total_sales=Sum("total_price", filter=~Q(status=OrderStatus.CANCELLED.value)),
        )
        status_counts = {
            row["status"]: row["count"]
            for row in OrderORM.objects.values("status").annotate(count=Count("id")).order_by()
        }
        return {
            "total_orders": totals["total_orders"] or 0,
            "total_sales": totals["total_sales"] or 0,
            "status_counts": status_counts,
            "recent_orders": self.get_all(limit=recent),
        }

    def _to_domain(self, order_orm: OrderORM) -> Order:
        """Convert ORM model to domain entity."""
        items = [
            OrderLineItem(
                product_id=item_orm.product_id,
                quantity=item_orm.quantity,
                unit_price=item_orm.unit_price,
                name=item_orm.name,
                image=item_orm.image,
            )
            for item_orm in order_orm.items.all()
        ]

        return Order(
            id=order_orm.id,
            customer_id=order_orm.customer_id,
            items=items,
            shipping_address=ShippingAddress.from_dict(order_orm.shipping_address),
            payment_method=order_orm.payment_method,
            status=OrderStatus(order_orm.status),
            totals=OrderTotals(
                subtotal=order_orm.subtotal,
                tax_price=order_orm.tax_price,
                shipping_price=order_orm.shipping_price,
                total_price=order_orm.total_price,
            ),
            is_paid=order_orm.is_paid,
            is_delivered=order_orm.is_delivered,
            payment_result=PaymentResult.from_dict(order_orm.payment_result) if order_orm.payment_result else None,
            tracking_number=order_orm.tracking_number,
            notes=order_orm.notes,
            created_at=order_orm.created_at,
            paid_at=order_orm.paid_at,
            shipped_at=order_orm.shipped_at,
            delivered_at=order_orm.delivered_at,
            cancelled_at=order_orm.cancelled_at,
        )
