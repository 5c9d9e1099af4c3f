"""
Order -> JSON-ready dict (camelCase), shared by the REST and GraphQL APIs.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from shop.domain.order import Order


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def _datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_order(order: Order) -> dict:
    address = order.shipping_address
    payment = order.payment_result
    return {
        "id": str(order.id),
        "user": str(order.customer_id),
        "items": [
            {
                "product": str(item.product_id),
                "name": item.name,
                "image": item.image,
                "quantity": item.quantity,
                "price": _money(item.unit_price),
            }
            for item in order.items
        ],
        "shippingAddress": {
            "fullName": address.full_name,
            "address": address.address,
            "city": address.city,
            "postalCode": address.postal_code,
            "country": address.country,
            "phoneNumber": address.phone_number,
        } if address else None,
        "paymentMethod": order.payment_method.value,
        "paymentResult": {
            "id": payment.id,
            "status": payment.status,
            "updateTime": payment.update_time,
            "emailAddress": payment.email_address,
        } if payment else None,
        "subtotal": _money(order.subtotal),
        "taxPrice": _money(order.tax_price),
        "shippingPrice": _money(order.shipping_price),
        "totalPrice": _money(order.total_price),
        "isPaid": order.is_paid,
        "paidAt": _datetime(order.paid_at),
        "isDelivered": order.is_delivered,
        "deliveredAt": _datetime(order.delivered_at),
        "status": order.status.value,
        "trackingNumber": order.tracking_number,
        "notes": order.notes,
        "createdAt": _datetime(order.created_at),
        "shippedAt": _datetime(order.shipped_at),
        "cancelledAt": _datetime(order.cancelled_at),
        "totalItems": order.total_items,
        "progressPercentage": order.progress_percentage,
    }


def serialize_stats(stats: dict) -> dict:
    return {
        "totalOrders": stats["total_orders"],
        "totalSales": _money(Decimal(stats["total_sales"])),
        "statusCounts": stats["status_counts"],
        "recentOrders": [serialize_order(order) for order in stats["recent_orders"]],
    }
