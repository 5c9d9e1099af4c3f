"""
Order notifications: best-effort dispatch into the outbox, delivery by a worker.
"""
from __future__ import annotations

import logging
from uuid import uuid4

from django.conf import settings
from django.utils import timezone

from shop.domain.events import DomainEvent, OrderCancelled, OrderPlaced
from shop.domain.order import Order
from shop.infra.mailer import OrderMailer
from shop.infra.models import CustomerORM
from shop.infra.outbox import OutboxRepository

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Records e-mail notifications. Never raises into the order flow."""

    def __init__(self, outbox_repo: OutboxRepository | None = None):
        self.outbox_repo = outbox_repo or OutboxRepository()

    def order_placed(self, order: Order, customer: CustomerORM | None) -> None:
        if customer is None:
            return
        event = OrderPlaced(
            event_id=uuid4(),
            aggregate_id=order.id,
            event_type="OrderPlaced",
            customer_email=customer.email,
            customer_name=customer.name,
            total_price=order.total_price,
            items=[
                {"name": item.name, "quantity": item.quantity, "unit_price": item.unit_price}
                for item in order.items
            ],
        )
        self._dispatch(event)

    def order_cancelled(self, order: Order, customer: CustomerORM | None) -> None:
        if customer is None:
            return
        event = OrderCancelled(
            event_id=uuid4(),
            aggregate_id=order.id,
            event_type="OrderCancelled",
            customer_email=customer.email,
            customer_name=customer.name,
            total_price=order.total_price,
        )
        self._dispatch(event)

    def _dispatch(self, event: DomainEvent) -> None:
        event.occurred_at = timezone.now().isoformat()
        try:
            self.outbox_repo.add_event(event, "Order")
        except Exception as e:
            logger.error(
                "notification_dispatch_failed",
                extra={
                    "order_id": str(event.aggregate_id),
                    "operation": event.event_type,
                    "error": str(e),
                },
                exc_info=True,
            )


class NotificationWorker:
    """Delivers pending outbox events as e-mails."""

    HANDLERS = {
        "OrderPlaced": "send_order_confirmation",
        "OrderCancelled": "send_order_cancellation",
    }

    def __init__(
        self,
        outbox_repo: OutboxRepository | None = None,
        mailer: OrderMailer | None = None,
        max_retries: int | None = None,
    ):
        self.outbox_repo = outbox_repo or OutboxRepository()
        self.mailer = mailer or OrderMailer()
        self.max_retries = max_retries if max_retries is not None else settings.SHOP_NOTIFICATION_MAX_RETRIES

    def process_pending(self, limit: int = 100) -> int:
        """Send pending events. Returns the number delivered."""
        events = self.outbox_repo.get_unprocessed_events(limit=limit, max_retries=self.max_retries)
        sent = 0

        for event in events:
            handler_name = self.HANDLERS.get(event.event_type)
            if handler_name is None:
                logger.warning("unknown_outbox_event", extra={"operation": event.event_type})
                self.outbox_repo.mark_processed(event.id)
                continue
            try:
                getattr(self.mailer, handler_name)(event.event_data)
            except Exception as e:
                self.outbox_repo.record_failure(event.id, str(e))
                logger.error(
                    "notification_delivery_failed",
                    extra={
                        "order_id": str(event.aggregate_id),
                        "operation": event.event_type,
                        "error": str(e),
                    },
                    exc_info=True,
                )
                continue
            self.outbox_repo.mark_processed(event.id)
            sent += 1

        return sent
