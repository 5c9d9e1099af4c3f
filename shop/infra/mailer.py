"""
Order e-mails sent through Django's mail framework.
"""
from __future__ import annotations

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from shop.infra.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class OrderMailer:
    """Renders and sends order e-mails from outbox event payloads."""

    def send_order_confirmation(self, event_data: dict) -> None:
        context = self._context(event_data)
        self._send(
            to=event_data["customer_email"],
            subject=f"Order Confirmation #{event_data['aggregate_id']} | Pawvot",
            text=(
                f"Hi {context['name']}, thank you for your order! Your order "
                f"#{event_data['aggregate_id']} has been received and is being processed."
            ),
            html=render_to_string("shop/emails/order_confirmation.html", context),
        )

    def send_order_cancellation(self, event_data: dict) -> None:
        context = self._context(event_data)
        self._send(
            to=event_data["customer_email"],
            subject=f"Order Cancelled #{event_data['aggregate_id']} | Pawvot",
            text=(
                f"Hi {context['name']}, your order #{event_data['aggregate_id']} "
                f"has been cancelled."
            ),
            html=render_to_string("shop/emails/order_cancellation.html", context),
        )

    def _context(self, event_data: dict) -> dict:
        return {
            "name": event_data.get("customer_name", ""),
            "order_id": event_data["aggregate_id"],
            "items": event_data.get("items", []),
            "total_price": event_data.get("total_price"),
            "order_link": f"{settings.SHOP_CLIENT_URL}/orders/{event_data['aggregate_id']}",
        }

    @retry_with_backoff(max_retries=2, initial_delay=0.5, exceptions=(SMTPException, OSError))
    def _send(self, to: str, subject: str, text: str, html: str) -> None:
        send_mail(
            subject=subject,
            message=text,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[to],
            html_message=html,
        )
        logger.info("email_sent", extra={"operation": "send_mail", "subject": subject})
