"""
Domain events handed to the notification outbox.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID


class EventVersion(str, Enum):
    """Event version for upcasting."""
    V1 = "1.0"


@dataclass
class DomainEvent:
    """Base domain event."""
    event_id: UUID
    aggregate_id: UUID
    event_type: str
    # version and occurred_at are set in subclasses to avoid dataclass field ordering issues


@dataclass
class OrderPlaced(DomainEvent):
    """Order placed event; drives the confirmation e-mail."""
    customer_email: str
    customer_name: str
    total_price: Decimal
    items: list[dict] = field(default_factory=list)
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""


@dataclass
class OrderCancelled(DomainEvent):
    """Order cancelled event; drives the cancellation e-mail."""
    customer_email: str
    customer_name: str
    total_price: Decimal
    version: EventVersion = EventVersion.V1
    occurred_at: str = ""
