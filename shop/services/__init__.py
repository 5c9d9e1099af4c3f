from shop.services.notifications import NotificationDispatcher, NotificationWorker
from shop.services.orders import Actor, OrderService

__all__ = ["Actor", "NotificationDispatcher", "NotificationWorker", "OrderService"]
