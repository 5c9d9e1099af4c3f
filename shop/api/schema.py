"""
GraphQL schema definition using Ariadne.
"""
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from ariadne import (
    MutationType,
    QueryType,
    ScalarType,
    format_error,
    load_schema_from_path,
    make_executable_schema,
)

from shop.api.middleware import ErrorHandler
from shop.api.requests import CreateOrderRequest, pay_order_adapter, validate
from shop.api.serializers import serialize_order
from shop.domain.errors import AuthenticationError, ShopError
from shop.services.orders import OrderService

logger = logging.getLogger(__name__)

SCHEMAS_DIR = Path(__file__).parent / "schemas"
type_defs = load_schema_from_path(SCHEMAS_DIR)

query = QueryType()
mutation = MutationType()


def _actor(info):
    actor = info.context.get("actor")
    if actor is None:
        raise AuthenticationError("Not authorized to access this route")
    return actor


@query.field("order")
def resolve_order(_, info, id):
    """Resolve order query."""
    return serialize_order(OrderService().get_order(id, actor=_actor(info)))


@query.field("myOrders")
def resolve_my_orders(_, info, limit=50, offset=0):
    """Resolve the caller's orders, newest first."""
    actor = _actor(info)
    orders = OrderService().get_orders_by_customer(
        actor.customer_id,
        limit=min(max(limit, 1), 200),
        offset=max(offset, 0),
    )
    return [serialize_order(order) for order in orders]


@mutation.field("createOrder")
def resolve_create_order(_, info, input: dict):
    """Resolve create order mutation."""
    actor = _actor(info)
    data = validate(CreateOrderRequest, input)
    order = OrderService().create_order(
        customer_id=actor.customer_id,
        items=data.items_for_service(),
        shipping_address=data.shipping_address.to_domain(),
        payment_method=data.payment_method,
        notes=data.notes,
        actor=actor,
    )
    return serialize_order(order)


@mutation.field("payOrder")
def resolve_pay_order(_, info, id, paymentResult=None, cashOnDelivery=False):
    """Resolve pay order mutation."""
    actor = _actor(info)
    body = {"paymentMethod": "cash-on-delivery"} if cashOnDelivery else {"paymentResult": paymentResult}
    data = validate(pay_order_adapter, body)
    order = OrderService().mark_as_paid(
        id,
        payment_result=data.payment_result.to_domain() if data.payment_result else None,
        cash_on_delivery=data.cash_on_delivery,
        actor=actor,
    )
    return serialize_order(order)


@mutation.field("updateOrderStatus")
def resolve_update_order_status(_, info, id, status, trackingNumber=None):
    """Resolve status update mutation (admin)."""
    order = OrderService().update_status(id, status, tracking_number=trackingNumber, actor=_actor(info))
    return serialize_order(order)


@mutation.field("cancelOrder")
def resolve_cancel_order(_, info, id):
    """Resolve cancel order mutation."""
    return serialize_order(OrderService().cancel_order(id, actor=_actor(info)))


def format_graphql_error(error, debug: bool = False) -> dict:
    """Attach domain error codes; hide unexpected internals."""
    formatted = format_error(error, debug)
    original = getattr(error, "original_error", None)

    if isinstance(original, ShopError):
        formatted["extensions"] = {
            "code": original.code,
            "status": ErrorHandler.status_for(original),
        }
    elif original is not None:
        logger.error(
            "graphql_error",
            extra={"error": f"{type(original).__name__}: {original}"},
            exc_info=original,
        )
        formatted["message"] = "An internal error occurred"
        formatted["extensions"] = {"code": "INTERNAL_ERROR", "status": 500}
    return formatted


decimal_scalar = ScalarType("Decimal")
datetime_scalar = ScalarType("DateTime")


@decimal_scalar.serializer
def serialize_decimal(value):
    """Serialize Decimal to string."""
    return str(value)


@decimal_scalar.value_parser
def parse_decimal_value(value):
    """Parse Decimal from string."""
    return Decimal(str(value))


@datetime_scalar.serializer
def serialize_datetime(value):
    """Serialize DateTime to ISO format string."""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@datetime_scalar.value_parser
def parse_datetime_value(value):
    """Parse DateTime from string."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


# Create executable schema
schema = make_executable_schema(
    type_defs,
    query,
    mutation,
    datetime_scalar,
    decimal_scalar,
)
