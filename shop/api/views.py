"""
REST and GraphQL views with idempotency and structured logging.
"""
import logging
from functools import wraps
from uuid import uuid4

from ariadne import graphql_sync
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from shop.api.idempotency import IdempotencyStore, request_hash
from shop.api.middleware import ErrorHandler, resolve_actor
from shop.api.requests import (
    CreateOrderRequest,
    UpdateStatusRequest,
    parse_json_body,
    pay_order_adapter,
    validate,
)
from shop.api.schema import format_graphql_error, schema
from shop.api.serializers import serialize_order, serialize_stats
from shop.domain.errors import AuthenticationError, ValidationError
from shop.infra.pii_masker import mask_pii_in_dict
from shop.services.orders import OrderService

logger = logging.getLogger(__name__)


def api_endpoint(*methods):
    """Wrap a view: method check, request id, actor, error mapping, logging."""
    def decorator(view):
        @csrf_exempt
        @require_http_methods(list(methods))
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            request_id = request.headers.get("X-Request-ID") or str(uuid4())
            log_data = {
                "request_id": request_id,
                "user_id": request.headers.get("X-User-ID"),
                "operation": f"{request.method} {request.path}",
            }
            logger.info("api_request", extra=mask_pii_in_dict(log_data))

            try:
                actor = resolve_actor(request)
                response = view(request, actor, *args, **kwargs)
            except Exception as e:
                response = ErrorHandler.handle_error(e, request_id=request_id)

            response["X-Request-ID"] = request_id
            logger.info(
                "api_response",
                extra={"request_id": request_id, "status": response.status_code},
            )
            return response
        return wrapper
    return decorator


def _pagination(request) -> tuple[int, int]:
    try:
        limit = min(max(int(request.GET.get("limit", 50)), 1), 200)
        offset = max(int(request.GET.get("offset", 0)), 0)
    except ValueError:
        raise ValidationError("limit and offset must be integers") from None
    return limit, offset


@api_endpoint("GET", "POST")
def orders_collection(request, actor):
    """GET: the caller's orders. POST: place an order."""
    if request.method == "GET":
        limit, offset = _pagination(request)
        orders = OrderService().get_orders_by_customer(actor.customer_id, limit=limit, offset=offset)
        return JsonResponse([serialize_order(order) for order in orders], safe=False)

    body = parse_json_body(request)
    data = validate(CreateOrderRequest, body)

    idempotency_key = request.headers.get("Idempotency-Key")
    store = IdempotencyStore()
    if idempotency_key:
        cached = store.reserve(idempotency_key, actor.customer_id, "CREATE_ORDER", request_hash(body))
        if cached:
            return JsonResponse(cached.response_payload, status=cached.status_code, safe=False)

    try:
        order = OrderService().create_order(
            customer_id=actor.customer_id,
            items=data.items_for_service(),
            shipping_address=data.shipping_address.to_domain(),
            payment_method=data.payment_method,
            notes=data.notes,
            actor=actor,
        )
    except Exception:
        if idempotency_key:
            store.release(idempotency_key, actor.customer_id, "CREATE_ORDER")
        raise

    payload = serialize_order(order)
    if idempotency_key:
        store.complete(idempotency_key, actor.customer_id, "CREATE_ORDER", 201, payload)
    return JsonResponse(payload, status=201)


@api_endpoint("GET")
def order_detail(request, actor, order_id):
    order = OrderService().get_order(order_id, actor=actor)
    return JsonResponse(serialize_order(order))


@api_endpoint("PUT")
def pay_order(request, actor, order_id):
    data = validate(pay_order_adapter, parse_json_body(request))
    order = OrderService().mark_as_paid(
        order_id,
        payment_result=data.payment_result.to_domain() if data.payment_result else None,
        cash_on_delivery=data.cash_on_delivery,
        actor=actor,
    )
    return JsonResponse(serialize_order(order))


@api_endpoint("PUT")
def update_order_status(request, actor, order_id):
    data = validate(UpdateStatusRequest, parse_json_body(request))
    order = OrderService().update_status(
        order_id,
        data.status,
        tracking_number=data.tracking_number,
        actor=actor,
    )
    return JsonResponse(serialize_order(order))


@api_endpoint("PUT")
def cancel_order(request, actor, order_id):
    order = OrderService().cancel_order(order_id, actor=actor)
    return JsonResponse(serialize_order(order))


@api_endpoint("GET")
def all_orders(request, actor):
    limit, offset = _pagination(request)
    orders = OrderService().get_all_orders(limit=limit, offset=offset, actor=actor)
    return JsonResponse([serialize_order(order) for order in orders], safe=False)


@api_endpoint("GET")
def dashboard_stats(request, actor):
    stats = OrderService().get_dashboard_stats(actor=actor)
    return JsonResponse(serialize_stats(stats))


@csrf_exempt
@require_http_methods(["GET", "POST"])
def graphql_view(request):
    """GraphQL endpoint."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    logger.info(
        "graphql_request",
        extra=mask_pii_in_dict({"request_id": request_id, "user_id": request.headers.get("X-User-ID")}),
    )

    if request.method == "GET":
        return JsonResponse({"message": "GraphQL endpoint. Use POST for queries."})

    try:
        data = parse_json_body(request)
    except ValidationError as e:
        return ErrorHandler.handle_error(e, request_id=request_id)

    try:
        actor = resolve_actor(request)
    except AuthenticationError:
        actor = None

    success, result = graphql_sync(
        schema,
        data,
        context_value={"request": request, "actor": actor, "request_id": request_id},
        error_formatter=format_graphql_error,
    )

    status_code = 200 if success else 400
    logger.info("graphql_response", extra={"request_id": request_id, "status": status_code})
    return JsonResponse(result, status=status_code)
