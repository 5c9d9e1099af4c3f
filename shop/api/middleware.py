"""
Request actor resolution and error handling.
"""
import logging

from django.http import JsonResponse

from shop.domain.errors import AuthenticationError, ShopError
from shop.infra.repositories import CustomerRepository
from shop.services.orders import Actor

logger = logging.getLogger(__name__)


def resolve_actor(request, customer_repo: CustomerRepository | None = None) -> Actor:
    """
    Build the acting customer from ``X-User-ID``.

    The header is set by the upstream auth gateway; this service only checks
    that it names a known customer.
    """
    user_id = request.headers.get("X-User-ID")
    if not user_id:
        raise AuthenticationError("Not authorized to access this route")
    customer = (customer_repo or CustomerRepository()).get_by_id(user_id)
    if customer is None:
        raise AuthenticationError("User not found")
    return Actor.from_customer(customer)


class ErrorHandler:
    """Error handler for API responses."""

    ERROR_CODES = {
        "VALIDATION_ERROR": 400,
        "AUTHENTICATION_REQUIRED": 401,
        "FORBIDDEN": 403,
        "NOT_FOUND": 404,
        "INSUFFICIENT_STOCK": 409,
        "INVALID_STATE": 400,
        "INVALID_TRANSITION": 400,
        "DUPLICATE_REQUEST": 409,
        "INTERNAL_ERROR": 500,
    }

    @classmethod
    def status_for(cls, error: ShopError) -> int:
        return cls.ERROR_CODES.get(error.code, 400)

    @classmethod
    def handle_error(cls, error: Exception, request_id: str | None = None) -> JsonResponse:
        """Handle error and return JSON response."""
        if isinstance(error, ShopError):
            status_code = cls.status_for(error)
            logger.info(
                "request_rejected",
                extra={
                    "request_id": request_id,
                    "status": status_code,
                    "error": error.code,
                },
            )
            return JsonResponse(
                {
                    "error": {
                        "code": error.code,
                        "message": error.message,
                    }
                },
                status=status_code,
            )

        # Log unexpected errors
        logger.error(
            "unexpected_error",
            extra={
                "request_id": request_id,
                "error": f"{type(error).__name__}: {error}",
            },
            exc_info=error,
        )

        return JsonResponse(
            {
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                }
            },
            status=500,
        )
