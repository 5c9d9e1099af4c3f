"""
Domain error taxonomy.

Every error carries a stable ``code`` that the API layer maps to an HTTP
status (see ``shop.api.middleware.ErrorHandler``).
"""
from __future__ import annotations


class ShopError(Exception):
    """Base class for expected, user-facing errors."""

    code = "SHOP_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(self.message)


class ValidationError(ShopError):
    """Bad input shape or values."""

    code = "VALIDATION_ERROR"


class NotFoundError(ShopError):
    """Missing order, product or customer."""

    code = "NOT_FOUND"


class InsufficientStockError(ShopError):
    """Requested quantity exceeds the product's stock."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, message: str, product_id=None, requested: int | None = None):
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested


class InvalidStateError(ShopError):
    """Operation not allowed in the order's current state."""

    code = "INVALID_STATE"


class InvalidTransitionError(InvalidStateError):
    """Illegal status transition."""

    code = "INVALID_TRANSITION"


class AuthorizationError(ShopError):
    """Actor does not own the order and is not an admin."""

    code = "FORBIDDEN"


class AuthenticationError(ShopError):
    """No (known) actor on the request."""

    code = "AUTHENTICATION_REQUIRED"
