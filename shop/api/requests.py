"""
Request body schemas. Bodies are validated here before they reach the
order service.
"""
from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from shop.domain.errors import ValidationError
from shop.domain.order import PaymentMethod, PaymentResult, ShippingAddress


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class OrderItemIn(ApiModel):
    product: UUID = Field(validation_alias=AliasChoices("product", "productId"))
    quantity: int = Field(ge=1)


class ShippingAddressIn(ApiModel):
    full_name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = ""
    country: str = Field(min_length=1)
    phone_number: str = Field(min_length=1)

    @field_validator("postal_code", mode="before")
    @classmethod
    def _null_as_blank(cls, value):
        return "" if value is None else value

    def to_domain(self) -> ShippingAddress:
        return ShippingAddress(**self.model_dump())


class CreateOrderRequest(ApiModel):
    items: list[OrderItemIn] = Field(min_length=1)
    shipping_address: ShippingAddressIn
    payment_method: PaymentMethod
    notes: str | None = None

    def items_for_service(self) -> list[dict]:
        return [{"product_id": item.product, "quantity": item.quantity} for item in self.items]


class PaymentResultIn(ApiModel):
    id: str = Field(min_length=1)
    status: str = Field(min_length=1)
    update_time: str = ""
    email_address: str = ""

    @field_validator("update_time", "email_address", mode="before")
    @classmethod
    def _null_as_blank(cls, value):
        return "" if value is None else value

    def to_domain(self) -> PaymentResult:
        return PaymentResult(**self.model_dump())


class CashOnDeliveryPayment(ApiModel):
    payment_method: Literal["cash-on-delivery"]

    @property
    def payment_result(self) -> None:
        return None

    @property
    def cash_on_delivery(self) -> bool:
        return True


class OnlinePayment(ApiModel):
    payment_method: Literal["credit-card", "paypal"] | None = None
    payment_result: PaymentResultIn

    @property
    def cash_on_delivery(self) -> bool:
        return False


def _payment_kind(value: Any) -> str:
    if isinstance(value, dict):
        method = value.get("paymentMethod", value.get("payment_method"))
    else:
        method = getattr(value, "payment_method", None)
    return "cash-on-delivery" if method == PaymentMethod.CASH_ON_DELIVERY.value else "online"


PayOrderRequest = Annotated[
    Union[
        Annotated[CashOnDeliveryPayment, Tag("cash-on-delivery")],
        Annotated[OnlinePayment, Tag("online")],
    ],
    Discriminator(_payment_kind),
]
pay_order_adapter = TypeAdapter(PayOrderRequest)


class UpdateStatusRequest(ApiModel):
    status: str = Field(min_length=1)
    tracking_number: str | None = None


def validate(schema, data: Any):
    """Validate ``data`` against a model or TypeAdapter, raising the domain ValidationError."""
    try:
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(data)
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_describe(e)) from None


def parse_json_body(request) -> Any:
    if not request.body:
        return {}
    try:
        return json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON") from None


def _describe(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)
