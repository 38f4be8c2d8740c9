"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Field-level validation of client input happens
here; business rules stay in the aggregates.
"""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")

OrderStatusLiteral = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
PaymentMethodLiteral = Literal["card", "upi", "cod"]


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    street: str
    city: str
    state: str | None = None
    zip_code: str
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("first_name", "last_name", "street", "city", "zip_code")
    @classmethod
    def must_not_be_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        if not EMAIL_PATTERN.match(value):
            raise ValueError("is not a valid email address")
        return value

    @field_validator("phone")
    @classmethod
    def phone_format(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        if not PHONE_PATTERN.match(_PHONE_SEPARATORS.sub("", value)):
            raise ValueError("is not a valid phone number")
        return value


class ProductSnapshotSchema(BaseModel):
    product_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    image: str | None = None
    brand: str | None = None


class OrderItemSchema(BaseModel):
    product: ProductSnapshotSchema
    quantity: int = Field(gt=0)
    price: float = Field(gt=0)


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1, default=1)
    color: str | None = None
    variant: str | None = None


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=0)


class CheckoutRequest(BaseModel):
    shipping_address: AddressSchema
    payment_method: PaymentMethodLiteral

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "first_name": "Asha",
                        "last_name": "Rao",
                        "email": "asha@example.com",
                        "phone": "+91 98765-43210",
                        "street": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "KA",
                        "zip_code": "560001",
                        "country": "India",
                    },
                    "payment_method": "upi",
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    items: list[OrderItemSchema] = Field(min_length=1)
    shipping_address: AddressSchema
    payment_method: PaymentMethodLiteral
    subtotal: float = Field(ge=0)
    shipping: float = Field(ge=0, default=0.0)
    tax: float = Field(ge=0, default=0.0)
    total: float = Field(gt=0)


class UpdateStatusRequest(BaseModel):
    status: OrderStatusLiteral
    description: str | None = None
    location: str | None = None
    tracking_status: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1)


class RefundRequest(BaseModel):
    reason: str = Field(min_length=1)
    amount: float | None = Field(default=None, gt=0)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartItemResponse(BaseModel):
    product_id: str
    quantity: int
    unit_price: float
    line_total: float
    selected_color: str | None = None
    selected_variant: str | None = None
    added_at: str | None = None


class CartResponse(BaseModel):
    total_items: int
    total_price: float
    item_count: int
    items: list[CartItemResponse]


class CartCountResponse(BaseModel):
    count: int


class TrackingEntryResponse(BaseModel):
    status: str
    description: str | None = None
    location: str | None = None
    timestamp: datetime


class TimelineStageResponse(BaseModel):
    status: str
    date: datetime | None = None
    completed: bool


class OrderItemResponse(BaseModel):
    product: ProductSnapshotSchema
    quantity: int
    price: float


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    tracking_number: str
    customer_id: str
    items: list[OrderItemResponse]
    shipping_address: AddressSchema | None = None
    payment_method: str
    payment_status: str
    order_status: str
    subtotal: float
    shipping: float
    tax: float
    total: float
    estimated_delivery: datetime | None = None
    delivered_at: datetime | None = None
    shipping_carrier: str | None = None
    shipping_method: str | None = None
    tracking_history: list[TrackingEntryResponse]
    notes: str | None = None
    cancellation_reason: str | None = None
    refund_amount: float | None = None
    refund_status: str
    can_cancel: bool
    can_request_refund: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class TrackingResponse(BaseModel):
    order_number: str
    tracking_number: str
    order_status: str
    current_status: TrackingEntryResponse | None = None
    estimated_delivery: datetime | None = None
    timeline: list[TimelineStageResponse]
    tracking_history: list[TrackingEntryResponse]
    shipping_carrier: str | None = None
    shipping_method: str | None = None
