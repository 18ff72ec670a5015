"""Pydantic request/response schemas for the booking API.

These are external contracts, separate from the internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    service_id: str
    quantity: int = 1
    weight_kg: float | None = None


class InlineAddressSchema(BaseModel):
    label: str | None = None
    address_line1: str
    address_line2: str | None = None
    area: str
    city: str | None = "Karachi"
    postal_code: str | None = None
    delivery_instructions: str | None = None


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class AddServiceRequest(BaseModel):
    name: str
    description: str | None = None
    category: str = "wash"
    base_price: float = Field(ge=0)
    price_per_kg: float | None = Field(default=None, ge=0)
    price_per_unit: float | None = Field(default=None, ge=0)
    price_type: str = "per_piece"
    turnaround_hours: int | None = Field(default=None, ge=1)
    is_active: bool = True


class UpdateServiceRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    base_price: float | None = Field(default=None, ge=0)
    price_per_kg: float | None = Field(default=None, ge=0)
    price_per_unit: float | None = Field(default=None, ge=0)
    price_type: str | None = None
    turnaround_hours: int | None = Field(default=None, ge=1)
    is_active: bool | None = None


class ServiceIdResponse(BaseModel):
    service_id: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    service_id: str
    quantity: int = Field(default=1, ge=1)
    weight_kg: float | None = None

    model_config = {
        "json_schema_extra": {"examples": [{"service_id": "svc-wash-fold", "quantity": 1, "weight_kg": 5.0}]}
    }


class UpdateCartQuantityRequest(BaseModel):
    quantity: int


class UpdateCartWeightRequest(BaseModel):
    weight_kg: float


class ApplyPromoRequest(BaseModel):
    promo_code: str


class CheckoutRequest(BaseModel):
    """Checkout a cart: saved addresses when signed in, inline details for guests."""

    pickup_address_id: str | None = None
    delivery_address_id: str | None = None
    guest_name: str | None = None
    guest_phone: str | None = None
    guest_email: str | None = None
    pickup_address: InlineAddressSchema | None = None
    delivery_address: InlineAddressSchema | None = None
    preferred_pickup_time: datetime | None = None
    preferred_delivery_time: datetime | None = None
    special_instructions: str | None = None
    payment_method: str = "cash"
    customer_phone: str | None = None
    customer_email: str | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    items: list[LineItemSchema]
    pickup_address_id: str
    delivery_address_id: str | None = None
    promo_code: str | None = None
    preferred_pickup_time: datetime | None = None
    preferred_delivery_time: datetime | None = None
    special_instructions: str | None = None
    payment_method: str = "cash"
    customer_phone: str | None = None
    customer_email: str | None = None


class PlaceGuestOrderRequest(BaseModel):
    guest_name: str
    guest_phone: str
    guest_email: str | None = None
    items: list[LineItemSchema]
    pickup_address: InlineAddressSchema
    delivery_address: InlineAddressSchema | None = None
    promo_code: str | None = None
    preferred_pickup_time: datetime | None = None
    preferred_delivery_time: datetime | None = None
    special_instructions: str | None = None
    payment_method: str = "cash"


class UpdateOrderRequest(BaseModel):
    status: str | None = None
    payment_status: str | None = None
    assigned_driver_id: str | None = None
    notes: str | None = None
    expected_status: str | None = None


class PaymentRequest(BaseModel):
    amount: float = Field(ge=0)
    payment_method: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------
class ApplyPromotionRequest(BaseModel):
    code: str
    subtotal: float = Field(ge=0)


class CreatePromotionRequest(BaseModel):
    code: str
    description: str | None = None
    discount_type: str
    discount_value: float = Field(ge=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = Field(default=None, ge=1)
    is_active: bool = True


class PromotionIdResponse(BaseModel):
    promotion_id: str


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------
class AddAddressRequest(InlineAddressSchema):
    label: str
    is_primary: bool = False


class UpdateAddressRequest(BaseModel):
    label: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    area: str | None = None
    city: str | None = None
    postal_code: str | None = None
    delivery_instructions: str | None = None
    is_primary: bool | None = None


class AddressIdResponse(BaseModel):
    address_id: str
