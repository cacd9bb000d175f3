"""Pydantic request/response schemas for the Checkout API.

These are external contracts, kept separate from the domain's dataclasses
and protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomerSchema(BaseModel):
    user_id: str
    name: str = ""
    email: str | None = None
    phone: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class VariantHintSchema(BaseModel):
    size: str | None = None
    color: str | None = None
    variant_id: str | None = None


class CartLineSchema(BaseModel):
    line_id: str = Field(min_length=1)
    raw_product_ref: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    variant_hint: VariantHintSchema = Field(default_factory=VariantHintSchema)
    name: str = ""
    sku: str | None = None
    image: str | None = None
    stock_hint: int | None = Field(default=None, ge=0)
    is_resale_flagged: bool = False
    resale_price: float | None = None


class CartResponse(BaseModel):
    user_id: str
    lines: list[CartLineSchema]


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    customer: CustomerSchema
    coupon_code: str | None = None
    payment_method: str = "cod"
    payment_status: str = Field(default="pending", pattern="^(pending|paid)$")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer": {"user_id": "3f0e4a51-8d1b-4c8e-9a57-2a4f6b9d1c20", "name": "Asha Rao"},
                    "coupon_code": "WELCOME10",
                    "payment_method": "cod",
                    "payment_status": "pending",
                }
            ]
        }
    }


class OrderRefSchema(BaseModel):
    order_id: str
    order_number: str
    status: str
    payable: float
    item_count: int
    ledger_synced: bool


class BackorderSchema(BaseModel):
    draft_id: str | None = None
    draft_number: str | None = None
    processed_count: int
    skipped_count: int
    skipped_line_ids: list[str] = []


class CheckoutResponse(BaseModel):
    order: OrderRefSchema | None = None
    backorder: BackorderSchema | None = None
    backorder_failed: bool = False


class CouponQuoteRequest(BaseModel):
    user_id: str
    code: str = Field(min_length=1, max_length=50)


class CouponQuoteResponse(BaseModel):
    code: str
    discount_amount: float
    subtotal: float


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class RegisterCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    discount_type: str = Field(pattern="^(percentage|fixed)$")
    discount_value: float = Field(ge=0)
    min_order_value: float | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    max_uses: int | None = Field(default=None, ge=0)
    per_user_limit: int | None = Field(default=None, ge=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "WELCOME10",
                    "discount_type": "percentage",
                    "discount_value": 10,
                    "min_order_value": 500,
                    "per_user_limit": 1,
                }
            ]
        }
    }


class CouponIdResponse(BaseModel):
    coupon_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str | None = None
    variant_id: str | None = None
    name: str | None = None
    sku: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: float
    total_price: float
    is_resale: bool = False


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    status: str
    payment_method: str | None = None
    payment_status: str
    subtotal: float
    discount_amount: float
    shipping_amount: float
    total_amount: float
    currency: str
    coupon_code: str | None = None
    is_reseller_order: bool = False
    reseller_profit: float | None = None
    items: list[OrderItemResponse]


class DraftItemResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    name: str | None = None
    quantity: int
    unit_price: float
    total_price: float


class BackorderResponse(BaseModel):
    draft_id: str
    draft_number: str
    user_id: str
    status: str
    total_amount: float
    shipping_address: str
    notes: str | None = None
    items: list[DraftItemResponse]
