"""Pydantic request/response schemas for the backoffice API.

These are external contracts, separate from the internal Protean commands.
Order line items are accepted in any of the shapes checkout clients send
and normalized by the placement handler.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str
    items: list[dict[str, Any]] = Field(min_length=1)
    total: float | None = Field(default=None, ge=0)
    currency: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "acc-001",
                    "items": [
                        {"id": "prod-001", "selectedColor": "Red", "selectedSize": "M", "quantity": 2, "price": 50000},
                    ],
                    "total": 100000,
                }
            ]
        }
    }


class ApproveOrderRequest(BaseModel):
    expected_version: int | None = None


class RejectOrderRequest(BaseModel):
    expected_version: int | None = None
    reason: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    expected_version: int | None = None


class BulkOrderRequest(BaseModel):
    order_ids: list[str]
    operation: Literal["approve", "reject", "delete", "update_status"]
    target_status: str | None = None
    reason: str | None = None


class OrderIdResponse(BaseModel):
    order_id: str


class OrderItemResponse(BaseModel):
    product_id: str
    color: str | None = None
    size: str | None = None
    title: str | None = None
    quantity: int
    unit_price: float
    deducted_quantity: int = 0


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    total: float
    currency: str
    version: int
    awarded_bonus: int
    referral_commission: int
    referrer_id: str | None = None
    stock_deducted: bool
    items: list[OrderItemResponse]


class OrderOutcomeResponse(BaseModel):
    order_id: str
    status: str
    warnings: list[dict[str, Any]] = []
    stock_changes: list[dict[str, Any]] = []
    bonus_awarded: int = 0
    bonus_debited: int = 0
    bonus_shortfall: int = 0
    referral_commission: int = 0


class BulkResultResponse(BaseModel):
    succeeded: int
    failed: int
    errors: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class VariantSchema(BaseModel):
    color: str
    size: str
    stock: int = Field(default=0, ge=0)
    sku: str | None = None


class CreateProductRequest(BaseModel):
    name: str
    price: float = Field(default=0.0, ge=0)
    stock: int = Field(default=0, ge=0)
    variants: list[VariantSchema] = []


class GenerateVariantsRequest(BaseModel):
    colors: list[str] = Field(min_length=1)
    sizes: list[str] = Field(min_length=1)


class SetStockRequest(BaseModel):
    stock: int = Field(ge=0)


class SetVariantStockRequest(BaseModel):
    color: str
    size: str
    stock: int = Field(ge=0)


class SubscribeRequest(BaseModel):
    account_id: str
    color: str | None = None
    size: str | None = None


class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    product_id: str
    name: str
    price: float
    stock: int
    total_stock: int
    variants: list[VariantSchema]


class StockChangeResponse(BaseModel):
    product_id: str
    variant: str | None = None
    previous_stock: int
    new_stock: int
    requested: int


class VariantCountResponse(BaseModel):
    variant_count: int


class SubscriptionIdResponse(BaseModel):
    subscription_id: str


class StockReportResponse(BaseModel):
    threshold: int
    low_stock: list[dict[str, Any]]
    out_of_stock: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------
class RegisterAccountRequest(BaseModel):
    name: str
    referred_by: str | None = None
    chat_id: str | None = None
    referral_code: str | None = None


class AdjustBonusRequest(BaseModel):
    delta: int
    reason: str | None = None


class AccountIdResponse(BaseModel):
    account_id: str


class AccountResponse(BaseModel):
    account_id: str
    name: str
    referral_code: str
    referred_by: str | None = None
    bonus_balance: int
    bonus_debt: int
    referral_count: int
    approved_order_count: int


class BalanceResponse(BaseModel):
    bonus_balance: int


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
class UpdateSettingsRequest(BaseModel):
    purchase_bonus_rate: float | None = Field(default=None, ge=0, le=100)
    referral_commission_rate: float | None = Field(default=None, ge=0, le=100)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    referral_policy: Literal["first_order", "every_order"] | None = None
    allow_approval_reversal: bool | None = None


class SettingsResponse(BaseModel):
    purchase_bonus_rate: float
    referral_commission_rate: float
    low_stock_threshold: int
    referral_policy: str
    allow_approval_reversal: bool
    currency: str
