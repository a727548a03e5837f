"""FastAPI routes for the backoffice — orders, products, accounts and settings."""

import json
from dataclasses import asdict

from fastapi import APIRouter
from protean.utils.globals import current_domain

from backoffice.api.schemas import (
    AccountIdResponse,
    AccountResponse,
    AdjustBonusRequest,
    ApproveOrderRequest,
    BalanceResponse,
    BulkOrderRequest,
    BulkResultResponse,
    CreateProductRequest,
    GenerateVariantsRequest,
    OrderIdResponse,
    OrderItemResponse,
    OrderOutcomeResponse,
    OrderResponse,
    PlaceOrderRequest,
    ProductIdResponse,
    ProductResponse,
    RegisterAccountRequest,
    RejectOrderRequest,
    SetStockRequest,
    SetVariantStockRequest,
    SettingsResponse,
    StockChangeResponse,
    StockReportResponse,
    SubscribeRequest,
    SubscriptionIdResponse,
    UpdateOrderStatusRequest,
    UpdateSettingsRequest,
    VariantCountResponse,
    VariantSchema,
)
from backoffice.inventory.management import (
    CreateProduct,
    GenerateVariantMatrix,
    SetProductStock,
    SetVariantStock,
)
from backoffice.inventory.product import Product
from backoffice.inventory.reports import stock_report
from backoffice.inventory.subscription import SubscribeToRestock
from backoffice.loyalty.account import Account
from backoffice.loyalty.management import AdjustBonusPoints, RegisterAccount
from backoffice.ordering.bulk import run_bulk
from backoffice.ordering.lifecycle import ApproveOrder, DeleteOrder, RejectOrder, UpdateOrderStatus
from backoffice.ordering.order import Order
from backoffice.ordering.placement import PlaceOrder
from backoffice.settings.management import UpdateSettings
from backoffice.settings.settings import load_engine_config

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    command = PlaceOrder(
        customer_id=body.customer_id,
        items=json.dumps(body.items),
        total=body.total,
        currency=body.currency,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.post("/bulk", response_model=BulkResultResponse)
async def bulk_orders(body: BulkOrderRequest) -> BulkResultResponse:
    result = run_bulk(body.order_ids, body.operation, target_status=body.target_status, reason=body.reason)
    return BulkResultResponse(succeeded=result.succeeded, failed=result.failed, errors=result.errors)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        status=order.status,
        total=order.total,
        currency=order.currency,
        version=order._version,
        awarded_bonus=order.awarded_bonus or 0,
        referral_commission=order.referral_commission or 0,
        referrer_id=str(order.referrer_id) if order.referrer_id else None,
        stock_deducted=bool(order.stock_deducted),
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                color=item.color,
                size=item.size,
                title=item.title,
                quantity=item.quantity,
                unit_price=item.unit_price,
                deducted_quantity=item.deducted_quantity or 0,
            )
            for item in order.items
        ],
    )


@order_router.post("/{order_id}/approve", response_model=OrderOutcomeResponse)
async def approve_order(order_id: str, body: ApproveOrderRequest | None = None) -> OrderOutcomeResponse:
    command = ApproveOrder(
        order_id=order_id,
        expected_version=body.expected_version if body else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderOutcomeResponse(**result)


@order_router.post("/{order_id}/reject", response_model=OrderOutcomeResponse)
async def reject_order(order_id: str, body: RejectOrderRequest | None = None) -> OrderOutcomeResponse:
    command = RejectOrder(
        order_id=order_id,
        expected_version=body.expected_version if body else None,
        reason=body.reason if body else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderOutcomeResponse(**result)


@order_router.put("/{order_id}/status", response_model=OrderOutcomeResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderOutcomeResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        expected_version=body.expected_version,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderOutcomeResponse(**result)


@order_router.delete("/{order_id}", response_model=OrderIdResponse)
async def delete_order(order_id: str, expected_version: int | None = None) -> OrderIdResponse:
    command = DeleteOrder(order_id=order_id, expected_version=expected_version)
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest) -> ProductIdResponse:
    command = CreateProduct(
        name=body.name,
        price=body.price,
        stock=body.stock,
        variants=json.dumps([v.model_dump(exclude_none=True) for v in body.variants]) if body.variants else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("/stock-report", response_model=StockReportResponse)
async def get_stock_report(threshold: int | None = None) -> StockReportResponse:
    if threshold is None:
        threshold = load_engine_config().low_stock_threshold
    return StockReportResponse(**stock_report(threshold))


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = current_domain.repository_for(Product).get(product_id)
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        price=product.price,
        stock=product.stock,
        total_stock=product.total_stock(),
        variants=[VariantSchema(color=v.color, size=v.size, stock=v.stock, sku=v.sku) for v in product.variants],
    )


@product_router.put("/{product_id}/variants", response_model=VariantCountResponse)
async def generate_variants(product_id: str, body: GenerateVariantsRequest) -> VariantCountResponse:
    command = GenerateVariantMatrix(product_id=product_id, colors=body.colors, sizes=body.sizes)
    result = current_domain.process(command, asynchronous=False)
    return VariantCountResponse(variant_count=result)


@product_router.put("/{product_id}/stock", response_model=StockChangeResponse)
async def set_product_stock(product_id: str, body: SetStockRequest) -> StockChangeResponse:
    command = SetProductStock(product_id=product_id, stock=body.stock)
    result = current_domain.process(command, asynchronous=False)
    return StockChangeResponse(**result)


@product_router.put("/{product_id}/variants/stock", response_model=StockChangeResponse)
async def set_variant_stock(product_id: str, body: SetVariantStockRequest) -> StockChangeResponse:
    command = SetVariantStock(product_id=product_id, color=body.color, size=body.size, stock=body.stock)
    result = current_domain.process(command, asynchronous=False)
    return StockChangeResponse(**result)


@product_router.post("/{product_id}/subscriptions", status_code=201, response_model=SubscriptionIdResponse)
async def subscribe_to_restock(product_id: str, body: SubscribeRequest) -> SubscriptionIdResponse:
    command = SubscribeToRestock(
        product_id=product_id,
        account_id=body.account_id,
        color=body.color,
        size=body.size,
    )
    result = current_domain.process(command, asynchronous=False)
    return SubscriptionIdResponse(subscription_id=result)


# ---------------------------------------------------------------------------
# Account Router
# ---------------------------------------------------------------------------
account_router = APIRouter(prefix="/accounts", tags=["accounts"])


@account_router.post("", status_code=201, response_model=AccountIdResponse)
async def register_account(body: RegisterAccountRequest) -> AccountIdResponse:
    command = RegisterAccount(
        name=body.name,
        referred_by=body.referred_by,
        chat_id=body.chat_id,
        referral_code=body.referral_code,
    )
    result = current_domain.process(command, asynchronous=False)
    return AccountIdResponse(account_id=result)


@account_router.get("/{account_id}", response_model=AccountResponse)
async def get_account(account_id: str) -> AccountResponse:
    account = current_domain.repository_for(Account).get(account_id)
    return AccountResponse(
        account_id=str(account.id),
        name=account.name,
        referral_code=account.referral_code,
        referred_by=account.referred_by,
        bonus_balance=account.bonus_balance or 0,
        bonus_debt=account.bonus_debt or 0,
        referral_count=account.referral_count or 0,
        approved_order_count=account.approved_order_count or 0,
    )


@account_router.post("/{account_id}/bonus-adjustments", response_model=BalanceResponse)
async def adjust_bonus(account_id: str, body: AdjustBonusRequest) -> BalanceResponse:
    command = AdjustBonusPoints(account_id=account_id, delta=body.delta, reason=body.reason)
    result = current_domain.process(command, asynchronous=False)
    return BalanceResponse(bonus_balance=result)


# ---------------------------------------------------------------------------
# Settings Router
# ---------------------------------------------------------------------------
settings_router = APIRouter(prefix="/settings", tags=["settings"])


@settings_router.get("", response_model=SettingsResponse)
async def get_settings() -> SettingsResponse:
    return SettingsResponse(**asdict(load_engine_config()))


@settings_router.put("", response_model=SettingsResponse)
async def update_settings(body: UpdateSettingsRequest) -> SettingsResponse:
    command = UpdateSettings(**body.model_dump(exclude_none=True))
    result = current_domain.process(command, asynchronous=False)
    return SettingsResponse(**asdict(result))
