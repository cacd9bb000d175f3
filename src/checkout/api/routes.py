"""FastAPI routes for carts, checkout, coupons, and the orders and drafts checkout produces."""

from fastapi import APIRouter, HTTPException
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from checkout.api.schemas import (
    BackorderResponse,
    BackorderSchema,
    CartLineSchema,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    CouponIdResponse,
    CouponQuoteRequest,
    CouponQuoteResponse,
    DraftItemResponse,
    OrderItemResponse,
    OrderRefSchema,
    OrderResponse,
    RegisterCouponRequest,
    StatusResponse,
    VariantHintSchema,
)
from checkout.backorder.draft import BackorderDraft
from checkout.cart import get_cart_store
from checkout.cart.port import CartLine, VariantHint
from checkout.coupon.registration import DeactivateCoupon, RegisterCoupon
from checkout.customer import CustomerProfile
from checkout.domain import checkout
from checkout.errors import CheckoutError
from checkout.order.materializer import PaymentDetails
from checkout.order.order import Order
from checkout.orchestrator import CheckoutOutcome, CheckoutService


def _http_error(exc: CheckoutError) -> HTTPException:
    return HTTPException(status_code=exc.http_status, detail=exc.to_dict())


def _outcome_response(outcome: CheckoutOutcome) -> CheckoutResponse:
    order = None
    if outcome.order is not None:
        order = OrderRefSchema(
            order_id=outcome.order.order_id,
            order_number=outcome.order.order_number,
            status=outcome.order.status,
            payable=outcome.order.payable,
            item_count=outcome.order.item_count,
            ledger_synced=outcome.order.ledger_synced,
        )

    backorder = None
    if outcome.backorder is not None:
        draft = outcome.backorder.draft
        backorder = BackorderSchema(
            draft_id=draft.draft_id if draft else None,
            draft_number=draft.draft_number if draft else None,
            processed_count=outcome.backorder.processed_count,
            skipped_count=outcome.backorder.skipped_count,
            skipped_line_ids=list(outcome.backorder.skipped_line_ids),
        )

    return CheckoutResponse(order=order, backorder=backorder, backorder_failed=outcome.backorder_failed)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkouts", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
def place_checkout(body: CheckoutRequest) -> CheckoutResponse:
    """Runs in the threadpool: lookups block on worker futures."""
    service = CheckoutService(
        customer=CustomerProfile(**body.customer.model_dump()),
        payment=PaymentDetails(method=body.payment_method, status=body.payment_status),
    )
    with checkout.domain_context():
        try:
            outcome = service.checkout(coupon_code=body.coupon_code)
        except CheckoutError as exc:
            raise _http_error(exc) from exc
    return _outcome_response(outcome)


@checkout_router.post("/coupons/quote", response_model=CouponQuoteResponse)
async def quote_coupon(body: CouponQuoteRequest) -> CouponQuoteResponse:
    service = CheckoutService(customer=CustomerProfile(user_id=body.user_id))
    try:
        applied = service.apply_coupon(body.code)
    except CheckoutError as exc:
        raise _http_error(exc) from exc
    return CouponQuoteResponse(
        code=applied.code,
        discount_amount=applied.discount_amount,
        subtotal=applied.subtotal,
    )


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def register_coupon(body: RegisterCouponRequest) -> CouponIdResponse:
    command = RegisterCoupon(**body.model_dump())
    try:
        result = current_domain.process(command, asynchronous=False)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.messages) from exc
    return CouponIdResponse(coupon_id=result)


@coupon_router.put("/{code}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(code: str) -> StatusResponse:
    try:
        current_domain.process(DeactivateCoupon(code=code), asynchronous=False)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Coupon {code} not found") from exc
    except ValidationError as exc:
        raise HTTPException(status_code=409, detail=exc.messages) from exc
    return StatusResponse(status="deactivated")


# ---------------------------------------------------------------------------
# Order and Backorder Routers
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])
backorder_router = APIRouter(prefix="/backorders", tags=["backorders"])


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found") from exc

    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        shipping_amount=order.shipping_amount,
        total_amount=order.total_amount,
        currency=order.currency,
        coupon_code=order.coupon_code,
        is_reseller_order=order.is_reseller_order,
        reseller_profit=order.reseller_profit,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id) if item.product_id else None,
                variant_id=str(item.variant_id) if item.variant_id else None,
                name=item.name,
                sku=item.sku,
                size=item.size,
                color=item.color,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
                is_resale=item.is_resale,
            )
            for item in order.items
        ],
    )


@backorder_router.get("/{draft_id}", response_model=BackorderResponse)
async def get_backorder(draft_id: str) -> BackorderResponse:
    try:
        draft = current_domain.repository_for(BackorderDraft).get(draft_id)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Backorder {draft_id} not found") from exc

    return BackorderResponse(
        draft_id=str(draft.id),
        draft_number=draft.draft_number,
        user_id=str(draft.user_id),
        status=draft.status,
        total_amount=draft.total_amount,
        shipping_address=draft.shipping_address,
        notes=draft.notes,
        items=[
            DraftItemResponse(
                product_id=str(item.product_id),
                variant_id=str(item.variant_id) if item.variant_id else None,
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
            )
            for item in draft.items
        ],
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _cart_response(user_id: str) -> CartResponse:
    lines = get_cart_store().list(user_id)
    return CartResponse(
        user_id=user_id,
        lines=[
            CartLineSchema(
                line_id=line.line_id,
                raw_product_ref=line.raw_product_ref,
                quantity=line.quantity,
                unit_price=line.unit_price,
                variant_hint=VariantHintSchema(
                    size=line.variant_hint.size,
                    color=line.variant_hint.color,
                    variant_id=line.variant_hint.variant_id,
                ),
                name=line.name,
                sku=line.sku,
                image=line.image,
                stock_hint=line.stock_hint,
                is_resale_flagged=line.is_resale_flagged,
                resale_price=line.resale_price,
            )
            for line in lines
        ],
    )


@cart_router.post("/{user_id}/lines", status_code=201, response_model=CartResponse)
async def add_cart_line(user_id: str, body: CartLineSchema) -> CartResponse:
    data = body.model_dump()
    data["variant_hint"] = VariantHint(**data["variant_hint"])
    get_cart_store().add(user_id, CartLine(**data))
    return _cart_response(user_id)


@cart_router.get("/{user_id}", response_model=CartResponse)
async def get_cart(user_id: str) -> CartResponse:
    return _cart_response(user_id)


@cart_router.delete("/{user_id}", response_model=StatusResponse)
async def clear_cart(user_id: str) -> StatusResponse:
    get_cart_store().clear(user_id)
    return StatusResponse(status="cleared")
