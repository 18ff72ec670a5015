"""FastAPI routes for the booking domain.

Routers translate HTTP requests into Protean commands processed
synchronously, plus a handful of read endpoints backed by repositories.
"""

import json

from fastapi import APIRouter, Depends, Query, Request
from protean.utils.globals import current_domain

from booking.address.management import AddAddress, RemoveAddress, SetPrimaryAddress, UpdateAddress, addresses_for
from booking.api.auth import Actor, current_actor, require_admin, require_user
from booking.api.schemas import (
    AddAddressRequest,
    AddressIdResponse,
    AddServiceRequest,
    AddToCartRequest,
    ApplyPromoRequest,
    ApplyPromotionRequest,
    CheckoutRequest,
    CreatePromotionRequest,
    PaymentRequest,
    PlaceGuestOrderRequest,
    PlaceOrderRequest,
    PromotionIdResponse,
    ServiceIdResponse,
    StatusResponse,
    UpdateAddressRequest,
    UpdateCartQuantityRequest,
    UpdateCartWeightRequest,
    UpdateOrderRequest,
    UpdateServiceRequest,
)
from booking.cart.items import (
    AddToCart,
    ApplyPromoToCart,
    ClearCart,
    RemoveFromCart,
    RemovePromoFromCart,
    UpdateCartQuantity,
    UpdateCartWeight,
    cart_quote,
)
from booking.cart.store import CartStore
from booking.catalogue.management import AddService, DeactivateService, UpdateService, active_services
from booking.exceptions import AuthorizationError, DownstreamError
from booking.notification.management import MarkNotificationRead, notifications_for
from booking.order.item import items_for
from booking.order.lifecycle import CancelOrder, UpdateOrder, load_order
from booking.order.order import Order
from booking.order.placement import PlaceGuestOrder, PlaceOrder
from booking.payment.settlement import SettlePayment
from booking.payment.webhook import process_callback
from booking.pricing.areas import AREA_DELIVERY_FEES, AREA_ESTIMATED_TIMES
from booking.pricing.calculator import PricingCalculator
from booking.promotion.management import CreatePromotion, DeactivatePromotion, find_promotion
from booking.tracking.tracking import tracking_for

DEFAULT_ORDER_LIMIT = 50


# ---------------------------------------------------------------------------
# Presenters
# ---------------------------------------------------------------------------
def present_service(service) -> dict:
    data = service.to_dict()
    data["unit_price"] = service.unit_price
    return data


def present_cart(cart) -> dict:
    return {
        "session_id": cart.session_id,
        "items": [
            {
                "service_id": str(item.service_id),
                "service_name": item.service_name,
                "price_type": item.price_type,
                "quantity": item.quantity,
                "weight_kg": item.weight_kg,
                "item_price": cart.item_price(item),
            }
            for item in cart.items
        ],
        "item_count": cart.item_count(),
        "subtotal": cart.subtotal(),
        "promo_code": cart.promo_code,
    }


def present_order(order) -> dict:
    return order.to_dict()


def present_order_detail(order) -> dict:
    return {
        "order": present_order(order),
        "items": [item.to_dict() for item in items_for(order.id)],
        "tracking": [entry.to_dict() for entry in tracking_for(order.id)],
    }


def _visible_order(order_id, actor: Actor):
    order = load_order(order_id)
    if not actor.is_admin and not order.belongs_to(actor.user_id):
        raise AuthorizationError("Forbidden")
    return order


def _settle_new_order(order, actor: Actor, payment_method, customer_phone=None, customer_email=None) -> dict:
    """Run the first payment of a just-placed order."""
    try:
        outcome = current_domain.process(
            SettlePayment(
                order_id=str(order.id),
                actor_id=actor.user_id,
                amount=order.total_amount,
                payment_method=payment_method,
                customer_phone=customer_phone,
                customer_email=customer_email,
            ),
            asynchronous=False,
        )
    except DownstreamError as exc:
        # The order stays placed; the customer can retry payment against it
        raise DownstreamError(exc.message, order_id=str(order.id)) from exc

    return {"order": present_order(outcome.order), "payment": outcome.result.to_dict()}


def _guest_response(order) -> dict:
    return {
        "order": present_order(order),
        "message": (
            f"Order #{order.order_number} placed successfully! "
            f"We will contact you at {order.guest_phone} to confirm."
        ),
    }


# ---------------------------------------------------------------------------
# Service catalogue
# ---------------------------------------------------------------------------
service_router = APIRouter(prefix="/services", tags=["services"])


@service_router.get("")
async def list_services() -> list[dict]:
    return [present_service(service) for service in active_services()]


@service_router.post("", status_code=201, response_model=ServiceIdResponse)
async def add_service(body: AddServiceRequest, actor: Actor = Depends(require_admin)) -> ServiceIdResponse:
    result = current_domain.process(AddService(**body.model_dump()), asynchronous=False)
    return ServiceIdResponse(service_id=result)


@service_router.put("/{service_id}", response_model=StatusResponse)
async def update_service(
    service_id: str, body: UpdateServiceRequest, actor: Actor = Depends(require_admin)
) -> StatusResponse:
    command = UpdateService(service_id=service_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@service_router.delete("/{service_id}", response_model=StatusResponse)
async def deactivate_service(service_id: str, actor: Actor = Depends(require_admin)) -> StatusResponse:
    current_domain.process(DeactivateService(service_id=service_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/{session_id}")
async def get_cart(session_id: str, actor: Actor = Depends(current_actor)) -> dict:
    return present_cart(CartStore().for_session(session_id, customer_id=actor.user_id))


@cart_router.post("/{session_id}/items")
async def add_cart_item(session_id: str, body: AddToCartRequest) -> dict:
    command = AddToCart(
        session_id=session_id,
        service_id=body.service_id,
        quantity=body.quantity,
        weight_kg=body.weight_kg,
    )
    return present_cart(current_domain.process(command, asynchronous=False))


@cart_router.put("/{session_id}/items/{service_id}")
async def update_cart_quantity(session_id: str, service_id: str, body: UpdateCartQuantityRequest) -> dict:
    command = UpdateCartQuantity(session_id=session_id, service_id=service_id, quantity=body.quantity)
    return present_cart(current_domain.process(command, asynchronous=False))


@cart_router.put("/{session_id}/items/{service_id}/weight")
async def update_cart_weight(session_id: str, service_id: str, body: UpdateCartWeightRequest) -> dict:
    command = UpdateCartWeight(session_id=session_id, service_id=service_id, weight_kg=body.weight_kg)
    return present_cart(current_domain.process(command, asynchronous=False))


@cart_router.delete("/{session_id}/items/{service_id}")
async def remove_cart_item(session_id: str, service_id: str) -> dict:
    command = RemoveFromCart(session_id=session_id, service_id=service_id)
    return present_cart(current_domain.process(command, asynchronous=False))


@cart_router.post("/{session_id}/promo")
async def apply_cart_promo(session_id: str, body: ApplyPromoRequest) -> dict:
    command = ApplyPromoToCart(session_id=session_id, promo_code=body.promo_code)
    return present_cart(current_domain.process(command, asynchronous=False))


@cart_router.delete("/{session_id}/promo")
async def remove_cart_promo(session_id: str) -> dict:
    return present_cart(current_domain.process(RemovePromoFromCart(session_id=session_id), asynchronous=False))


@cart_router.post("/{session_id}/clear")
async def clear_cart(session_id: str) -> dict:
    return present_cart(current_domain.process(ClearCart(session_id=session_id), asynchronous=False))


@cart_router.get("/{session_id}/quote")
async def quote_cart(session_id: str, area: str | None = None) -> dict:
    cart, breakdown = cart_quote(session_id, area=area)
    data = breakdown.to_dict()
    data["item_count"] = cart.item_count()
    data["promo_message"] = breakdown.promotion.message
    return data


@cart_router.post("/{session_id}/checkout", status_code=201)
def checkout_cart(session_id: str, body: CheckoutRequest, actor: Actor = Depends(current_actor)) -> dict:
    cart = CartStore().for_session(session_id)
    if cart.customer_id and str(cart.customer_id) != str(actor.user_id):
        raise AuthorizationError("Forbidden", authenticated=actor.is_authenticated)
    items = json.dumps(cart.line_requests())

    if actor.is_authenticated:
        order = current_domain.process(
            PlaceOrder(
                user_id=actor.user_id,
                items=items,
                pickup_address_id=body.pickup_address_id,
                delivery_address_id=body.delivery_address_id,
                promo_code=cart.promo_code,
                preferred_pickup_time=body.preferred_pickup_time,
                preferred_delivery_time=body.preferred_delivery_time,
                special_instructions=body.special_instructions,
                payment_method=body.payment_method,
            ),
            asynchronous=False,
        )
        current_domain.process(ClearCart(session_id=session_id), asynchronous=False)
        return _settle_new_order(order, actor, body.payment_method, body.customer_phone, body.customer_email)

    order = current_domain.process(
        PlaceGuestOrder(
            guest_name=body.guest_name,
            guest_phone=body.guest_phone,
            guest_email=body.guest_email,
            items=items,
            pickup_address=json.dumps(body.pickup_address.model_dump()) if body.pickup_address else None,
            delivery_address=json.dumps(body.delivery_address.model_dump()) if body.delivery_address else None,
            promo_code=cart.promo_code,
            preferred_pickup_time=body.preferred_pickup_time,
            preferred_delivery_time=body.preferred_delivery_time,
            special_instructions=body.special_instructions,
            payment_method=body.payment_method,
        ),
        asynchronous=False,
    )
    current_domain.process(ClearCart(session_id=session_id), asynchronous=False)
    return _guest_response(order)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
def place_order(body: PlaceOrderRequest, actor: Actor = Depends(require_user)) -> dict:
    command = PlaceOrder(
        user_id=actor.user_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        pickup_address_id=body.pickup_address_id,
        delivery_address_id=body.delivery_address_id,
        promo_code=body.promo_code,
        preferred_pickup_time=body.preferred_pickup_time,
        preferred_delivery_time=body.preferred_delivery_time,
        special_instructions=body.special_instructions,
        payment_method=body.payment_method,
    )
    order = current_domain.process(command, asynchronous=False)
    return _settle_new_order(order, actor, body.payment_method, body.customer_phone, body.customer_email)


@order_router.post("/guest", status_code=201)
async def place_guest_order(body: PlaceGuestOrderRequest) -> dict:
    command = PlaceGuestOrder(
        guest_name=body.guest_name,
        guest_phone=body.guest_phone,
        guest_email=body.guest_email,
        items=json.dumps([item.model_dump() for item in body.items]),
        pickup_address=json.dumps(body.pickup_address.model_dump()),
        delivery_address=json.dumps(body.delivery_address.model_dump()) if body.delivery_address else None,
        promo_code=body.promo_code,
        preferred_pickup_time=body.preferred_pickup_time,
        preferred_delivery_time=body.preferred_delivery_time,
        special_instructions=body.special_instructions,
        payment_method=body.payment_method,
    )
    return _guest_response(current_domain.process(command, asynchronous=False))


@order_router.get("")
async def list_orders(
    status: str | None = None,
    limit: int = Query(default=DEFAULT_ORDER_LIMIT, ge=1, le=200),
    actor: Actor = Depends(require_user),
) -> list[dict]:
    filters = {}
    if not actor.is_admin:
        filters["user_id"] = actor.user_id
    if status:
        filters["status"] = status

    query = current_domain.repository_for(Order)._dao.query
    orders = query.filter(**filters).all().items if filters else query.all().items
    orders = sorted(orders, key=lambda order: order.created_at, reverse=True)[:limit]
    return [present_order(order) for order in orders]


@order_router.get("/{order_id}")
async def get_order(order_id: str, actor: Actor = Depends(require_user)) -> dict:
    return present_order_detail(_visible_order(order_id, actor))


@order_router.patch("/{order_id}")
async def update_order(order_id: str, body: UpdateOrderRequest, actor: Actor = Depends(require_admin)) -> dict:
    command = UpdateOrder(order_id=order_id, actor_id=actor.user_id, **body.model_dump(exclude_none=True))
    return present_order(current_domain.process(command, asynchronous=False))


@order_router.delete("/{order_id}")
async def cancel_order(
    order_id: str,
    expected_status: str | None = None,
    actor: Actor = Depends(require_user),
) -> dict:
    command = CancelOrder(
        order_id=order_id,
        actor_id=actor.user_id,
        is_admin=actor.is_admin,
        expected_status=expected_status,
    )
    order = current_domain.process(command, asynchronous=False)
    return {"message": "Order cancelled successfully", "order": present_order(order)}


@order_router.post("/{order_id}/payments")
def pay_for_order(order_id: str, body: PaymentRequest, actor: Actor = Depends(require_user)) -> dict:
    command = SettlePayment(
        order_id=order_id,
        actor_id=actor.user_id,
        amount=body.amount,
        payment_method=body.payment_method,
        customer_phone=body.customer_phone,
        customer_email=body.customer_email,
    )
    outcome = current_domain.process(command, asynchronous=False)
    return {"order": present_order(outcome.order), "payment": outcome.result.to_dict()}


# ---------------------------------------------------------------------------
# Promotions and delivery areas
# ---------------------------------------------------------------------------
promotion_router = APIRouter(tags=["promotions"])


@promotion_router.post("/promotions/apply")
async def apply_promotion(body: ApplyPromotionRequest) -> dict:
    quote = PricingCalculator(promotion_lookup=find_promotion).apply_promotion(body.code, body.subtotal)
    return {
        "code": quote.code,
        "discount": quote.discount,
        "is_valid": quote.is_valid,
        "message": quote.message,
    }


@promotion_router.post("/promotions", status_code=201, response_model=PromotionIdResponse)
async def create_promotion(body: CreatePromotionRequest, actor: Actor = Depends(require_admin)) -> PromotionIdResponse:
    result = current_domain.process(CreatePromotion(**body.model_dump(exclude_none=True)), asynchronous=False)
    return PromotionIdResponse(promotion_id=result)


@promotion_router.delete("/promotions/{promotion_id}", response_model=StatusResponse)
async def deactivate_promotion(promotion_id: str, actor: Actor = Depends(require_admin)) -> StatusResponse:
    current_domain.process(DeactivatePromotion(promotion_id=promotion_id), asynchronous=False)
    return StatusResponse()


@promotion_router.get("/delivery-areas")
async def delivery_areas() -> list[dict]:
    return [
        {"area": area, "fee": fee, "estimated_time": AREA_ESTIMATED_TIMES.get(area)}
        for area, fee in AREA_DELIVERY_FEES.items()
    ]


# ---------------------------------------------------------------------------
# Address book
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.get("")
async def list_addresses(actor: Actor = Depends(require_user)) -> list[dict]:
    return [address.to_dict() for address in addresses_for(actor.user_id)]


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def add_address(body: AddAddressRequest, actor: Actor = Depends(require_user)) -> AddressIdResponse:
    command = AddAddress(user_id=actor.user_id, **body.model_dump(exclude_none=True))
    return AddressIdResponse(address_id=current_domain.process(command, asynchronous=False))


@address_router.put("/{address_id}", response_model=StatusResponse)
async def update_address(
    address_id: str, body: UpdateAddressRequest, actor: Actor = Depends(require_user)
) -> StatusResponse:
    command = UpdateAddress(address_id=address_id, user_id=actor.user_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@address_router.post("/{address_id}/primary", response_model=StatusResponse)
async def set_primary_address(address_id: str, actor: Actor = Depends(require_user)) -> StatusResponse:
    current_domain.process(SetPrimaryAddress(address_id=address_id, user_id=actor.user_id), asynchronous=False)
    return StatusResponse()


@address_router.delete("/{address_id}", response_model=StatusResponse)
async def remove_address(address_id: str, actor: Actor = Depends(require_user)) -> StatusResponse:
    current_domain.process(RemoveAddress(address_id=address_id, user_id=actor.user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notification_router.get("")
async def list_notifications(unread: bool = False, actor: Actor = Depends(require_user)) -> list[dict]:
    return [notification.to_dict() for notification in notifications_for(actor.user_id, unread_only=unread)]


@notification_router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_notification_read(notification_id: str, actor: Actor = Depends(require_user)) -> StatusResponse:
    command = MarkNotificationRead(notification_id=notification_id, user_id=actor.user_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Payment provider webhooks
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/payments")
async def payment_webhook(request: Request, provider: str = Query(...)) -> dict:
    raw_body = await request.body()
    process_callback(provider, raw_body, signature=request.headers.get("stripe-signature"))
    return {"received": True}


@webhook_router.get("/payments")
async def payment_webhook_status() -> dict:
    return {"status": "Webhook endpoint active"}


ALL_ROUTERS = (
    service_router,
    cart_router,
    order_router,
    promotion_router,
    address_router,
    notification_router,
    webhook_router,
)
