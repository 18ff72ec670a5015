"""Order placement — turns requested lines into a priced, persisted order.

Prices come from the live catalogue; totals sent by clients are never used.
Everything is validated before the first write. Writes then happen in a
fixed order:

    order header → order items → initial tracking entry →
    promotion usage

The "Order Placed" notification follows from the ``OrderPlaced`` event.

If the items cannot be written, the header is deleted again so that no
order without items is ever left behind.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from booking.address.management import get_user_address
from booking.catalogue.management import get_service
from booking.domain import booking
from booking.exceptions import DownstreamError
from booking.order.item import OrderItem
from booking.order.order import Order, OrderStatus, PaymentMethod
from booking.pricing.calculator import PricedLine, PricingCalculator, line_price
from booking.promotion.management import find_promotion, record_promotion_use
from booking.shared.phone import normalize_phone
from booking.tracking.tracking import append_tracking

logger = structlog.get_logger(__name__)

MIN_WEIGHT_KG = 0.5
INITIAL_TRACKING_NOTE = "Order placed successfully"


def _parse_json(value, field_name):
    if value is None or isinstance(value, (list, dict)):
        return value
    try:
        return json.loads(value)
    except (TypeError, json.JSONDecodeError):
        raise ValidationError({field_name: ["Must be valid JSON"]})


def _save_items(order_id, lines) -> list[OrderItem]:
    repo = current_domain.repository_for(OrderItem)
    items = [OrderItem.from_line(order_id, line) for line in lines]
    for item in items:
        repo.add(item)
    return items


class OrderAssembler:
    def __init__(self, calculator: PricingCalculator | None = None):
        self.calculator = calculator or PricingCalculator(promotion_lookup=find_promotion)

    # -------------------------------------------------------------------
    # Validation and pricing
    # -------------------------------------------------------------------
    def price_lines(self, requested) -> list[PricedLine]:
        """Re-price requested ``{service_id, quantity, weight_kg}`` lines from the catalogue."""
        if not requested:
            raise ValidationError({"items": ["Cart is empty"]})

        lines = []
        for entry in requested:
            service_id = entry.get("service_id")
            if not service_id:
                raise ValidationError({"items": ["Every line needs a service_id"]})
            quantity = entry.get("quantity", 1)
            weight_kg = entry.get("weight_kg")

            if not isinstance(quantity, int) or quantity < 1:
                raise ValidationError({"quantity": ["Quantity must be at least 1"]})

            service = get_service(service_id)
            if not service.is_active:
                raise ValidationError({"service_id": [f"Service {service.name} is not available"]})
            if service.is_weight_priced and (weight_kg is None or weight_kg < MIN_WEIGHT_KG):
                raise ValidationError({"weight_kg": [f"{service.name} needs a weight of at least {MIN_WEIGHT_KG} kg"]})
            if weight_kg is not None and weight_kg < MIN_WEIGHT_KG:
                raise ValidationError({"weight_kg": [f"Weight must be at least {MIN_WEIGHT_KG} kg"]})

            lines.append(
                PricedLine(
                    service_id=str(service.id),
                    service_name=service.name,
                    quantity=quantity,
                    unit_price=service.unit_price,
                    total_price=line_price(
                        service.is_weight_priced, service.piece_price, service.weight_price, quantity, weight_kg
                    ),
                    weight_kg=weight_kg,
                )
            )
        return lines

    @staticmethod
    def guest_contact(name, phone, email=None) -> dict:
        if not name or not name.strip():
            raise ValidationError({"guest_name": ["Name is required"]})
        if not phone:
            raise ValidationError({"guest_phone": ["Phone number is required"]})
        try:
            normalized = normalize_phone(phone)
        except ValueError:
            raise ValidationError({"guest_phone": ["Enter a valid Pakistani mobile number"]})
        return {"name": name.strip(), "phone": normalized, "email": email}

    @staticmethod
    def inline_address(data, field_name) -> dict:
        if not isinstance(data, dict):
            raise ValidationError({field_name: ["Address is required"]})
        if not (data.get("address_line1") or "").strip():
            raise ValidationError({field_name: ["Street address is required"]})
        if not (data.get("area") or "").strip():
            raise ValidationError({field_name: ["Area is required"]})
        return {
            "label": data.get("label"),
            "address_line1": data["address_line1"].strip(),
            "address_line2": data.get("address_line2"),
            "area": data["area"].strip(),
            "city": data.get("city") or "Karachi",
            "postal_code": data.get("postal_code"),
            "delivery_instructions": data.get("delivery_instructions"),
        }

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def persist(self, order, lines):
        repo = current_domain.repository_for(Order)
        repo.add(order)

        try:
            _save_items(order.id, lines)
        except Exception as exc:
            logger.error("Order items write failed, removing header", order_id=str(order.id), error=str(exc))
            self._discard_header(order)
            raise DownstreamError("Failed to save order items", order_id=str(order.id)) from exc

        append_tracking(order.id, OrderStatus.PENDING.value, notes=INITIAL_TRACKING_NOTE)
        if order.promo_code:
            record_promotion_use(order.promo_code)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=order.total_amount,
            items=len(lines),
        )
        return order

    @staticmethod
    def _discard_header(order):
        repo = current_domain.repository_for(Order)
        try:
            repo._dao.delete(order)
        except Exception as exc:
            logger.error("Failed to remove order header", order_id=str(order.id), error=str(exc))
            raise DownstreamError("Failed to save order items", order_id=str(order.id)) from exc

    # -------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------
    def place_registered(self, command):
        requested = _parse_json(command.items, "items")
        lines = self.price_lines(requested)

        pickup = get_user_address(command.pickup_address_id, command.user_id)
        delivery = pickup
        if command.delivery_address_id and str(command.delivery_address_id) != str(command.pickup_address_id):
            delivery = get_user_address(command.delivery_address_id, command.user_id)

        pricing = self.calculator.quote(lines, area=delivery.area, promo_code=command.promo_code)
        order = Order.place(
            pricing,
            pickup_address=pickup.snapshot(),
            delivery_address=delivery.snapshot(),
            payment_method=command.payment_method,
            user_id=command.user_id,
            pickup_address_id=str(pickup.id),
            delivery_address_id=str(delivery.id),
            preferred_pickup_time=command.preferred_pickup_time,
            preferred_delivery_time=command.preferred_delivery_time,
            special_instructions=command.special_instructions,
        )
        return self.persist(order, lines)

    def place_guest(self, command):
        requested = _parse_json(command.items, "items")
        lines = self.price_lines(requested)
        guest = self.guest_contact(command.guest_name, command.guest_phone, command.guest_email)

        pickup = self.inline_address(_parse_json(command.pickup_address, "pickup_address"), "pickup_address")
        delivery_data = _parse_json(command.delivery_address, "delivery_address")
        delivery = self.inline_address(delivery_data, "delivery_address") if delivery_data else pickup

        pricing = self.calculator.quote(lines, area=delivery["area"], promo_code=command.promo_code)
        order = Order.place(
            pricing,
            pickup_address=pickup,
            delivery_address=delivery,
            payment_method=command.payment_method,
            guest=guest,
            preferred_pickup_time=command.preferred_pickup_time,
            preferred_delivery_time=command.preferred_delivery_time,
            special_instructions=command.special_instructions,
        )
        return self.persist(order, lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@booking.command(part_of="Order")
class PlaceOrder:
    """Place an order for a signed-in customer using saved addresses."""

    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {service_id, quantity, weight_kg}
    pickup_address_id = Identifier(required=True)
    delivery_address_id = Identifier()
    promo_code = String(max_length=20)
    preferred_pickup_time = DateTime()
    preferred_delivery_time = DateTime()
    special_instructions = Text()
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)


@booking.command(part_of="Order")
class PlaceGuestOrder:
    """Place an order without an account, with contact and address inline."""

    guest_name = String(required=True, max_length=100)
    guest_phone = String(required=True, max_length=20)
    guest_email = String(max_length=255)
    items = Text(required=True)  # JSON: list of {service_id, quantity, weight_kg}
    pickup_address = Text(required=True)  # JSON: address dict
    delivery_address = Text()  # JSON: address dict, defaults to pickup
    promo_code = String(max_length=20)
    preferred_pickup_time = DateTime()
    preferred_delivery_time = DateTime()
    special_instructions = Text()
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)


@booking.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        return OrderAssembler().place_registered(command)

    @handle(PlaceGuestOrder)
    def place_guest_order(self, command):
        return OrderAssembler().place_guest(command)
