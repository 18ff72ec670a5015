"""Order aggregate (CQRS) — a booked pickup, wash and delivery.

State machine:
    pending → confirmed → assigned → picked_up → at_facility → washing →
    quality_check → ready_for_delivery → out_for_delivery → delivered
    pending → cancelled

An order may jump forward any number of steps (administrators skip steps
when a driver reports late). ``delivered`` and ``cancelled`` are terminal.

Payment status moves on its own axis:
    pending → paid | failed,  failed → pending | paid,  paid → refunded
"""

import random
import string
import time
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text, ValueObject

from booking.domain import booking
from booking.exceptions import ConflictError
from booking.order.events import (
    DriverAssigned,
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentStatusChanged,
)

TOTAL_TOLERANCE = 0.01


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    AT_FACILITY = "at_facility"
    WASHING = "washing"
    QUALITY_CHECK = "quality_check"
    READY_FOR_DELIVERY = "ready_for_delivery"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CASH = "cash"
    CARD = "card"
    EASYPAISA = "easypaisa"
    JAZZCASH = "jazzcash"


_PROGRESSION = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.AT_FACILITY,
    OrderStatus.WASHING,
    OrderStatus.QUALITY_CHECK,
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]

# State machine transition map: every later step, plus the cancel side path
_VALID_TRANSITIONS = {status: set(_PROGRESSION[index + 1 :]) for index, status in enumerate(_PROGRESSION)}
_VALID_TRANSITIONS[OrderStatus.PENDING].add(OrderStatus.CANCELLED)
_VALID_TRANSITIONS[OrderStatus.CANCELLED] = set()  # Terminal

_TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING, PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}


def generate_order_number() -> str:
    """``WK`` + base-36 millisecond timestamp + a short random suffix."""
    millis = int(time.time() * 1000)
    digits = string.digits + string.ascii_uppercase
    encoded = ""
    while millis:
        millis, remainder = divmod(millis, 36)
        encoded = digits[remainder] + encoded
    suffix = "".join(random.choices(digits, k=3))
    return f"WK{encoded}{suffix}"


def status_label(status: str) -> str:
    return status.replace("_", " ")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@booking.value_object(part_of="Order")
class OrderAddress:
    """Pickup or delivery address captured when the order was placed.

    Later edits to the customer's address book do not change it.
    """

    label = String(max_length=50)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    area = String(required=True, max_length=100)
    city = String(max_length=100, default="Karachi")
    postal_code = String(max_length=20)
    delivery_instructions = Text()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@booking.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    user_id = Identifier()  # Empty for guest orders
    guest_name = String(max_length=100)
    guest_email = String(max_length=255)
    guest_phone = String(max_length=20)
    pickup_address_id = Identifier()
    delivery_address_id = Identifier()
    pickup_address = ValueObject(OrderAddress)
    delivery_address = ValueObject(OrderAddress)
    subtotal = Float(required=True, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True)
    promo_code = String(max_length=20)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_id = String(max_length=100)
    preferred_pickup_time = DateTime()
    preferred_delivery_time = DateTime()
    actual_pickup_time = DateTime()
    actual_delivery_time = DateTime()
    special_instructions = Text()
    assigned_driver_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_breakdown(self):
        expected = (self.subtotal or 0.0) + (self.delivery_fee or 0.0) - (self.discount_amount or 0.0)
        if abs((self.total_amount or 0.0) - expected) > TOTAL_TOLERANCE:
            raise ValidationError({"total_amount": ["Total must equal subtotal plus delivery fee minus discount"]})

    @invariant.post
    def total_cannot_be_negative(self):
        if self.total_amount is not None and self.total_amount < 0:
            raise ValidationError({"total_amount": ["Total cannot be negative"]})

    @invariant.post
    def order_needs_a_customer_or_guest_contact(self):
        if not self.user_id and not (self.guest_name and self.guest_phone):
            raise ValidationError({"user_id": ["Order needs a customer account or guest name and phone"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        pricing,
        pickup_address,
        delivery_address=None,
        payment_method=PaymentMethod.CASH.value,
        user_id=None,
        guest=None,
        **details,
    ):
        """Create a pending order from a price breakdown.

        Args:
            pricing: ``PriceBreakdown`` computed from the live catalogue.
            pickup_address: Address snapshot dict.
            delivery_address: Address snapshot dict; defaults to the pickup address.
            guest: Dict with name, phone and optional email for guest orders.
            details: pickup_address_id, delivery_address_id, preferred times,
                special_instructions.
        """
        now = datetime.now(UTC)
        guest = guest or {}
        order = cls(
            order_number=generate_order_number(),
            user_id=user_id,
            guest_name=guest.get("name"),
            guest_email=guest.get("email"),
            guest_phone=guest.get("phone"),
            pickup_address_id=details.get("pickup_address_id"),
            delivery_address_id=details.get("delivery_address_id") or details.get("pickup_address_id"),
            pickup_address=OrderAddress(**pickup_address),
            delivery_address=OrderAddress(**(delivery_address or pickup_address)),
            subtotal=pricing.subtotal,
            delivery_fee=pricing.delivery_fee,
            discount_amount=pricing.discount,
            total_amount=pricing.total,
            promo_code=pricing.promotion.code if pricing.promotion.is_valid else None,
            status=OrderStatus.PENDING.value,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            preferred_pickup_time=details.get("preferred_pickup_time"),
            preferred_delivery_time=details.get("preferred_delivery_time"),
            special_instructions=details.get("special_instructions"),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id) if user_id else None,
                guest_phone=order.guest_phone,
                total_amount=order.total_amount,
                payment_method=order.payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_guest(self) -> bool:
        return not self.user_id

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in _TERMINAL_STATES

    def belongs_to(self, user_id) -> bool:
        return bool(self.user_id) and str(self.user_id) == str(user_id)

    def can_transition_to(self, target_status) -> bool:
        return OrderStatus(target_status) in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def has_progressed_past(self, status) -> bool:
        """True when the order is already at or beyond ``status`` on the main path."""
        current = OrderStatus(self.status)
        if current == OrderStatus.CANCELLED:
            return True
        return _PROGRESSION.index(current) >= _PROGRESSION.index(OrderStatus(status))

    def amount_matches(self, amount) -> bool:
        return abs((self.total_amount or 0.0) - float(amount)) <= TOTAL_TOLERANCE

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ConflictError(
                f"Cannot transition order {self.order_number} from {current.value} to {target_status.value}",
                current_status=current.value,
            )

    def transition_to(self, target_status, changed_by=None):
        """Move the order to ``target_status``, stamping pickup and delivery times."""
        target = OrderStatus(target_status)
        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        if target == OrderStatus.PICKED_UP:
            self.actual_pickup_time = now
        elif target == OrderStatus.DELIVERED:
            self.actual_delivery_time = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                new_status=target.value,
                changed_by=str(changed_by) if changed_by else None,
                changed_at=now,
            )
        )

    def cancel(self, cancelled_by=None):
        """Cancel a pending order."""
        current = OrderStatus(self.status)
        if current != OrderStatus.PENDING:
            raise ConflictError(
                f"Order {self.order_number} can only be cancelled while pending",
                current_status=current.value,
            )

        self.transition_to(OrderStatus.CANCELLED.value, changed_by=cancelled_by)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                cancelled_by=str(cancelled_by) if cancelled_by else None,
                cancelled_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def update_payment_status(self, target_status, transaction_id=None):
        """Move the payment axis; a repeat of the current status is a no-op."""
        current = PaymentStatus(self.payment_status)
        target = PaymentStatus(target_status)
        if target == current:
            return False
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise ConflictError(
                f"Cannot move payment of order {self.order_number} from {current.value} to {target.value}",
                current_status=self.status,
            )

        self.payment_status = target.value
        if transaction_id:
            self.transaction_id = transaction_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                transaction_id=transaction_id,
            )
        )
        return True

    def choose_payment_method(self, method):
        if PaymentStatus(self.payment_status) in (PaymentStatus.PAID, PaymentStatus.REFUNDED):
            raise ConflictError(
                f"Order {self.order_number} is already {self.payment_status}", current_status=self.status
            )
        self.payment_method = PaymentMethod(method).value
        self.updated_at = datetime.now(UTC)

    def attach_transaction(self, transaction_id):
        """Record a provider reference without moving the payment axis (cash on delivery)."""
        self.transaction_id = transaction_id
        self.updated_at = datetime.now(UTC)

    def assign_driver(self, driver_id):
        self.assigned_driver_id = driver_id
        self.updated_at = datetime.now(UTC)
        self.raise_(DriverAssigned(order_id=str(self.id), driver_id=str(driver_id)))
