"""Promotion aggregate (CQRS) — promo codes redeemable at checkout.

Codes are stored upper-case and matched case-insensitively. A promotion is
redeemable while it is active and the current time falls inside its validity
window. ``times_used`` is a reporting counter; ``usage_limit`` is recorded
but not enforced at checkout.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from booking.domain import booking


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@booking.aggregate
class Promotion:
    code = String(required=True, min_length=3, max_length=20, unique=True)
    description = Text()
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    usage_limit = Integer(min_value=1)
    times_used = Integer(default=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValidationError({"valid_until": ["Promotion must end after it starts"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.discount_value > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @classmethod
    def create(cls, code, discount_type, discount_value, valid_from, valid_until, **optional):
        return cls(
            code=normalize_code(code),
            description=optional.get("description"),
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_amount=optional.get("min_order_amount"),
            max_discount_amount=optional.get("max_discount_amount"),
            valid_from=valid_from,
            valid_until=valid_until,
            usage_limit=optional.get("usage_limit"),
            times_used=0,
            is_active=optional.get("is_active", True),
            created_at=datetime.now(UTC),
        )

    def is_redeemable(self, now: datetime | None = None) -> bool:
        now = _aware(now or datetime.now(UTC))
        return bool(self.is_active) and _aware(self.valid_from) <= now <= _aware(self.valid_until)

    def discount_for(self, subtotal: float) -> float:
        """Discount this promotion grants on ``subtotal``, before clamping to the order total."""
        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = subtotal * self.discount_value / 100
        else:
            discount = self.discount_value

        if self.max_discount_amount is not None:
            discount = min(discount, self.max_discount_amount)
        return round(discount, 2)

    def record_use(self):
        self.times_used = (self.times_used or 0) + 1

    def deactivate(self):
        self.is_active = False


def _aware(value: datetime) -> datetime:
    # Naive datetimes are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
