"""Pricing calculator — line prices, delivery fee, promo discount and order total.

The same calculator prices a cart preview and the order the assembler
persists, so the two can never disagree. Promotions are looked up through an
injected callable, which keeps the arithmetic free of persistence concerns.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from booking.pricing.areas import AREA_DELIVERY_FEES, DEFAULT_DELIVERY_FEE, FREE_DELIVERY_THRESHOLD

logger = structlog.get_logger(__name__)

INVALID_PROMO_MESSAGE = "Invalid promo code"


def line_price(
    is_weight_priced: bool,
    piece_price: float,
    weight_price: float,
    quantity: int,
    weight_kg: float | None = None,
) -> float:
    """Price of one line: per-kg when the service is weight-priced and a weight is set."""
    if is_weight_priced and weight_kg:
        return round(weight_price * weight_kg * quantity, 2)
    return round(piece_price * quantity, 2)


@dataclass(frozen=True)
class PricedLine:
    """A line item with its resolved unit price and total."""

    service_id: str
    service_name: str
    quantity: int
    unit_price: float
    total_price: float
    weight_kg: float | None = None

    def to_dict(self) -> dict:
        return {
            "service_id": self.service_id,
            "service_name": self.service_name,
            "quantity": self.quantity,
            "weight_kg": self.weight_kg,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
        }


@dataclass(frozen=True)
class PromotionQuote:
    """Outcome of applying a promo code: the discount and whether the code was valid."""

    code: str | None
    discount: float
    is_valid: bool
    message: str | None = None


NO_PROMOTION = PromotionQuote(code=None, discount=0.0, is_valid=False)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: float
    delivery_fee: float
    discount: float
    total: float
    promotion: PromotionQuote = field(default=NO_PROMOTION)

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "discount": self.discount,
            "total": self.total,
            "promo_code": self.promotion.code if self.promotion.is_valid else None,
        }


class PricingCalculator:
    def __init__(
        self,
        promotion_lookup: Callable | None = None,
        area_fees: dict[str, float] | None = None,
        free_delivery_threshold: float = FREE_DELIVERY_THRESHOLD,
        default_fee: float = DEFAULT_DELIVERY_FEE,
    ):
        self.promotion_lookup = promotion_lookup
        self.area_fees = AREA_DELIVERY_FEES if area_fees is None else area_fees
        self.free_delivery_threshold = free_delivery_threshold
        self.default_fee = default_fee

    def subtotal(self, lines: Iterable[PricedLine]) -> float:
        return round(sum(line.total_price for line in lines), 2)

    def delivery_fee(self, subtotal: float, area: str | None = None) -> float:
        if subtotal >= self.free_delivery_threshold:
            return 0.0
        if area and area in self.area_fees:
            return self.area_fees[area]
        return self.default_fee

    def apply_promotion(self, code: str | None, subtotal: float, now: datetime | None = None) -> PromotionQuote:
        normalized = (code or "").strip().upper()
        if not normalized:
            return NO_PROMOTION

        promotion = self.promotion_lookup(normalized) if self.promotion_lookup else None
        if promotion is None or not promotion.is_redeemable(now):
            logger.info("Promo code rejected", code=normalized)
            return PromotionQuote(code=normalized, discount=0.0, is_valid=False, message=INVALID_PROMO_MESSAGE)

        if promotion.min_order_amount and subtotal < promotion.min_order_amount:
            return PromotionQuote(
                code=normalized,
                discount=0.0,
                is_valid=False,
                message=f"Minimum order of Rs. {promotion.min_order_amount:g} required for {normalized}",
            )

        discount = promotion.discount_for(subtotal)
        return PromotionQuote(
            code=normalized,
            discount=discount,
            is_valid=True,
            message=f"You saved Rs. {discount:g}",
        )

    def total(self, subtotal: float, delivery_fee: float, discount: float) -> float:
        gross = subtotal + delivery_fee
        return round(gross - self.effective_discount(subtotal, delivery_fee, discount), 2)

    @staticmethod
    def effective_discount(subtotal: float, delivery_fee: float, discount: float) -> float:
        """Discount clamped so that it never exceeds subtotal plus delivery."""
        return round(max(0.0, min(discount, subtotal + delivery_fee)), 2)

    def quote(
        self,
        lines: Iterable[PricedLine],
        area: str | None = None,
        promo_code: str | None = None,
        now: datetime | None = None,
    ) -> PriceBreakdown:
        subtotal = self.subtotal(lines)
        delivery_fee = self.delivery_fee(subtotal, area)
        promotion = self.apply_promotion(promo_code, subtotal, now=now)
        discount = self.effective_discount(subtotal, delivery_fee, promotion.discount)
        return PriceBreakdown(
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            discount=discount,
            total=round(subtotal + delivery_fee - discount, 2),
            promotion=promotion,
        )
