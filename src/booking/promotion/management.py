"""Promotion administration — commands, handler and lookup."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from booking.domain import booking
from booking.exceptions import NotFoundError
from booking.promotion.promotion import DiscountType, Promotion, normalize_code


@booking.command(part_of="Promotion")
class CreatePromotion:
    code = String(required=True, min_length=3, max_length=20)
    description = Text()
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    usage_limit = Integer(min_value=1)
    is_active = Boolean(default=True)


@booking.command(part_of="Promotion")
class DeactivatePromotion:
    promotion_id = Identifier(required=True)


@booking.command_handler(part_of=Promotion)
class PromotionHandler:
    @handle(CreatePromotion)
    def create_promotion(self, command):
        if find_promotion(command.code) is not None:
            raise ValidationError({"code": [f"Promotion {normalize_code(command.code)} already exists"]})

        promotion = Promotion.create(
            code=command.code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            usage_limit=command.usage_limit,
            is_active=command.is_active,
        )
        current_domain.repository_for(Promotion).add(promotion)
        return str(promotion.id)

    @handle(DeactivatePromotion)
    def deactivate_promotion(self, command):
        repo = current_domain.repository_for(Promotion)
        promotion = repo.get(command.promotion_id)
        promotion.deactivate()
        repo.add(promotion)


def find_promotion(code: str | None) -> Promotion | None:
    """Look up a promotion by code, case-insensitively. Returns ``None`` on a miss."""
    normalized = normalize_code(code)
    if not normalized:
        return None

    repo = current_domain.repository_for(Promotion)
    matches = repo._dao.query.filter(code=normalized).all().items
    return matches[0] if matches else None


def record_promotion_use(code: str) -> None:
    """Bump the reporting counter of a redeemed promotion."""
    promotion = find_promotion(code)
    if promotion is None:
        raise NotFoundError(f"Promotion not found: {code}")

    promotion.record_use()
    current_domain.repository_for(Promotion).add(promotion)
