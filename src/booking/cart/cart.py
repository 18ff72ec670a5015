"""Shopping Cart aggregate (CQRS) — the basket a customer builds before booking.

A cart belongs to one browsing session. Each line snapshots the service's
pricing at the time it was added, so the preview stays stable while the
customer shops; the order assembler re-prices from the live catalogue.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from booking.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartPromoApplied,
    CartQuantityUpdated,
    CartWeightUpdated,
)
from booking.catalogue.service import PriceType
from booking.domain import booking
from booking.pricing.calculator import PricedLine, line_price
from booking.promotion.promotion import normalize_code

MIN_WEIGHT_KG = 0.5


@booking.entity(part_of="ShoppingCart")
class CartItem:
    service_id = Identifier(required=True)
    service_name = String(required=True, max_length=100)
    price_type = String(choices=PriceType, default=PriceType.PER_PIECE.value)
    base_price = Float(required=True, min_value=0.0)
    price_per_kg = Float(min_value=0.0)
    price_per_unit = Float(min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    weight_kg = Float(min_value=MIN_WEIGHT_KG)
    added_at = DateTime()

    @property
    def is_weight_priced(self) -> bool:
        return self.price_type == PriceType.PER_KG.value

    @property
    def price(self) -> float:
        return line_price(
            self.is_weight_priced,
            self.price_per_unit if self.price_per_unit is not None else self.base_price,
            self.price_per_kg if self.price_per_kg is not None else self.base_price,
            self.quantity,
            self.weight_kg,
        )

    def to_line(self) -> PricedLine:
        unit_price = self.price_per_kg if self.is_weight_priced and self.weight_kg else self.price_per_unit
        if unit_price is None:
            unit_price = self.base_price
        return PricedLine(
            service_id=str(self.service_id),
            service_name=self.service_name,
            quantity=self.quantity,
            unit_price=unit_price,
            total_price=self.price,
            weight_kg=self.weight_kg,
        )


@booking.aggregate
class ShoppingCart:
    session_id = String(required=True, max_length=255, unique=True)
    customer_id = Identifier()  # Nullable for guest carts
    items = HasMany(CartItem)
    promo_code = String(max_length=20)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, session_id, customer_id=None):
        now = datetime.now(UTC)
        return cls(
            session_id=session_id,
            customer_id=customer_id,
            created_at=now,
            updated_at=now,
        )

    def _line_for(self, service_id):
        return next((i for i in self.items if str(i.service_id) == str(service_id)), None)

    def _require_line(self, service_id):
        item = self._line_for(service_id)
        if item is None:
            raise ValidationError({"service_id": ["Service is not in the cart"]})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, service, quantity=1, weight_kg=None):
        """Add a service to the cart, merging into its existing line if present."""
        if not service.is_active:
            raise ValidationError({"service_id": [f"Service {service.name} is not available"]})
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if weight_kg is not None and weight_kg < MIN_WEIGHT_KG:
            raise ValidationError({"weight_kg": [f"Weight must be at least {MIN_WEIGHT_KG} kg"]})

        now = datetime.now(UTC)
        existing = self._line_for(service.id)
        if existing:
            existing.quantity += quantity
            if weight_kg is not None:
                existing.weight_kg = weight_kg
        else:
            self.add_items(
                CartItem(
                    service_id=str(service.id),
                    service_name=service.name,
                    price_type=service.price_type,
                    base_price=service.base_price,
                    price_per_kg=service.price_per_kg,
                    price_per_unit=service.price_per_unit,
                    quantity=quantity,
                    weight_kg=weight_kg,
                    added_at=now,
                )
            )
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                service_id=str(service.id),
                quantity=quantity,
                weight_kg=weight_kg,
            )
        )

    def remove_item(self, service_id):
        item = self._require_line(service_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), service_id=str(service_id)))

    def set_quantity(self, service_id, quantity):
        """Change a line's quantity; zero or less removes the line."""
        item = self._require_line(service_id)
        if quantity <= 0:
            self.remove_item(service_id)
            return

        previous_quantity = item.quantity
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                service_id=str(service_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def set_weight(self, service_id, weight_kg):
        if weight_kg is None or weight_kg < MIN_WEIGHT_KG:
            raise ValidationError({"weight_kg": [f"Weight must be at least {MIN_WEIGHT_KG} kg"]})

        item = self._require_line(service_id)
        item.weight_kg = weight_kg
        self.updated_at = datetime.now(UTC)
        self.raise_(CartWeightUpdated(cart_id=str(self.id), service_id=str(service_id), weight_kg=weight_kg))

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def item_price(self, item) -> float:
        return item.price

    def subtotal(self) -> float:
        return round(sum(self.item_price(item) for item in self.items), 2)

    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def lines(self) -> list[PricedLine]:
        return [item.to_line() for item in self.items]

    def line_requests(self) -> list[dict]:
        """Lines in the shape the order assembler accepts."""
        return [
            {"service_id": str(item.service_id), "quantity": item.quantity, "weight_kg": item.weight_kg}
            for item in self.items
        ]

    # -------------------------------------------------------------------
    # Promo code
    # -------------------------------------------------------------------
    def apply_promo_code(self, code):
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError({"promo_code": ["Promo code is required"]})

        replaced = self.promo_code
        self.promo_code = normalized
        self.updated_at = datetime.now(UTC)
        self.raise_(CartPromoApplied(cart_id=str(self.id), promo_code=normalized, replaced_code=replaced))

    def remove_promo_code(self):
        self.promo_code = None
        self.updated_at = datetime.now(UTC)

    def clear(self):
        """Empty the cart after checkout or sign-out."""
        for item in list(self.items):
            self.remove_items(item)
        self.promo_code = None
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), session_id=self.session_id))
