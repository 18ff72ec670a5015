"""Service aggregate (CQRS) — the laundry services customers can book.

Services are managed by administrators and read-only to customers. A service
is priced either per piece or per kilogram; ``price_type`` selects which of
the configured prices is the effective unit price.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from booking.catalogue.events import ServiceAdded, ServiceDeactivated, ServiceUpdated
from booking.domain import booking


class ServiceCategory(Enum):
    WASH = "wash"
    DRY_CLEAN = "dry_clean"
    IRON = "iron"
    PREMIUM = "premium"


class PriceType(Enum):
    PER_PIECE = "per_piece"
    PER_KG = "per_kg"


# Hours of turnaround by category when an admin does not set one
DEFAULT_TURNAROUND_HOURS = {
    ServiceCategory.WASH.value: 24,
    ServiceCategory.DRY_CLEAN.value: 48,
    ServiceCategory.IRON.value: 12,
    ServiceCategory.PREMIUM.value: 36,
}

_UPDATABLE_FIELDS = (
    "name",
    "description",
    "category",
    "base_price",
    "price_per_kg",
    "price_per_unit",
    "price_type",
    "turnaround_hours",
    "is_active",
)


@booking.aggregate
class Service:
    name = String(required=True, max_length=100)
    description = Text()
    category = String(choices=ServiceCategory, default=ServiceCategory.WASH.value)
    base_price = Float(required=True, min_value=0.0)
    price_per_kg = Float(min_value=0.0)
    price_per_unit = Float(min_value=0.0)
    price_type = String(choices=PriceType, default=PriceType.PER_PIECE.value)
    turnaround_hours = Integer(min_value=1, default=24)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        name,
        base_price,
        category=ServiceCategory.WASH.value,
        price_type=PriceType.PER_PIECE.value,
        price_per_kg=None,
        price_per_unit=None,
        turnaround_hours=None,
        description=None,
        is_active=True,
    ):
        now = datetime.now(UTC)
        service = cls(
            name=name,
            description=description,
            category=category,
            base_price=base_price,
            price_per_kg=price_per_kg,
            price_per_unit=price_per_unit,
            price_type=price_type,
            turnaround_hours=turnaround_hours or DEFAULT_TURNAROUND_HOURS.get(category, 24),
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        service.raise_(
            ServiceAdded(
                service_id=str(service.id),
                name=service.name,
                category=service.category,
                price_type=service.price_type,
                unit_price=service.unit_price,
            )
        )
        return service

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    @property
    def is_weight_priced(self) -> bool:
        return self.price_type == PriceType.PER_KG.value

    @property
    def piece_price(self) -> float:
        if self.price_per_unit is not None:
            return self.price_per_unit
        return self.base_price

    @property
    def weight_price(self) -> float:
        if self.price_per_kg is not None:
            return self.price_per_kg
        return self.base_price

    @property
    def unit_price(self) -> float:
        """The effective unit price selected by ``price_type``."""
        return self.weight_price if self.is_weight_priced else self.piece_price

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update(self, **changes):
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError({field: ["Field cannot be updated"] for field in sorted(unknown)})

        applied = {key: value for key, value in changes.items() if value is not None}
        if not applied:
            return

        for key, value in applied.items():
            setattr(self, key, value)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ServiceUpdated(
                service_id=str(self.id),
                changed_fields=",".join(sorted(applied)),
                unit_price=self.unit_price,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Service is already inactive"]})

        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(ServiceDeactivated(service_id=str(self.id)))
