"""Address aggregate (CQRS) — a registered customer's saved pickup/delivery addresses."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, String, Text

from booking.domain import booking

DEFAULT_CITY = "Karachi"


@booking.aggregate
class Address:
    user_id = Identifier(required=True)
    label = String(required=True, max_length=50)
    address_line1 = String(required=True, min_length=5, max_length=255)
    address_line2 = String(max_length=255)
    area = String(required=True, max_length=100)
    city = String(max_length=100, default=DEFAULT_CITY)
    postal_code = String(max_length=20)
    delivery_instructions = Text()
    is_primary = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id, label, address_line1, area, **optional):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            label=label,
            address_line1=address_line1,
            area=area,
            address_line2=optional.get("address_line2"),
            city=optional.get("city") or DEFAULT_CITY,
            postal_code=optional.get("postal_code"),
            delivery_instructions=optional.get("delivery_instructions"),
            is_primary=bool(optional.get("is_primary")),
            created_at=now,
            updated_at=now,
        )

    def update_details(self, **changes):
        for key in ("label", "address_line1", "address_line2", "area", "city", "postal_code", "delivery_instructions"):
            if changes.get(key) is not None:
                setattr(self, key, changes[key])
        self.updated_at = datetime.now(UTC)

    def mark_primary(self):
        self.is_primary = True
        self.updated_at = datetime.now(UTC)

    def unmark_primary(self):
        self.is_primary = False
        self.updated_at = datetime.now(UTC)

    def belongs_to(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def snapshot(self) -> dict:
        """The address as embedded on an order at placement time."""
        return {
            "label": self.label,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "area": self.area,
            "city": self.city,
            "postal_code": self.postal_code,
            "delivery_instructions": self.delivery_instructions,
        }
