"""OrderTracking aggregate — the append-only audit trail of an order's status.

Entries are only ever added; nothing updates or deletes them.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from booking.domain import booking
from booking.order.order import OrderStatus


@booking.aggregate
class OrderTracking:
    order_id = Identifier(required=True)
    status = String(choices=OrderStatus, required=True)
    notes = Text()
    updated_by = Identifier()  # Empty for system transitions
    created_at = DateTime()

    @classmethod
    def record(cls, order_id, status, notes=None, updated_by=None):
        return cls(
            order_id=str(order_id),
            status=status,
            notes=notes or f"Status updated to {status}",
            updated_by=updated_by,
            created_at=datetime.now(UTC),
        )


def append_tracking(order_id, status, notes=None, updated_by=None) -> OrderTracking:
    entry = OrderTracking.record(order_id, status, notes=notes, updated_by=updated_by)
    current_domain.repository_for(OrderTracking).add(entry)
    return entry


def tracking_for(order_id) -> list[OrderTracking]:
    """An order's tracking entries, newest first."""
    repo = current_domain.repository_for(OrderTracking)
    entries = repo._dao.query.filter(order_id=str(order_id)).all().items
    return sorted(entries, key=lambda entry: entry.created_at, reverse=True)
