"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from booking.domain import booking


@booking.event(part_of="Order")
class OrderPlaced:
    """A customer or guest placed a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()
    guest_phone = String()
    total_amount = Float(required=True)
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@booking.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = Identifier()
    changed_at = DateTime(required=True)


@booking.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    cancelled_by = Identifier()
    cancelled_at = DateTime(required=True)


@booking.event(part_of="Order")
class PaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    transaction_id = String()


@booking.event(part_of="Order")
class DriverAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)
