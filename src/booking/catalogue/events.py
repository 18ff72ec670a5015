"""Domain events for the Service aggregate."""

from protean.fields import Float, Identifier, String

from booking.domain import booking


@booking.event(part_of="Service")
class ServiceAdded:
    """A new service was added to the catalogue."""

    __version__ = 1

    service_id = Identifier(required=True)
    name = String(required=True)
    category = String(required=True)
    price_type = String(required=True)
    unit_price = Float(required=True)


@booking.event(part_of="Service")
class ServiceUpdated:
    """Service details or prices were changed by an administrator."""

    __version__ = 1

    service_id = Identifier(required=True)
    changed_fields = String(required=True)
    unit_price = Float(required=True)


@booking.event(part_of="Service")
class ServiceDeactivated:
    """A service was withdrawn from the catalogue."""

    __version__ = 1

    service_id = Identifier(required=True)
