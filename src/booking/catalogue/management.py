"""Service catalogue administration — commands, handler and read helpers."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from booking.catalogue.service import PriceType, Service, ServiceCategory
from booking.domain import booking
from booking.exceptions import NotFoundError


@booking.command(part_of="Service")
class AddService:
    name = String(required=True, max_length=100)
    description = Text()
    category = String(choices=ServiceCategory, default=ServiceCategory.WASH.value)
    base_price = Float(required=True, min_value=0.0)
    price_per_kg = Float(min_value=0.0)
    price_per_unit = Float(min_value=0.0)
    price_type = String(choices=PriceType, default=PriceType.PER_PIECE.value)
    turnaround_hours = Integer(min_value=1)
    is_active = Boolean(default=True)


@booking.command(part_of="Service")
class UpdateService:
    service_id = Identifier(required=True)
    name = String(max_length=100)
    description = Text()
    category = String(choices=ServiceCategory)
    base_price = Float(min_value=0.0)
    price_per_kg = Float(min_value=0.0)
    price_per_unit = Float(min_value=0.0)
    price_type = String(choices=PriceType)
    turnaround_hours = Integer(min_value=1)
    is_active = Boolean()


@booking.command(part_of="Service")
class DeactivateService:
    service_id = Identifier(required=True)


@booking.command_handler(part_of=Service)
class ServiceCatalogueHandler:
    @handle(AddService)
    def add_service(self, command):
        service = Service.create(
            name=command.name,
            description=command.description,
            category=command.category,
            base_price=command.base_price,
            price_per_kg=command.price_per_kg,
            price_per_unit=command.price_per_unit,
            price_type=command.price_type,
            turnaround_hours=command.turnaround_hours,
            is_active=command.is_active,
        )
        current_domain.repository_for(Service).add(service)
        return str(service.id)

    @handle(UpdateService)
    def update_service(self, command):
        repo = current_domain.repository_for(Service)
        service = get_service(command.service_id)
        service.update(
            name=command.name,
            description=command.description,
            category=command.category,
            base_price=command.base_price,
            price_per_kg=command.price_per_kg,
            price_per_unit=command.price_per_unit,
            price_type=command.price_type,
            turnaround_hours=command.turnaround_hours,
            is_active=command.is_active,
        )
        repo.add(service)

    @handle(DeactivateService)
    def deactivate_service(self, command):
        repo = current_domain.repository_for(Service)
        service = get_service(command.service_id)
        service.deactivate()
        repo.add(service)


def get_service(service_id) -> Service:
    """Load a service or raise ``NotFoundError``."""
    try:
        return current_domain.repository_for(Service).get(str(service_id))
    except ObjectNotFoundError:
        raise NotFoundError(f"Service not found: {service_id}")


def active_services() -> list[Service]:
    """Active services ordered by category then name."""
    repo = current_domain.repository_for(Service)
    services = repo._dao.query.filter(is_active=True).all().items
    return sorted(services, key=lambda service: (service.category, service.name))
