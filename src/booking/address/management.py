"""Address book management — commands and handler.

At most one address per user is primary: making an address primary clears
the flag on every other address of the same user within the same unit of work.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from booking.address.address import Address
from booking.domain import booking
from booking.exceptions import NotFoundError


@booking.command(part_of="Address")
class AddAddress:
    user_id = Identifier(required=True)
    label = String(required=True, max_length=50)
    address_line1 = String(required=True, min_length=5, max_length=255)
    address_line2 = String(max_length=255)
    area = String(required=True, max_length=100)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    delivery_instructions = Text()
    is_primary = Boolean(default=False)


@booking.command(part_of="Address")
class UpdateAddress:
    address_id = Identifier(required=True)
    user_id = Identifier(required=True)
    label = String(max_length=50)
    address_line1 = String(min_length=5, max_length=255)
    address_line2 = String(max_length=255)
    area = String(max_length=100)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    delivery_instructions = Text()
    is_primary = Boolean()


@booking.command(part_of="Address")
class RemoveAddress:
    address_id = Identifier(required=True)
    user_id = Identifier(required=True)


@booking.command(part_of="Address")
class SetPrimaryAddress:
    address_id = Identifier(required=True)
    user_id = Identifier(required=True)


@booking.command_handler(part_of=Address)
class AddressBookHandler:
    @handle(AddAddress)
    def add_address(self, command):
        repo = current_domain.repository_for(Address)
        if command.is_primary:
            _clear_primary(command.user_id)

        address = Address.create(
            user_id=command.user_id,
            label=command.label,
            address_line1=command.address_line1,
            address_line2=command.address_line2,
            area=command.area,
            city=command.city,
            postal_code=command.postal_code,
            delivery_instructions=command.delivery_instructions,
            is_primary=command.is_primary,
        )
        repo.add(address)
        return str(address.id)

    @handle(UpdateAddress)
    def update_address(self, command):
        repo = current_domain.repository_for(Address)
        address = get_user_address(command.address_id, command.user_id)
        address.update_details(
            label=command.label,
            address_line1=command.address_line1,
            address_line2=command.address_line2,
            area=command.area,
            city=command.city,
            postal_code=command.postal_code,
            delivery_instructions=command.delivery_instructions,
        )
        if command.is_primary is True and not address.is_primary:
            _clear_primary(command.user_id, keep=address.id)
            address.mark_primary()
        elif command.is_primary is False and address.is_primary:
            address.unmark_primary()
        repo.add(address)

    @handle(RemoveAddress)
    def remove_address(self, command):
        repo = current_domain.repository_for(Address)
        address = get_user_address(command.address_id, command.user_id)
        repo._dao.delete(address)

    @handle(SetPrimaryAddress)
    def set_primary_address(self, command):
        repo = current_domain.repository_for(Address)
        address = get_user_address(command.address_id, command.user_id)
        _clear_primary(command.user_id, keep=address.id)
        address.mark_primary()
        repo.add(address)


def _clear_primary(user_id, keep=None):
    repo = current_domain.repository_for(Address)
    for address in repo._dao.query.filter(user_id=str(user_id), is_primary=True).all().items:
        if keep is not None and str(address.id) == str(keep):
            continue
        address.unmark_primary()
        repo.add(address)


def get_user_address(address_id, user_id) -> Address:
    """Load an address owned by ``user_id``; other users' addresses are not found."""
    try:
        address = current_domain.repository_for(Address).get(str(address_id))
    except ObjectNotFoundError:
        raise NotFoundError(f"Address not found: {address_id}")

    if not address.belongs_to(user_id):
        raise NotFoundError(f"Address not found: {address_id}")
    return address


def addresses_for(user_id) -> list[Address]:
    """A user's addresses, primary first."""
    repo = current_domain.repository_for(Address)
    addresses = repo._dao.query.filter(user_id=str(user_id)).all().items
    return sorted(addresses, key=lambda address: (not address.is_primary, address.created_at))
