"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from booking.domain import booking


@booking.event(part_of="ShoppingCart")
class CartItemAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    service_id = Identifier(required=True)
    quantity = Integer(required=True)
    weight_kg = Float()


@booking.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    service_id = Identifier(required=True)


@booking.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    service_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@booking.event(part_of="ShoppingCart")
class CartWeightUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    service_id = Identifier(required=True)
    weight_kg = Float(required=True)


@booking.event(part_of="ShoppingCart")
class CartPromoApplied:
    __version__ = 1

    cart_id = Identifier(required=True)
    promo_code = String(required=True)
    replaced_code = String()


@booking.event(part_of="ShoppingCart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    session_id = String(required=True)
