"""Cart management — commands and handler.

Every command addresses a cart by session id; the cart is created on first
use. Handlers return the updated cart so callers can render it.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String

from booking.cart.cart import ShoppingCart
from booking.cart.store import CartStore
from booking.catalogue.management import get_service
from booking.domain import booking
from booking.pricing.calculator import PricingCalculator
from booking.promotion.management import find_promotion


@booking.command(part_of="ShoppingCart")
class CreateCart:
    session_id = String(required=True, max_length=255)
    customer_id = Identifier()


@booking.command(part_of="ShoppingCart")
class AddToCart:
    session_id = String(required=True, max_length=255)
    service_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)
    weight_kg = Float()


@booking.command(part_of="ShoppingCart")
class RemoveFromCart:
    session_id = String(required=True, max_length=255)
    service_id = Identifier(required=True)


@booking.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    """Set a line's quantity; zero removes the line."""

    session_id = String(required=True, max_length=255)
    service_id = Identifier(required=True)
    quantity = Integer(required=True)


@booking.command(part_of="ShoppingCart")
class UpdateCartWeight:
    session_id = String(required=True, max_length=255)
    service_id = Identifier(required=True)
    weight_kg = Float(required=True)


@booking.command(part_of="ShoppingCart")
class ApplyPromoToCart:
    session_id = String(required=True, max_length=255)
    promo_code = String(required=True, max_length=20)


@booking.command(part_of="ShoppingCart")
class RemovePromoFromCart:
    session_id = String(required=True, max_length=255)


@booking.command(part_of="ShoppingCart")
class ClearCart:
    session_id = String(required=True, max_length=255)


@booking.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @property
    def store(self) -> CartStore:
        return CartStore()

    @handle(CreateCart)
    def create_cart(self, command):
        return self.store.for_session(command.session_id, customer_id=command.customer_id)

    @handle(AddToCart)
    def add_to_cart(self, command):
        cart = self.store.for_session(command.session_id)
        cart.add_item(get_service(command.service_id), quantity=command.quantity, weight_kg=command.weight_kg)
        self.store.save(cart)
        return cart

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = self.store.for_session(command.session_id)
        cart.remove_item(command.service_id)
        self.store.save(cart)
        return cart

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        cart = self.store.for_session(command.session_id)
        cart.set_quantity(command.service_id, command.quantity)
        self.store.save(cart)
        return cart

    @handle(UpdateCartWeight)
    def update_cart_weight(self, command):
        cart = self.store.for_session(command.session_id)
        cart.set_weight(command.service_id, command.weight_kg)
        self.store.save(cart)
        return cart

    @handle(ApplyPromoToCart)
    def apply_promo(self, command):
        cart = self.store.for_session(command.session_id)
        quote = PricingCalculator(promotion_lookup=find_promotion).apply_promotion(
            command.promo_code, cart.subtotal()
        )
        if not quote.is_valid:
            raise ValidationError({"promo_code": [quote.message]})

        cart.apply_promo_code(quote.code)
        self.store.save(cart)
        return cart

    @handle(RemovePromoFromCart)
    def remove_promo(self, command):
        cart = self.store.for_session(command.session_id)
        cart.remove_promo_code()
        self.store.save(cart)
        return cart

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = self.store.for_session(command.session_id)
        cart.clear()
        self.store.save(cart)
        return cart


def cart_quote(session_id, area=None):
    """Price the session's cart for display."""
    cart = CartStore().for_session(session_id)
    calculator = PricingCalculator(promotion_lookup=find_promotion)
    return cart, calculator.quote(cart.lines(), area=area, promo_code=cart.promo_code)
