"""Session-keyed cart storage."""

from protean.utils.globals import current_domain

from booking.cart.cart import ShoppingCart


class CartStore:
    """Finds, creates and saves carts by browsing-session id."""

    def __init__(self, repository=None):
        self._repository = repository

    @property
    def repository(self):
        return self._repository or current_domain.repository_for(ShoppingCart)

    def find(self, session_id) -> ShoppingCart | None:
        matches = self.repository._dao.query.filter(session_id=session_id).all().items
        return matches[0] if matches else None

    def for_session(self, session_id, customer_id=None) -> ShoppingCart:
        """Restore the session's cart, creating an empty one on first use."""
        cart = self.find(session_id)
        if cart is None:
            cart = ShoppingCart.create(session_id=session_id, customer_id=customer_id)
            self.repository.add(cart)
        elif customer_id and not cart.customer_id:
            cart.customer_id = customer_id
            self.repository.add(cart)
        return cart

    def save(self, cart: ShoppingCart) -> None:
        self.repository.add(cart)
