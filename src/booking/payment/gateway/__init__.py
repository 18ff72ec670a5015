"""Payment gateway registry.

Provides get_gateway() / set_gateway() to swap implementations per payment
method. Defaults: cash on delivery, Stripe Checkout for cards, and the
EasyPaisa and JazzCash wallet adapters.
"""

from booking.order.order import PaymentMethod
from booking.payment.gateway.cash import CashOnDeliveryGateway
from booking.payment.gateway.port import PaymentGateway
from booking.payment.gateway.providers import CardGateway, EasyPaisaGateway, JazzCashGateway

_DEFAULT_GATEWAYS = {
    PaymentMethod.CASH.value: CashOnDeliveryGateway,
    PaymentMethod.CARD.value: CardGateway,
    PaymentMethod.EASYPAISA.value: EasyPaisaGateway,
    PaymentMethod.JAZZCASH.value: JazzCashGateway,
}

_current_gateways: dict[str, PaymentGateway] = {}


def get_gateway(method: str) -> PaymentGateway:
    """Return the gateway for a payment method."""
    if method not in _current_gateways:
        if method not in _DEFAULT_GATEWAYS:
            raise ValueError(f"Unknown payment method: {method}")
        _current_gateways[method] = _DEFAULT_GATEWAYS[method]()
    return _current_gateways[method]


def set_gateway(method: str, gateway: PaymentGateway) -> None:
    """Override the gateway for one payment method (useful for tests)."""
    _current_gateways[method] = gateway


def reset_gateways() -> None:
    """Reset every method to its default gateway."""
    _current_gateways.clear()
