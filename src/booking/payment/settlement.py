"""Payment settlement — pay for (or retry payment of) an order.

The amount must match the order total; it is never adjusted to fit. What
happens next depends on the gateway's answer:

- redirect URL: nothing changes yet, the provider's webhook settles later
- approved: payment ``paid`` (cash stays ``pending``), order at least ``confirmed``
- declined: payment ``failed``, order status unchanged
- provider failure: ``DownstreamError``, nothing changes
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from booking.domain import booking
from booking.exceptions import AuthorizationError, ConflictError
from booking.order.lifecycle import OrderLifecycle, load_order
from booking.order.order import Order, OrderStatus, PaymentMethod
from booking.payment.gateway import get_gateway
from booking.payment.gateway.port import PaymentResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SettlementOutcome:
    result: PaymentResult
    order: Order

    @property
    def awaiting_provider(self) -> bool:
        return bool(self.result.redirect_url)


@booking.command(part_of="Order")
class SettlePayment:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    payment_method = String(choices=PaymentMethod)
    customer_phone = String(max_length=20)
    customer_email = String(max_length=255)


@booking.command_handler(part_of=Order)
class SettlePaymentHandler:
    @handle(SettlePayment)
    def settle_payment(self, command):
        order = load_order(command.order_id)
        if not order.belongs_to(command.actor_id):
            raise AuthorizationError("Only the customer who placed the order can pay for it")
        if order.status == OrderStatus.CANCELLED.value:
            raise ConflictError(f"Order {order.order_number} is cancelled", current_status=order.status)
        if not order.amount_matches(command.amount):
            raise ValidationError({"amount": ["Amount mismatch"]})

        method = command.payment_method or order.payment_method
        order.choose_payment_method(method)

        result = get_gateway(method).settle(
            order,
            command.amount,
            customer_phone=command.customer_phone,
            customer_email=command.customer_email,
        )
        return settle_with_result(order, method, result)


def settle_with_result(order, method, result: PaymentResult, lifecycle: OrderLifecycle | None = None):
    lifecycle = lifecycle or OrderLifecycle()

    if result.redirect_url:
        current_domain.repository_for(Order).add(order)
        logger.info("Payment awaiting provider", order_id=str(order.id), method=method)
        return SettlementOutcome(result=result, order=order)

    if result.success:
        lifecycle.record_settlement(order, result.transaction_id, payment_method=method)
    else:
        lifecycle.record_failure(order, reason=result.message, provider=method)
    return SettlementOutcome(result=result, order=order)
