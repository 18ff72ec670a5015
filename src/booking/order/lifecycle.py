"""Order lifecycle — status transitions, cancellation and payment reconciliation.

``OrderLifecycle`` is the single path by which an order's status changes.
It is shared by the admin update handler, the customer cancel path, payment
settlement and provider webhooks. Each transition:

1. is validated against the order's transition table,
2. is saved on the order,
3. appends a tracking entry, and
4. raises ``OrderStatusChanged``; customer notifications react to it once
   the unit of work has committed.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from booking.domain import booking
from booking.exceptions import AuthorizationError, ConflictError, NotFoundError
from booking.order.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from booking.tracking.tracking import append_tracking

logger = structlog.get_logger(__name__)

COD_CONFIRMED_NOTE = "Payment method confirmed (COD)"


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise NotFoundError(f"Order not found: {order_id}")


class OrderLifecycle:
    @staticmethod
    def check_expected_status(order, expected_status):
        if expected_status and expected_status != order.status:
            raise ConflictError(
                f"Order {order.order_number} is {order.status}, not {expected_status}",
                current_status=order.status,
            )

    def _save(self, order):
        current_domain.repository_for(Order).add(order)

    def transition(self, order, target_status, notes=None, actor_id=None, expected_status=None):
        self.check_expected_status(order, expected_status)
        previous = order.status
        order.transition_to(target_status, changed_by=actor_id)
        self._save(order)
        append_tracking(order.id, order.status, notes=notes, updated_by=actor_id)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            order_number=order.order_number,
            previous_status=previous,
            status=order.status,
        )
        return order

    def cancel(self, order, actor_id, is_admin=False, expected_status=None):
        if not is_admin and not order.belongs_to(actor_id):
            raise AuthorizationError("Only the customer who placed the order can cancel it")
        self.check_expected_status(order, expected_status)

        order.cancel(cancelled_by=actor_id)
        self._save(order)
        notes = "Order cancelled by admin" if is_admin else "Order cancelled by customer"
        append_tracking(order.id, order.status, notes=notes, updated_by=actor_id)

        logger.info("Order cancelled", order_id=str(order.id), order_number=order.order_number, status=order.status)
        return order

    def _confirm(self, order, notes):
        # Settlement never moves an order backwards
        if order.has_progressed_past(OrderStatus.CONFIRMED.value):
            self._save(order)
            return order
        return self.transition(order, OrderStatus.CONFIRMED.value, notes=notes)

    def record_settlement(self, order, transaction_id, payment_method=None, provider=None):
        """Reconcile a successful payment: ``paid`` and at least ``confirmed``.

        Cash on delivery keeps the payment pending until the driver collects it.
        """
        if order.status == OrderStatus.CANCELLED.value:
            raise ConflictError(
                f"Order {order.order_number} is cancelled and cannot be settled",
                current_status=order.status,
            )

        method = payment_method or order.payment_method
        if method == PaymentMethod.CASH.value:
            if order.payment_status == PaymentStatus.FAILED.value:
                order.update_payment_status(PaymentStatus.PENDING.value)
            order.attach_transaction(transaction_id)
            logger.info("Cash on delivery confirmed", order_id=str(order.id), transaction_id=transaction_id)
            return self._confirm(order, f"{COD_CONFIRMED_NOTE}: {transaction_id}")

        order.update_payment_status(PaymentStatus.PAID.value, transaction_id=transaction_id)
        logger.info(
            "Payment settled",
            order_id=str(order.id),
            order_number=order.order_number,
            transaction_id=transaction_id,
            provider=provider or method,
        )
        notes = f"Payment confirmed via {provider}" if provider else f"Payment received: {transaction_id}"
        return self._confirm(order, notes)

    def record_failure(self, order, reason=None, provider=None):
        """Mark the payment failed; the order status does not change."""
        order.update_payment_status(PaymentStatus.FAILED.value)
        self._save(order)
        logger.warning(
            "Payment failed",
            order_id=str(order.id),
            order_number=order.order_number,
            provider=provider or order.payment_method,
            reason=reason,
        )
        return order


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@booking.command(part_of="Order")
class UpdateOrder:
    """Administrative update: status, payment status, driver, notes."""

    order_id = Identifier(required=True)
    actor_id = Identifier()
    status = String(choices=OrderStatus)
    payment_status = String(choices=PaymentStatus)
    assigned_driver_id = Identifier()
    notes = Text()
    expected_status = String(choices=OrderStatus)


@booking.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)
    expected_status = String(choices=OrderStatus)


@booking.command(part_of="Order")
class RecordPaymentSettlement:
    order_id = Identifier(required=True)
    transaction_id = String(max_length=100)
    payment_method = String(choices=PaymentMethod)
    provider = String(max_length=50)


@booking.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    reason = Text()
    provider = String(max_length=50)


@booking.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(UpdateOrder)
    def update_order(self, command):
        lifecycle = OrderLifecycle()
        order = load_order(command.order_id)
        lifecycle.check_expected_status(order, command.expected_status)

        if command.assigned_driver_id:
            order.assign_driver(command.assigned_driver_id)
        if command.payment_status:
            order.update_payment_status(command.payment_status)

        if command.status and command.status != order.status:
            if command.status == OrderStatus.CANCELLED.value:
                lifecycle.cancel(order, command.actor_id, is_admin=True)
            else:
                lifecycle.transition(order, command.status, notes=command.notes, actor_id=command.actor_id)
        else:
            current_domain.repository_for(Order).add(order)
        return order

    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        return OrderLifecycle().cancel(
            order,
            command.actor_id,
            is_admin=command.is_admin,
            expected_status=command.expected_status,
        )

    @handle(RecordPaymentSettlement)
    def record_payment_settlement(self, command):
        order = load_order(command.order_id)
        return OrderLifecycle().record_settlement(
            order,
            command.transaction_id,
            payment_method=command.payment_method,
            provider=command.provider,
        )

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        order = load_order(command.order_id)
        return OrderLifecycle().record_failure(order, reason=command.reason, provider=command.provider)
