"""Customer notifications for Order events.

Runs after the order's unit of work has committed, so an inbox failure
can never roll back a placement, a status change or a payment update.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from booking.domain import booking
from booking.notification.dispatcher import NotificationDispatcher
from booking.notification.notification import Notification
from booking.order.events import OrderPlaced, OrderStatusChanged, PaymentStatusChanged
from booking.order.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)


def _order_owner(order_id):
    """(user_id, order_number) of the order, or ``None`` when it is gone."""
    try:
        order = current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        logger.warning("Notification skipped, order not found", order_id=str(order_id))
        return None
    return order.user_id, order.order_number


@booking.event_handler(part_of=Notification, stream_category="booking::order")
class OrderEventsHandler:
    """Sends inbox messages when orders are placed, move status or fail payment."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        NotificationDispatcher().order_placed(event.user_id, event.order_number)

    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged) -> None:
        owner = _order_owner(event.order_id)
        if owner:
            NotificationDispatcher().status_updated(owner[0], event.order_number, event.new_status)

    @handle(PaymentStatusChanged)
    def on_payment_status_changed(self, event: PaymentStatusChanged) -> None:
        if event.new_status != PaymentStatus.FAILED.value:
            return
        owner = _order_owner(event.order_id)
        if owner:
            NotificationDispatcher().payment_failed(*owner)
