"""Notification dispatch — customer messages for order and payment events.

Dispatch never fails the operation that triggered it: a sink error is
logged and the caller carries on. Guest orders have no inbox, so their
notifications are skipped.
"""

from abc import ABC, abstractmethod

import structlog
from protean.utils.globals import current_domain

from booking.notification.notification import Notification, NotificationType
from booking.order.order import status_label

logger = structlog.get_logger(__name__)


class NotificationSink(ABC):
    """Where notifications are delivered."""

    @abstractmethod
    def deliver(self, user_id: str, title: str, message: str, type: str) -> None: ...


class InboxSink(NotificationSink):
    """Stores notifications in the customer's in-app inbox."""

    def deliver(self, user_id: str, title: str, message: str, type: str) -> None:
        notification = Notification.create(user_id=user_id, title=title, message=message, type=type)
        current_domain.repository_for(Notification).add(notification)


class NotificationDispatcher:
    def __init__(self, sink: NotificationSink | None = None):
        self.sink = sink or InboxSink()

    def notify(self, user_id, title, message, type=NotificationType.SYSTEM.value) -> bool:
        """Deliver one notification. Returns ``False`` when it was skipped or failed."""
        if not user_id:
            return False

        try:
            self.sink.deliver(str(user_id), title, message, type)
        except Exception as exc:
            logger.error("Notification dispatch failed", user_id=str(user_id), title=title, error=str(exc))
            return False
        return True

    def order_placed(self, user_id, order_number) -> bool:
        return self.notify(
            user_id,
            "Order Placed",
            f"Your order #{order_number} has been placed successfully.",
            NotificationType.ORDER.value,
        )

    def status_updated(self, user_id, order_number, status) -> bool:
        return self.notify(
            user_id,
            "Order Status Updated",
            f"Your order #{order_number} is now {status_label(status)}.",
            NotificationType.ORDER.value,
        )

    def payment_failed(self, user_id, order_number) -> bool:
        return self.notify(
            user_id,
            "Payment Failed",
            f"Payment for order #{order_number} did not go through. You can retry from your orders page.",
            NotificationType.PAYMENT.value,
        )
