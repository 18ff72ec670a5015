"""Notification aggregate (CQRS) — messages in a customer's in-app inbox."""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String, Text

from booking.domain import booking


class NotificationType(Enum):
    ORDER = "order"
    PAYMENT = "payment"
    PROMOTION = "promotion"
    SYSTEM = "system"


@booking.aggregate
class Notification:
    user_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    message = Text(required=True)
    notification_type = String(choices=NotificationType, default=NotificationType.SYSTEM.value)
    is_read = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def create(cls, user_id, title, message, type=NotificationType.SYSTEM.value):
        return cls(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=type,
            is_read=False,
            created_at=datetime.now(UTC),
        )

    def mark_read(self):
        self.is_read = True
