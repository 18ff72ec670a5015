"""Notification inbox — mark-as-read command and listing."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from booking.domain import booking
from booking.exceptions import NotFoundError
from booking.notification.notification import Notification


@booking.command(part_of="Notification")
class MarkNotificationRead:
    notification_id = Identifier(required=True)
    user_id = Identifier(required=True)


@booking.command_handler(part_of=Notification)
class NotificationInboxHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command):
        repo = current_domain.repository_for(Notification)
        try:
            notification = repo.get(command.notification_id)
        except ObjectNotFoundError:
            raise NotFoundError(f"Notification not found: {command.notification_id}")

        if str(notification.user_id) != str(command.user_id):
            raise NotFoundError(f"Notification not found: {command.notification_id}")

        notification.mark_read()
        repo.add(notification)


def notifications_for(user_id, unread_only=False) -> list[Notification]:
    """A user's notifications, newest first."""
    filters = {"user_id": str(user_id)}
    if unread_only:
        filters["is_read"] = False
    notifications = current_domain.repository_for(Notification)._dao.query.filter(**filters).all().items
    return sorted(notifications, key=lambda notification: notification.created_at, reverse=True)
