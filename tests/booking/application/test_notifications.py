"""Application tests for the notification inbox and dispatcher."""

import pytest
from booking.exceptions import NotFoundError
from booking.notification.dispatcher import NotificationDispatcher
from booking.notification.management import MarkNotificationRead, notifications_for
from protean import current_domain


class TestDispatcher:
    def test_guest_notifications_are_skipped(self):
        assert NotificationDispatcher().notify(None, "Order Placed", "hello") is False

    def test_delivers_to_inbox(self):
        assert NotificationDispatcher().notify("cust-001", "Welcome", "Thanks for signing up") is True
        [notification] = notifications_for("cust-001")
        assert notification.title == "Welcome"
        assert notification.notification_type == "system"
        assert notification.is_read is False


class TestInbox:
    def test_mark_read(self):
        NotificationDispatcher().notify("cust-001", "Welcome", "Thanks")
        [notification] = notifications_for("cust-001")

        current_domain.process(
            MarkNotificationRead(notification_id=str(notification.id), user_id="cust-001"), asynchronous=False
        )
        assert notifications_for("cust-001", unread_only=True) == []

    def test_cannot_read_someone_elses_notification(self):
        NotificationDispatcher().notify("cust-001", "Welcome", "Thanks")
        [notification] = notifications_for("cust-001")

        with pytest.raises(NotFoundError):
            current_domain.process(
                MarkNotificationRead(notification_id=str(notification.id), user_id="cust-002"), asynchronous=False
            )
