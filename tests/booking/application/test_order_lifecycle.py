"""Application tests for administrative updates and cancellation."""

import json

import pytest
from booking.exceptions import AuthorizationError, ConflictError, NotFoundError
from booking.notification.dispatcher import InboxSink
from booking.notification.management import notifications_for
from booking.order.lifecycle import CancelOrder, UpdateOrder
from booking.order.order import Order
from booking.order.placement import PlaceOrder
from booking.tracking.tracking import tracking_for
from protean import current_domain


@pytest.fixture()
def order(wash_and_fold, clifton_address, customer_id):
    return current_domain.process(
        PlaceOrder(
            user_id=customer_id,
            items=json.dumps([{"service_id": str(wash_and_fold.id), "quantity": 1, "weight_kg": 5.0}]),
            pickup_address_id=str(clifton_address.id),
        ),
        asynchronous=False,
    )


def _update(order, **fields):
    return current_domain.process(UpdateOrder(order_id=str(order.id), actor_id="admin-1", **fields), asynchronous=False)


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


class TestUpdateOrder:
    def test_status_change_is_tracked(self, order):
        _update(order, status="confirmed", notes="Rider booked")

        assert _reload(order).status == "confirmed"
        tracking = tracking_for(order.id)
        assert [entry.status for entry in tracking] == ["confirmed", "pending"]
        assert tracking[0].notes == "Rider booked"
        assert tracking[0].updated_by == "admin-1"

    def test_default_tracking_note(self, order):
        _update(order, status="confirmed")
        assert tracking_for(order.id)[0].notes == "Status updated to confirmed"

    def test_customer_is_notified(self, order, customer_id):
        _update(order, status="picked_up")
        latest = notifications_for(customer_id)[0]
        assert latest.title == "Order Status Updated"
        assert latest.message == f"Your order #{order.order_number} is now picked up."

    def test_inbox_failure_keeps_status_change(self, order, customer_id, monkeypatch):
        def _broken(self, user_id, title, message, type):
            raise RuntimeError("inbox unavailable")

        monkeypatch.setattr(InboxSink, "deliver", _broken)
        _update(order, status="picked_up")

        assert _reload(order).status == "picked_up"
        assert [entry.status for entry in tracking_for(order.id)] == ["picked_up", "pending"]
        assert [n.title for n in notifications_for(customer_id)] == ["Order Placed"]

    def test_notification_follows_committed_change(self, order, monkeypatch):
        seen = []
        deliver = InboxSink.deliver

        def _recording(self, user_id, title, message, type):
            seen.append((title, _reload(order).status, len(tracking_for(order.id))))
            deliver(self, user_id, title, message, type)

        monkeypatch.setattr(InboxSink, "deliver", _recording)
        _update(order, status="picked_up")

        assert seen == [("Order Status Updated", "picked_up", 2)]

    def test_backward_move_is_a_conflict(self, order):
        _update(order, status="washing")
        with pytest.raises(ConflictError) as exc:
            _update(order, status="confirmed")
        assert exc.value.current_status == "washing"
        assert len(tracking_for(order.id)) == 2

    def test_same_status_adds_no_tracking(self, order):
        _update(order, status="pending", notes="nothing to do")
        assert len(tracking_for(order.id)) == 1

    def test_assign_driver(self, order):
        _update(order, assigned_driver_id="driver-7", status="assigned")
        stored = _reload(order)
        assert stored.assigned_driver_id == "driver-7"
        assert stored.status == "assigned"

    def test_expected_status_guard(self, order):
        with pytest.raises(ConflictError):
            _update(order, status="washing", expected_status="confirmed")
        assert _reload(order).status == "pending"

    def test_payment_status_update(self, order):
        _update(order, payment_status="paid")
        assert _reload(order).payment_status == "paid"

    def test_admin_cancels_through_update(self, order):
        _update(order, status="cancelled")
        assert _reload(order).status == "cancelled"
        assert tracking_for(order.id)[0].notes == "Order cancelled by admin"

    def test_unknown_order(self):
        with pytest.raises(NotFoundError):
            current_domain.process(UpdateOrder(order_id="missing", status="confirmed"), asynchronous=False)


class TestCancelOrder:
    def _cancel(self, order, actor_id, **fields):
        return current_domain.process(
            CancelOrder(order_id=str(order.id), actor_id=actor_id, **fields), asynchronous=False
        )

    def test_owner_cancels_pending_order(self, order, customer_id):
        self._cancel(order, customer_id)
        assert _reload(order).status == "cancelled"
        tracking = tracking_for(order.id)
        assert [entry.status for entry in tracking] == ["cancelled", "pending"]
        assert tracking[0].notes == "Order cancelled by customer"

    def test_other_customer_cannot_cancel(self, order):
        with pytest.raises(AuthorizationError):
            self._cancel(order, "someone-else")
        assert _reload(order).status == "pending"

    def test_admin_can_cancel(self, order):
        self._cancel(order, "admin-1", is_admin=True)
        assert _reload(order).status == "cancelled"

    def test_confirmed_order_cannot_be_cancelled(self, order, customer_id):
        _update(order, status="confirmed")
        with pytest.raises(ConflictError) as exc:
            self._cancel(order, customer_id)
        assert exc.value.current_status == "confirmed"
        assert _reload(order).status == "confirmed"

    def test_cancelling_twice_is_a_conflict(self, order, customer_id):
        self._cancel(order, customer_id)
        with pytest.raises(ConflictError):
            self._cancel(order, customer_id)
