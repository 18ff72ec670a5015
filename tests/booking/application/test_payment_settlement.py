"""Application tests for settling payments through the gateway port."""

import json
from types import SimpleNamespace

import pytest
import stripe
from booking.exceptions import AuthorizationError, ConflictError, DownstreamError
from booking.notification.management import notifications_for
from booking.order.lifecycle import CancelOrder, UpdateOrder
from booking.order.order import Order
from booking.order.placement import PlaceOrder
from booking.payment.gateway import get_gateway, set_gateway
from booking.payment.gateway.cash import CashOnDeliveryGateway
from booking.payment.gateway.fake_adapter import FakeGateway
from booking.payment.gateway.providers import CardGateway
from booking.payment.settings import PaymentSettings
from booking.payment.settlement import SettlePayment
from booking.tracking.tracking import tracking_for
from protean import current_domain
from protean.exceptions import ValidationError


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


@pytest.fixture()
def card_gateway():
    gateway = FakeGateway("card")
    set_gateway("card", gateway)
    return gateway


def _settle(order, actor_id, amount=750.0, method="card", **customer):
    return current_domain.process(
        SettlePayment(order_id=str(order.id), actor_id=actor_id, amount=amount, payment_method=method, **customer),
        asynchronous=False,
    )


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


class TestGatewayRegistry:
    def test_cash_by_default(self):
        assert isinstance(get_gateway("cash"), CashOnDeliveryGateway)

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            get_gateway("barter")


class TestApprovedPayment:
    def test_card_payment_marks_paid_and_confirms(self, order, customer_id, card_gateway):
        outcome = _settle(order, customer_id)

        assert outcome.result.success is True
        stored = _reload(order)
        assert stored.payment_status == "paid"
        assert stored.status == "confirmed"
        assert stored.payment_method == "card"
        assert stored.transaction_id == outcome.result.transaction_id
        assert card_gateway.calls[0]["amount"] == 750.0

        tracking = tracking_for(order.id)
        assert tracking[0].status == "confirmed"
        assert tracking[0].notes == f"Payment received: {outcome.result.transaction_id}"

    def test_cash_confirms_but_payment_stays_pending(self, order, customer_id):
        outcome = _settle(order, customer_id, method="cash")

        stored = _reload(order)
        assert stored.status == "confirmed"
        assert stored.payment_status == "pending"
        assert stored.transaction_id.startswith("COD-")
        assert tracking_for(order.id)[0].notes == f"Payment method confirmed (COD): {outcome.result.transaction_id}"

    def test_settlement_never_moves_order_backwards(self, order, customer_id, card_gateway):
        current_domain.process(UpdateOrder(order_id=str(order.id), status="washing"), asynchronous=False)
        _settle(order, customer_id)

        stored = _reload(order)
        assert stored.status == "washing"
        assert stored.payment_status == "paid"


class TestDeclinedPayment:
    def test_decline_marks_failed_and_keeps_status(self, order, customer_id, card_gateway):
        card_gateway.configure("decline", "Insufficient funds")
        outcome = _settle(order, customer_id)

        assert outcome.result.success is False
        stored = _reload(order)
        assert stored.payment_status == "failed"
        assert stored.status == "pending"
        assert len(tracking_for(order.id)) == 1
        assert notifications_for(customer_id)[0].title == "Payment Failed"

    def test_retry_after_decline(self, order, customer_id, card_gateway):
        card_gateway.configure("decline")
        _settle(order, customer_id)
        card_gateway.configure("approve")
        _settle(order, customer_id)

        assert _reload(order).payment_status == "paid"


class TestDeferredAndFailingProviders:
    def test_redirect_leaves_payment_pending(self, order, customer_id, card_gateway):
        card_gateway.configure("redirect")
        outcome = _settle(order, customer_id)

        assert outcome.awaiting_provider
        assert outcome.result.redirect_url
        stored = _reload(order)
        assert stored.payment_status == "pending"
        assert stored.status == "pending"
        assert stored.payment_method == "card"

    def test_provider_error_changes_nothing(self, order, customer_id, card_gateway):
        card_gateway.configure("error")
        with pytest.raises(DownstreamError):
            _settle(order, customer_id)

        stored = _reload(order)
        assert stored.payment_status == "pending"
        assert stored.payment_method == "cash"


class TestSettlementGuards:
    def test_amount_mismatch(self, order, customer_id, card_gateway):
        with pytest.raises(ValidationError) as exc:
            _settle(order, customer_id, amount=700.0)
        assert exc.value.messages["amount"] == ["Amount mismatch"]
        assert card_gateway.calls == []

    def test_only_owner_can_pay(self, order, card_gateway):
        with pytest.raises(AuthorizationError):
            _settle(order, "someone-else")

    def test_cancelled_order_cannot_be_paid(self, order, customer_id, card_gateway):
        current_domain.process(CancelOrder(order_id=str(order.id), actor_id=customer_id), asynchronous=False)
        with pytest.raises(ConflictError):
            _settle(order, customer_id)

    def test_paid_order_cannot_be_paid_again(self, order, customer_id, card_gateway):
        _settle(order, customer_id)
        with pytest.raises(ConflictError):
            _settle(order, customer_id)
        assert len(card_gateway.calls) == 1


class TestStripeCheckout:
    @pytest.fixture()
    def stripe_gateway(self):
        gateway = CardGateway(settings=PaymentSettings(stripe_secret_key="sk_test_123", timeout_seconds=5.0))
        set_gateway("card", gateway)
        return gateway

    def test_checkout_session_hands_back_redirect(self, monkeypatch, order, customer_id, stripe_gateway):
        sessions = []

        def _create(**params):
            sessions.append(params)
            return SimpleNamespace(id="cs_test_42", url="https://checkout.stripe.com/c/pay/cs_test_42")

        monkeypatch.setattr(stripe.checkout.Session, "create", _create)
        outcome = _settle(order, customer_id, customer_email="ayesha@example.com")

        assert outcome.awaiting_provider
        assert outcome.result.transaction_id == "cs_test_42"
        assert sessions[0]["metadata"] == {"order_id": str(order.id)}
        assert sessions[0]["line_items"][0]["price_data"]["unit_amount"] == 75000
        assert sessions[0]["customer_email"] == "ayesha@example.com"
        assert _reload(order).payment_status == "pending"

    def test_stripe_error_is_downstream(self, monkeypatch, order, customer_id, stripe_gateway):
        def _create(**params):
            raise stripe.APIConnectionError("Request timed out")

        monkeypatch.setattr(stripe.checkout.Session, "create", _create)
        with pytest.raises(DownstreamError):
            _settle(order, customer_id)

        stored = _reload(order)
        assert stored.payment_status == "pending"
        assert stored.status == "pending"
