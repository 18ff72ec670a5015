"""BDD tests for checkout pricing."""

import json

from booking.order.order import Order
from booking.order.placement import PlaceGuestOrder, PlaceOrder
from booking.promotion.management import find_promotion
from protean import current_domain
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/checkout_pricing.feature")


def _stored(order):
    return current_domain.repository_for(Order).get(order.id)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('the customer redeems "{code}" on {weight:g} kg of "{name}"'),
    target_fixture="order",
)
def customer_orders_with_promo(customer, services, weight, name, code):
    return current_domain.process(
        PlaceOrder(
            user_id=customer.user_id,
            items=json.dumps([{"service_id": str(services[name].id), "quantity": 1, "weight_kg": weight}]),
            pickup_address_id=str(customer.id),
            promo_code=code,
        ),
        asynchronous=False,
    )


@when(
    parsers.cfparse('a guest orders {weight:g} kg of "{name}" with phone "{phone}"'),
    target_fixture="order",
)
def guest_orders(services, weight, name, phone):
    return current_domain.process(
        PlaceGuestOrder(
            guest_name="Guest Customer",
            guest_phone=phone,
            items=json.dumps([{"service_id": str(services[name].id), "quantity": 1, "weight_kg": weight}]),
            pickup_address=json.dumps({"address_line1": "Flat 3, Block B", "area": "Clifton"}),
        ),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order subtotal is {subtotal:g}"))
def order_subtotal_is(order, subtotal):
    assert _stored(order).subtotal == subtotal


@then(parsers.cfparse("the delivery fee is {fee:g}"))
def delivery_fee_is(order, fee):
    assert _stored(order).delivery_fee == fee


@then(parsers.cfparse('the promotion "{code}" has been used once'))
def promotion_used_once(code):
    assert find_promotion(code).times_used == 1


@then(parsers.cfparse('the guest phone is "{phone}"'))
def guest_phone_is(order, phone):
    assert _stored(order).guest_phone == phone
