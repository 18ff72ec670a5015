"""Shared BDD fixtures and step definitions for the booking domain."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from booking.address.address import Address
from booking.catalogue.service import Service
from booking.exceptions import ConflictError
from booking.order.order import Order
from booking.order.placement import PlaceOrder
from booking.promotion.promotion import Promotion
from booking.tracking.tracking import tracking_for
from protean import current_domain
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured conflicts."""
    return {"exc": None}


@pytest.fixture()
def services():
    return {}


def _place_order(customer, service, weight):
    return current_domain.process(
        PlaceOrder(
            user_id=customer.user_id,
            items=json.dumps([{"service_id": str(service.id), "quantity": 1, "weight_kg": weight}]),
            pickup_address_id=str(customer.id),
        ),
        asynchronous=False,
    )


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a customer with a saved address in "{area}"'), target_fixture="customer")
def customer_with_address(area):
    address = Address.create(user_id="cust-bdd", label="Home", address_line1="House 12, Street 4", area=area)
    current_domain.repository_for(Address).add(address)
    return address


@given(parsers.cfparse('the catalogue offers "{name}" at {price:g} per kg'))
def catalogue_offers(services, name, price):
    service = Service.create(name=name, base_price=price, price_per_kg=price, price_type="per_kg")
    current_domain.repository_for(Service).add(service)
    services[name] = service


@given(parsers.cfparse('the promotion "{code}" gives {amount:g} off'))
def fixed_promotion(code, amount):
    now = datetime.now(UTC)
    promotion = Promotion.create(
        code=code,
        discount_type="fixed",
        discount_value=amount,
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=30),
    )
    current_domain.repository_for(Promotion).add(promotion)


@given(
    parsers.cfparse('the customer has placed an order for {weight:g} kg of "{name}"'),
    target_fixture="order",
)
def placed_order(customer, services, weight, name):
    return _place_order(customer, services[name], weight)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert _reload(order).status == status


@then(parsers.cfparse("the order total is {total:g}"))
def order_total_is(order, total):
    assert _reload(order).total_amount == total


@then(parsers.cfparse('the tracking log reads "{statuses}"'))
def tracking_log_reads(order, statuses):
    assert ", ".join(entry.status for entry in tracking_for(order.id)) == statuses


@then(parsers.cfparse('the request is rejected as a conflict with current status "{status}"'))
def rejected_as_conflict(error, status):
    assert isinstance(error["exc"], ConflictError)
    assert error["exc"].current_status == status


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer orders {weight:g} kg of "{name}"'), target_fixture="order")
def customer_orders(customer, services, weight, name):
    return _place_order(customer, services[name], weight)
