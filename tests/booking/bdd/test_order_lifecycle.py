"""BDD tests for the order lifecycle."""

from booking.exceptions import ConflictError
from booking.order.lifecycle import CancelOrder, UpdateOrder
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, when

scenarios("features/order_lifecycle.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an administrator sets the status to "{status}"'))
@when(parsers.cfparse('an administrator sets the status to "{status}"'))
def admin_sets_status(order, status, error):
    try:
        current_domain.process(UpdateOrder(order_id=str(order.id), actor_id="admin-1", status=status), asynchronous=False)
    except ConflictError as exc:
        error["exc"] = exc


@when("the customer cancels the order")
def customer_cancels(order, customer, error):
    try:
        current_domain.process(CancelOrder(order_id=str(order.id), actor_id=customer.user_id), asynchronous=False)
    except ConflictError as exc:
        error["exc"] = exc
