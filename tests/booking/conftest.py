import os
from datetime import UTC, datetime, timedelta

import pytest


@pytest.fixture(scope="session")
def _booking_domain(request):
    """Initialize the booking domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from booking.domain import booking

    booking.init()
    return booking


@pytest.fixture(scope="session", autouse=True)
def setup_db(_booking_domain):
    from booking.utils.db import drop_db, setup_db

    setup_db(_booking_domain)

    yield

    drop_db(_booking_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_booking_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _booking_domain.domain_context()
    ctx.push()

    yield

    from booking.payment.gateway import reset_gateways
    from protean import current_domain

    reset_gateways()

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture(autouse=True)
def _no_provider_credentials(monkeypatch):
    """Keep the online gateways in sandbox mode regardless of the shell environment."""
    for name in (
        "STRIPE_SECRET_KEY",
        "STRIPE_WEBHOOK_SECRET",
        "EASYPAISA_MERCHANT_ID",
        "EASYPAISA_HASH_KEY",
        "JAZZCASH_MERCHANT_ID",
        "JAZZCASH_PASSWORD",
        "JAZZCASH_INTEGRITY_SALT",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Catalogue and address book data
# ---------------------------------------------------------------------------
@pytest.fixture()
def wash_and_fold():
    """Wash & Fold at Rs. 120 per kg."""
    from booking.catalogue.service import Service
    from protean import current_domain

    service = Service.create(
        name="Wash & Fold",
        base_price=120.0,
        price_per_kg=120.0,
        price_type="per_kg",
        category="wash",
    )
    current_domain.repository_for(Service).add(service)
    return service


@pytest.fixture()
def shirt_press():
    """Shirt pressing at Rs. 60 per piece."""
    from booking.catalogue.service import Service
    from protean import current_domain

    service = Service.create(name="Shirt Press", base_price=60.0, category="iron")
    current_domain.repository_for(Service).add(service)
    return service


@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def clifton_address(customer_id):
    from booking.address.address import Address
    from protean import current_domain

    address = Address.create(
        user_id=customer_id,
        label="Home",
        address_line1="House 12, Street 4",
        area="Clifton",
        is_primary=True,
    )
    current_domain.repository_for(Address).add(address)
    return address


@pytest.fixture()
def save10():
    """SAVE10: Rs. 100 off, active for the next month."""
    from booking.promotion.promotion import Promotion
    from protean import current_domain

    now = datetime.now(UTC)
    promotion = Promotion.create(
        code="SAVE10",
        discount_type="fixed",
        discount_value=100.0,
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=30),
    )
    current_domain.repository_for(Promotion).add(promotion)
    return promotion
