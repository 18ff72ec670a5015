"""Tests for the Promotion aggregate."""

from datetime import UTC, datetime, timedelta

import pytest
from booking.promotion.promotion import Promotion
from protean.exceptions import ValidationError

NOW = datetime.now(UTC)


def _create(**overrides):
    data = {
        "code": "welcome",
        "discount_type": "percentage",
        "discount_value": 10.0,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=7),
    }
    data.update(overrides)
    return Promotion.create(**data)


class TestPromotion:
    def test_code_is_stored_upper_case(self):
        assert _create().code == "WELCOME"

    def test_percentage_discount(self):
        assert _create().discount_for(800.0) == 80.0

    def test_fixed_discount(self):
        assert _create(discount_type="fixed", discount_value=150.0).discount_for(800.0) == 150.0

    def test_max_discount_cap(self):
        assert _create(max_discount_amount=50.0).discount_for(800.0) == 50.0

    def test_redeemable_inside_window(self):
        assert _create().is_redeemable(NOW)

    def test_not_redeemable_before_start(self):
        assert not _create(valid_from=NOW + timedelta(days=1)).is_redeemable(NOW)

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError):
            _create(valid_until=NOW - timedelta(days=2))

    def test_percentage_over_hundred_rejected(self):
        with pytest.raises(ValidationError):
            _create(discount_value=150.0)

    def test_record_use(self):
        promotion = _create()
        promotion.record_use()
        promotion.record_use()
        assert promotion.times_used == 2
