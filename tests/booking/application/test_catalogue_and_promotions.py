"""Application tests for service catalogue and promotion administration."""

from datetime import UTC, datetime, timedelta

import pytest
from booking.catalogue.management import AddService, DeactivateService, UpdateService, active_services, get_service
from booking.exceptions import NotFoundError
from booking.promotion.management import CreatePromotion, DeactivatePromotion, find_promotion
from protean import current_domain
from protean.exceptions import ValidationError


def _add_service(**overrides):
    data = {"name": "Dry Clean Suit", "base_price": 450.0, "category": "dry_clean"}
    data.update(overrides)
    return current_domain.process(AddService(**data), asynchronous=False)


class TestServiceCatalogue:
    def test_add_service_defaults_turnaround(self):
        service = get_service(_add_service())
        assert service.turnaround_hours == 48
        assert service.unit_price == 450.0

    def test_weight_priced_unit_price(self):
        service = get_service(_add_service(name="Wash & Fold", base_price=100.0, price_per_kg=120.0, price_type="per_kg"))
        assert service.unit_price == 120.0

    def test_update_service(self):
        service_id = _add_service()
        current_domain.process(UpdateService(service_id=service_id, base_price=500.0), asynchronous=False)
        assert get_service(service_id).base_price == 500.0

    def test_deactivated_service_is_not_listed(self):
        keep = _add_service(name="Iron Shirt", base_price=50.0, category="iron")
        drop = _add_service()
        current_domain.process(DeactivateService(service_id=drop), asynchronous=False)
        assert [str(service.id) for service in active_services()] == [keep]

    def test_unknown_service(self):
        with pytest.raises(NotFoundError):
            get_service("missing")


class TestPromotionAdministration:
    def _create(self, code="WELCOME"):
        now = datetime.now(UTC)
        return current_domain.process(
            CreatePromotion(
                code=code,
                discount_type="percentage",
                discount_value=15.0,
                valid_from=now - timedelta(days=1),
                valid_until=now + timedelta(days=10),
            ),
            asynchronous=False,
        )

    def test_create_and_find_case_insensitively(self):
        self._create("welcome")
        assert find_promotion("Welcome").discount_value == 15.0

    def test_duplicate_code_rejected(self):
        self._create()
        with pytest.raises(ValidationError):
            self._create("welcome")

    def test_deactivate(self):
        promotion_id = self._create()
        current_domain.process(DeactivatePromotion(promotion_id=promotion_id), asynchronous=False)
        assert not find_promotion("WELCOME").is_redeemable()
