"""Tests for Pakistani mobile number validation."""

import pytest
from booking.shared.phone import is_valid_phone, normalize_phone


class TestPhoneValidation:
    @pytest.mark.parametrize("number", ["03001234567", "+923001234567", "3001234567", "0300 123 4567"])
    def test_accepts_mobile_formats(self, number):
        assert is_valid_phone(number)

    @pytest.mark.parametrize("number", ["", "02134567890", "0300123456", "+9230012345678", "abc"])
    def test_rejects_other_numbers(self, number):
        assert not is_valid_phone(number)


class TestPhoneNormalization:
    @pytest.mark.parametrize("number", ["03001234567", "+923001234567", "3001234567", " 0300 1234567 "])
    def test_normalizes_to_international_form(self, number):
        assert normalize_phone(number) == "+923001234567"

    def test_invalid_number_raises(self):
        with pytest.raises(ValueError):
            normalize_phone("12345")
