"""Pakistani mobile number validation and normalisation."""

import re

_MOBILE_PATTERN = re.compile(r"^(\+92|0)?3\d{9}$")


def clean_phone(number: str) -> str:
    """Strip whitespace from a phone number as typed by a customer."""
    return re.sub(r"\s", "", number or "")


def is_valid_phone(number: str) -> bool:
    """Accept ``+923XXXXXXXXX``, ``03XXXXXXXXX`` or ``3XXXXXXXXX``."""
    return bool(_MOBILE_PATTERN.match(clean_phone(number)))


def normalize_phone(number: str) -> str:
    """Return the canonical ``+92XXXXXXXXXX`` form of a valid mobile number."""
    cleaned = clean_phone(number)
    if not _MOBILE_PATTERN.match(cleaned):
        raise ValueError(f"Invalid phone number: {number!r}")

    if cleaned.startswith("+92"):
        return cleaned
    if cleaned.startswith("0"):
        return f"+92{cleaned[1:]}"
    return f"+92{cleaned}"
