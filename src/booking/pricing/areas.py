"""Delivery pricing constants for the Karachi service area."""

import os

# Orders at or above this subtotal (PKR) ship free, whatever the area
FREE_DELIVERY_THRESHOLD = float(os.getenv("FREE_DELIVERY_THRESHOLD", "1000"))

# Fee for areas missing from the table
DEFAULT_DELIVERY_FEE = float(os.getenv("DEFAULT_DELIVERY_FEE", "150"))

AREA_DELIVERY_FEES = {
    "DHA Phase 1": 150.0,
    "DHA Phase 2": 150.0,
    "DHA Phase 4": 150.0,
    "DHA Phase 5": 150.0,
    "DHA Phase 6": 150.0,
    "DHA Phase 7": 175.0,
    "DHA Phase 8": 175.0,
    "Clifton": 150.0,
    "PECHS": 150.0,
    "Gulshan-e-Iqbal": 175.0,
    "Gulistan-e-Johar": 175.0,
    "North Nazimabad": 200.0,
    "Nazimabad": 200.0,
    "Saddar": 175.0,
    "Korangi": 200.0,
    "Malir": 225.0,
    "Scheme 33": 200.0,
    "Bahria Town": 250.0,
    "FB Area": 175.0,
    "Garden": 175.0,
}

# Minutes from dispatch to door, shown alongside the fee
AREA_ESTIMATED_TIMES = {
    "DHA Phase 1": "45-60 min",
    "DHA Phase 2": "45-60 min",
    "DHA Phase 4": "45-60 min",
    "DHA Phase 5": "45-60 min",
    "DHA Phase 6": "45-60 min",
    "DHA Phase 7": "50-70 min",
    "DHA Phase 8": "50-70 min",
    "Clifton": "40-55 min",
    "PECHS": "35-50 min",
    "Gulshan-e-Iqbal": "50-70 min",
    "Gulistan-e-Johar": "55-75 min",
    "North Nazimabad": "60-80 min",
    "Nazimabad": "55-75 min",
    "Saddar": "45-65 min",
    "Korangi": "60-80 min",
    "Malir": "70-90 min",
    "Scheme 33": "55-75 min",
    "Bahria Town": "80-100 min",
    "FB Area": "50-70 min",
    "Garden": "45-65 min",
}
