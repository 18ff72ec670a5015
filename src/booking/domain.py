"""Booking bounded context — laundry pickup, pricing and order lifecycle.

Handles the service catalogue, customer address books, shopping carts,
promotions, order placement (registered and guest), the order status state
machine with its tracking log, payment settlement and customer notifications.
"""

from protean.domain import Domain

from booking.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging(log_file_prefix="washerman")

logger = get_logger(__name__)

# Domain Composition Root
booking = Domain(name="booking")
