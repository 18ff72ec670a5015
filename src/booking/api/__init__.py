from booking.api.routes import (
    ALL_ROUTERS,
    address_router,
    cart_router,
    notification_router,
    order_router,
    promotion_router,
    service_router,
    webhook_router,
)

__all__ = [
    "ALL_ROUTERS",
    "address_router",
    "cart_router",
    "notification_router",
    "order_router",
    "promotion_router",
    "service_router",
    "webhook_router",
]
