import pytest
from booking.api import ALL_ROUTERS
from booking.api.errors import register_booking_exception_handlers
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    app = FastAPI()
    for router in ALL_ROUTERS:
        app.include_router(router)
    register_booking_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def customer_headers(customer_id):
    return {"X-User-Id": customer_id}


@pytest.fixture()
def admin_headers():
    return {"X-User-Id": "admin-1", "X-User-Role": "admin"}
