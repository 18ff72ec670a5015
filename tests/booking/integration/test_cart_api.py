"""Integration tests for cart endpoints and checkout via TestClient."""

from booking.cart.store import CartStore
from booking.order.order import Order
from protean import current_domain

SESSION = "sess-api"


def _add(client, service, **body):
    return client.post(f"/carts/{SESSION}/items", json={"service_id": str(service.id), **body})


class TestCartEndpoints:
    def test_empty_cart_is_created(self, client):
        response = client.get(f"/carts/{SESSION}")
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["subtotal"] == 0.0

    def test_add_and_price_item(self, client, wash_and_fold):
        response = _add(client, wash_and_fold, weight_kg=5.0)
        assert response.status_code == 200
        data = response.json()
        assert data["items"][0]["item_price"] == 600.0
        assert data["subtotal"] == 600.0

    def test_add_unknown_service(self, client):
        response = client.post(f"/carts/{SESSION}/items", json={"service_id": "missing"})
        assert response.status_code == 404

    def test_weight_too_low(self, client, wash_and_fold):
        assert _add(client, wash_and_fold, weight_kg=0.2).status_code == 400

    def test_quantity_zero_removes(self, client, shirt_press):
        _add(client, shirt_press, quantity=2)
        response = client.put(f"/carts/{SESSION}/items/{shirt_press.id}", json={"quantity": 0})
        assert response.json()["items"] == []

    def test_update_weight(self, client, wash_and_fold):
        _add(client, wash_and_fold, weight_kg=1.0)
        response = client.put(f"/carts/{SESSION}/items/{wash_and_fold.id}/weight", json={"weight_kg": 2.0})
        assert response.json()["subtotal"] == 240.0

    def test_remove_item(self, client, shirt_press):
        _add(client, shirt_press)
        response = client.delete(f"/carts/{SESSION}/items/{shirt_press.id}")
        assert response.json()["item_count"] == 0

    def test_promo_and_quote(self, client, wash_and_fold, save10):
        _add(client, wash_and_fold, weight_kg=5.0)
        assert client.post(f"/carts/{SESSION}/promo", json={"promo_code": "save10"}).json()["promo_code"] == "SAVE10"

        quote = client.get(f"/carts/{SESSION}/quote", params={"area": "Clifton"}).json()
        assert quote["subtotal"] == 600.0
        assert quote["delivery_fee"] == 150.0
        assert quote["discount"] == 100.0
        assert quote["total"] == 650.0
        assert quote["promo_message"] == "You saved Rs. 100"

    def test_invalid_promo(self, client, wash_and_fold):
        _add(client, wash_and_fold, weight_kg=5.0)
        assert client.post(f"/carts/{SESSION}/promo", json={"promo_code": "BOGUS"}).status_code == 400

    def test_remove_promo(self, client, wash_and_fold, save10):
        _add(client, wash_and_fold, weight_kg=5.0)
        client.post(f"/carts/{SESSION}/promo", json={"promo_code": "SAVE10"})
        assert client.delete(f"/carts/{SESSION}/promo").json()["promo_code"] is None

    def test_clear(self, client, shirt_press):
        _add(client, shirt_press, quantity=3)
        assert client.post(f"/carts/{SESSION}/clear").json()["items"] == []


class TestCheckout:
    def test_registered_checkout(self, client, customer_headers, wash_and_fold, clifton_address, save10):
        _add(client, wash_and_fold, weight_kg=5.0)
        client.post(f"/carts/{SESSION}/promo", json={"promo_code": "SAVE10"})

        response = client.post(
            f"/carts/{SESSION}/checkout",
            json={"pickup_address_id": str(clifton_address.id)},
            headers=customer_headers,
        )

        assert response.status_code == 201
        order = response.json()["order"]
        assert order["total_amount"] == 650.0
        assert order["promo_code"] == "SAVE10"
        assert order["status"] == "confirmed"
        assert CartStore().find(SESSION).item_count() == 0

    def test_guest_checkout(self, client, wash_and_fold):
        _add(client, wash_and_fold, weight_kg=5.0)

        response = client.post(
            f"/carts/{SESSION}/checkout",
            json={
                "guest_name": "Ayesha",
                "guest_phone": "03001234567",
                "pickup_address": {"address_line1": "Flat 3, Block B", "area": "Clifton"},
            },
        )

        assert response.status_code == 201
        assert response.json()["order"]["guest_phone"] == "+923001234567"
        assert response.json()["order"]["status"] == "pending"

    def test_empty_cart_checkout(self, client, customer_headers, clifton_address):
        response = client.post(
            f"/carts/{SESSION}/checkout",
            json={"pickup_address_id": str(clifton_address.id)},
            headers=customer_headers,
        )
        assert response.status_code == 400
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_someone_elses_cart_is_forbidden(self, client, customer_headers, wash_and_fold, clifton_address):
        client.get(f"/carts/{SESSION}", headers=customer_headers)
        _add(client, wash_and_fold, weight_kg=5.0)

        response = client.post(
            f"/carts/{SESSION}/checkout",
            json={"pickup_address_id": str(clifton_address.id)},
            headers={"X-User-Id": "cust-999"},
        )

        assert response.status_code == 403
        assert current_domain.repository_for(Order)._dao.query.all().items == []
        assert CartStore().find(SESSION).item_count() == 1

    def test_guest_cannot_check_out_an_owned_cart(self, client, customer_headers, wash_and_fold):
        client.get(f"/carts/{SESSION}", headers=customer_headers)
        _add(client, wash_and_fold, weight_kg=5.0)

        response = client.post(
            f"/carts/{SESSION}/checkout",
            json={
                "guest_name": "Ayesha",
                "guest_phone": "03001234567",
                "pickup_address": {"address_line1": "Flat 3, Block B", "area": "Clifton"},
            },
        )

        assert response.status_code == 401
