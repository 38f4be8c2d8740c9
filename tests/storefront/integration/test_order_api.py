"""Integration tests for Order API endpoints via TestClient."""

import pytest

ADDRESS = {
    "first_name": "Asha",
    "last_name": "Rao",
    "email": "asha@example.com",
    "phone": "+91 (98765) 43210",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "zip_code": "560001",
    "country": "India",
}


def _order_payload(**overrides):
    payload = {
        "items": [
            {
                "product": {"product_id": "prod-1000", "name": "Helmet", "price": 1000.0, "brand": "Vega"},
                "quantity": 2,
                "price": 1000.0,
            },
            {
                "product": {"product_id": "prod-500", "name": "Gloves", "price": 500.0},
                "quantity": 1,
                "price": 500.0,
            },
        ],
        "shipping_address": dict(ADDRESS),
        "payment_method": "card",
        "subtotal": 2500.0,
        "shipping": 100.0,
        "tax": 450.0,
        "total": 3050.0,
    }
    payload.update(overrides)
    return payload


def _create_order(client, auth, **overrides):
    """Helper: POST /orders and return the response body."""
    response = client.post("/orders", json=_order_payload(**overrides), headers=auth)
    assert response.status_code == 201
    return response.json()


def _set_status(client, auth, order_id, status, **extra):
    return client.patch(f"/orders/{order_id}/status", json={"status": status, **extra}, headers=auth)


class TestCreateOrderAPI:
    def test_create_returns_confirmed_order(self, client, auth, mailbox):
        body = _create_order(client, auth)
        assert body["order_status"] == "confirmed"
        assert body["payment_status"] == "paid"
        assert body["total"] == 3050.0
        assert body["order_number"] == "BWP000001"
        assert len(body["tracking_history"]) == 2
        assert body["can_cancel"] is True

    def test_cod_is_pending_payment(self, client, auth, mailbox):
        assert _create_order(client, auth, payment_method="cod")["payment_status"] == "pending"

    def test_create_sends_confirmation(self, client, auth, mailbox):
        body = _create_order(client, auth)
        assert mailbox.sent_emails[0]["subject"] == f"Order Confirmation - {body['order_number']}"

    def test_email_failure_still_creates_order(self, client, auth, mailbox):
        mailbox.configure(should_succeed=False)
        assert _create_order(client, auth)["order_status"] == "confirmed"

    def test_missing_user_header(self, client):
        assert client.post("/orders", json=_order_payload()).status_code == 401

    @pytest.mark.parametrize(
        "overrides",
        [
            {"items": []},
            {"payment_method": "bitcoin"},
            {"total": 0},
            {"shipping_address": {**ADDRESS, "email": "not-an-email"}},
            {"shipping_address": {**ADDRESS, "phone": "0123"}},
            {"shipping_address": {**ADDRESS, "city": "   "}},
            {
                "items": [
                    {
                        "product": {"product_id": "prod-1000", "name": "Helmet", "price": 1000.0},
                        "quantity": 0,
                        "price": 1000.0,
                    }
                ]
            },
        ],
    )
    def test_invalid_payload(self, client, auth, overrides):
        response = client.post("/orders", json=_order_payload(**overrides), headers=auth)
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "validation"

    def test_total_below_subtotal(self, client, auth):
        response = client.post("/orders", json=_order_payload(total=100.0), headers=auth)
        assert response.status_code == 400
        assert response.json()["kind"] == "validation"


class TestReadOrdersAPI:
    def test_my_orders_newest_first(self, client, auth, mailbox):
        first = _create_order(client, auth)
        second = _create_order(client, auth)
        _create_order(client, {"X-User-Id": "cust-api-002"})

        response = client.get("/orders/mine", headers=auth)
        assert response.status_code == 200
        ids = [order["order_id"] for order in response.json()["orders"]]
        assert ids == [second["order_id"], first["order_id"]]

    def test_read_own_order(self, client, auth, mailbox):
        created = _create_order(client, auth)
        response = client.get(f"/orders/{created['order_id']}", headers=auth)
        assert response.status_code == 200
        assert response.json()["tracking_number"] == created["tracking_number"]

    def test_read_other_users_order_is_not_found(self, client, auth, mailbox):
        created = _create_order(client, auth)
        response = client.get(f"/orders/{created['order_id']}", headers={"X-User-Id": "cust-api-002"})
        assert response.status_code == 404

    def test_read_unknown_order(self, client, auth):
        assert client.get("/orders/does-not-exist", headers=auth).status_code == 404


class TestTrackingAPI:
    def test_track_without_authentication(self, client, auth, mailbox):
        created = _create_order(client, auth)
        response = client.get(f"/orders/track/{created['tracking_number']}")
        assert response.status_code == 200
        body = response.json()
        assert body["order_number"] == created["order_number"]
        assert body["current_status"]["status"] == "order_confirmed"
        assert body["shipping_carrier"] == "BLAST Express"
        assert [stage["completed"] for stage in body["timeline"]] == [True, True, False, False, False, False]

    def test_unknown_tracking_number(self, client):
        response = client.get("/orders/track/BWP0000000000000XXXX")
        assert response.status_code == 404
        assert response.json()["message"] == "tracking_number: Invalid tracking number"
        assert response.json()["errors"] == {"tracking_number": "Invalid tracking number"}

    def test_timeline_after_shipping(self, client, auth, mailbox):
        created = _create_order(client, auth)
        _set_status(client, auth, created["order_id"], "processing")
        _set_status(client, auth, created["order_id"], "shipped", location="Pune Hub")
        _set_status(client, auth, created["order_id"], "shipped", tracking_status="out_for_delivery")

        body = client.get(f"/orders/track/{created['tracking_number']}").json()
        assert [stage["completed"] for stage in body["timeline"]] == [True, True, True, True, True, False]
        assert body["current_status"]["status"] == "out_for_delivery"
        assert len(body["tracking_history"]) == 5


class TestStatusAPI:
    def test_progress_to_delivered(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        for status in ("processing", "shipped", "delivered"):
            response = _set_status(client, auth, order_id, status)
            assert response.status_code == 200
        body = response.json()
        assert body["order_status"] == "delivered"
        assert body["delivered_at"] is not None
        assert body["can_request_refund"] is True

    def test_illegal_jump(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = _set_status(client, auth, order_id, "delivered")
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_state"

    def test_unknown_status_value(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        assert _set_status(client, auth, order_id, "teleported").status_code == 422

    def test_status_update_requires_authentication(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = client.patch(f"/orders/{order_id}/status", json={"status": "processing"})
        assert response.status_code == 401
        assert client.get(f"/orders/{order_id}", headers=auth).json()["order_status"] == "confirmed"

    def test_staff_can_update_any_order(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = _set_status(client, {"X-User-Id": "staff-001"}, order_id, "processing")
        assert response.status_code == 200
        assert response.json()["order_status"] == "processing"

    def test_cancel_through_status_uses_description_as_reason(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = _set_status(client, auth, order_id, "cancelled", description="Out of stock")
        assert response.status_code == 200
        body = response.json()
        assert body["order_status"] == "cancelled"
        assert body["cancellation_reason"] == "Out of stock"
        assert body["tracking_history"][-1]["description"] == "Order cancelled: Out of stock"

    def test_cancel_through_status_without_reason(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = _set_status(client, auth, order_id, "cancelled")
        assert response.status_code == 400
        assert response.json()["kind"] == "validation"
        assert response.json()["errors"] == {"reason": ["A cancellation reason is required"]}

    def test_reconfirming_is_a_narration_only(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = _set_status(client, auth, order_id, "confirmed", description="Payment re-verified")
        assert response.status_code == 200
        body = response.json()
        assert body["order_status"] == "confirmed"
        assert body["tracking_history"][-1]["description"] == "Payment re-verified"


class TestCancelAPI:
    def test_cancel_round_trip(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = client.patch(f"/orders/{order_id}/cancel", json={"reason": "Ordered by mistake"}, headers=auth)
        assert response.status_code == 200

        body = client.get(f"/orders/{order_id}", headers=auth).json()
        assert body["order_status"] == "cancelled"
        assert body["cancellation_reason"] == "Ordered by mistake"
        assert body["tracking_history"][-1]["status"] == "cancelled"
        assert body["can_cancel"] is False

    def test_cancel_shipped_order(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        _set_status(client, auth, order_id, "processing")
        _set_status(client, auth, order_id, "shipped")
        response = client.patch(f"/orders/{order_id}/cancel", json={"reason": "Too late"}, headers=auth)
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_state"

    def test_cancel_other_users_order(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = client.patch(
            f"/orders/{order_id}/cancel",
            json={"reason": "Mischief"},
            headers={"X-User-Id": "cust-api-002"},
        )
        assert response.status_code == 404


class TestRefundAPI:
    def test_refund_delivered_order(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        for status in ("processing", "shipped", "delivered"):
            _set_status(client, auth, order_id, status)
        response = client.post(f"/orders/{order_id}/refund", json={"reason": "Damaged"}, headers=auth)
        assert response.status_code == 200
        body = response.json()
        assert body["refund_status"] == "pending"
        assert body["refund_amount"] == 3050.0
        assert body["notes"] == "Refund requested: Damaged"

    def test_refund_before_delivery(self, client, auth, mailbox):
        order_id = _create_order(client, auth)["order_id"]
        response = client.post(f"/orders/{order_id}/refund", json={"reason": "Changed my mind"}, headers=auth)
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_state"
        assert client.get(f"/orders/{order_id}", headers=auth).json()["refund_status"] == "none"


class TestCheckoutAPI:
    def test_checkout_from_cart(self, client, auth, catalogue, mailbox):
        client.post("/cart/items", json={"product_id": "prod-1000", "quantity": 2}, headers=auth)
        client.post("/cart/items", json={"product_id": "prod-500", "quantity": 1}, headers=auth)

        response = client.post(
            "/cart/checkout",
            json={"shipping_address": ADDRESS, "payment_method": "upi"},
            headers=auth,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["subtotal"] == 2500.0
        assert body["tax"] == 450.0
        assert body["total"] == 2500.0 + 5000.0 + 450.0
        assert client.get("/cart/count", headers=auth).json() == {"count": 0}
        assert len(mailbox.sent_emails) == 1

    def test_checkout_empty_cart(self, client, auth, catalogue):
        client.get("/cart", headers=auth)
        response = client.post(
            "/cart/checkout",
            json={"shipping_address": ADDRESS, "payment_method": "card"},
            headers=auth,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "cart: Cart is empty"
