"""
Admin configuration endpoint tests
"""

import pytest


@pytest.mark.api
class TestPricingRules:

    @pytest.mark.asyncio
    async def test_rule_changes_quotes(self, client, auth_headers_admin):
        response = await client.put(
            "/api/v1/admin-config/pricing-rules/wedding",
            json={"basePrice": 5000, "perGuest": 100, "perHour": 750, "defaultHours": 4},
            headers=auth_headers_admin
        )
        assert response.status_code == 200
        assert response.json()["eventType"] == "wedding"

        response = await client.post("/api/v1/bookings/calc-price", json={
            "eventType": "wedding",
            "guestCount": 200,
            "durationHours": 2
        })
        assert response.json()["totalPrice"] == 26500

        response = await client.post("/api/v1/bookings/calc-price", json={
            "eventType": "wedding",
            "guestCount": 200
        })
        assert response.json()["durationHours"] == 4
        assert response.json()["totalPrice"] == 28000

    @pytest.mark.asyncio
    async def test_upsert_replaces_rule(self, client, auth_headers_admin):
        for base in (1000, 2000):
            await client.put(
                "/api/v1/admin-config/pricing-rules/birthday",
                json={"basePrice": base, "perGuest": 0, "perHour": 0, "defaultHours": 5},
                headers=auth_headers_admin
            )

        response = await client.get("/api/v1/admin-config/pricing-rules", headers=auth_headers_admin)
        rules = response.json()
        assert len(rules) == 1
        assert rules[0]["basePrice"] == 2000

    @pytest.mark.asyncio
    async def test_requires_admin(self, client, auth_headers_user):
        response = await client.get("/api/v1/admin-config/pricing-rules", headers=auth_headers_user)

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": {"code": "AUTH_FORBIDDEN", "message": "Admin access required", "details": {}}
        }

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, client, auth_headers_admin):
        response = await client.put(
            "/api/v1/admin-config/pricing-rules/other",
            json={"basePrice": -1, "perGuest": 0, "perHour": 0, "defaultHours": 5},
            headers=auth_headers_admin
        )
        assert response.status_code == 422


@pytest.mark.api
class TestPaymentMethods:

    @pytest.mark.asyncio
    async def test_receiver_shown_in_instructions(self, client, test_booking, auth_headers_user, auth_headers_admin):
        booking_id = test_booking.id
        response = await client.put(
            "/api/v1/admin-config/payment-methods/telebirr",
            json={"receiverName": "EventHall", "receiverPhone": "0911000000", "note": "Use booking id"},
            headers=auth_headers_admin
        )
        assert response.status_code == 200
        assert response.json()["active"] is True

        response = await client.post(
            f"/api/v1/bookings/{booking_id}/proceed-payment",
            json={"paymentMethod": "telebirr"},
            headers=auth_headers_user
        )
        started = response.json()
        assert started["receiver"] == {
            "name": "EventHall",
            "phone": "0911000000",
            "accountNumber": None,
            "note": "Use booking id"
        }
        assert started["instructions"]["receiver"]["phone"] == "0911000000"

    @pytest.mark.asyncio
    async def test_deactivated_receiver_hidden(self, client, test_booking, auth_headers_user, auth_headers_admin):
        booking_id = test_booking.id
        await client.put(
            "/api/v1/admin-config/payment-methods/cbe",
            json={"receiverName": "EventHall", "active": False},
            headers=auth_headers_admin
        )

        response = await client.post(
            f"/api/v1/bookings/{booking_id}/proceed-payment",
            json={"paymentMethod": "cbe"},
            headers=auth_headers_user
        )
        assert response.json()["receiver"] is None

    @pytest.mark.asyncio
    async def test_unknown_method(self, client, auth_headers_admin):
        response = await client.put(
            "/api/v1/admin-config/payment-methods/paypal",
            json={"receiverName": "X"},
            headers=auth_headers_admin
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.api
class TestHealth:

    @pytest.mark.asyncio
    async def test_live(self, client):
        response = await client.get("/api/v1/health/live")
        assert response.json()["status"] == "alive"

    @pytest.mark.asyncio
    async def test_ready(self, client):
        response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["database"] is True

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/api/v1/health/live", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"
