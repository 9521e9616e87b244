"""
Event publishing and ticket purchase over HTTP
"""

import pytest
from sqlalchemy import select, func

from app.models.audit_log import AuditLog
from app.models.event import EventStatus
from app.models.payment import PaymentStatus

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

EVENT = {
    "title": "New Year Gala",
    "description": "Dinner and live music",
    "eventType": "corporate",
    "location": "Addis Ababa",
    "eventDate": "2026-12-31",
    "eventTime": "19:00",
    "ticketPrice": 500,
    "totalTickets": 1,
    "status": "published",
}


async def buy_ticket(client, event_id, headers):
    response = await client.post(
        f"/api/v1/events/{event_id}/proceed-payment",
        json={"paymentMethod": "cbe", "phoneNumber": "0911223344"},
        headers=headers
    )
    return response


async def upload_proof(client, payment_id, headers):
    return await client.post(
        f"/api/v1/payments/{payment_id}/proof",
        files={"proof": ("receipt.png", PNG, "image/png")},
        headers=headers
    )


@pytest.mark.api
class TestEventEndpoints:

    @pytest.mark.asyncio
    async def test_create_event_requires_admin(self, client, auth_headers_user):
        response = await client.post("/api/v1/events", json=EVENT, headers=auth_headers_user)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_and_list_events(self, client, auth_headers_admin):
        response = await client.post("/api/v1/events", json=EVENT, headers=auth_headers_admin)

        assert response.status_code == 201
        event = response.json()
        assert event["status"] == "published"
        assert event["remainingTickets"] == 1
        assert event["sourceBookingId"] is None

        response = await client.get("/api/v1/events")
        assert response.status_code == 200
        assert response.json()[0]["remainingTickets"] == 1

    @pytest.mark.asyncio
    async def test_events_default_to_draft(self, client, auth_headers_admin):
        payload = {key: value for key, value in EVENT.items() if key != "status"}

        response = await client.post("/api/v1/events", json=payload, headers=auth_headers_admin)
        event_id = response.json()["id"]

        assert response.json()["status"] == "draft"
        assert (await client.get("/api/v1/events")).json() == []
        assert (await client.get(f"/api/v1/events/{event_id}")).status_code == 404
        assert (await client.get(f"/api/v1/events/{event_id}", headers=auth_headers_admin)).status_code == 200

    @pytest.mark.asyncio
    async def test_invalid_event(self, client, auth_headers_admin):
        response = await client.post(
            "/api/v1/events",
            json={**EVENT, "ticketPrice": -1},
            headers=auth_headers_admin
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unlimited_event(self, client, make_event):
        event = await make_event(total_tickets=None)

        response = await client.get(f"/api/v1/events/{event.id}")

        assert response.status_code == 200
        assert response.json()["remainingTickets"] is None
        assert response.json()["totalTickets"] is None


@pytest.mark.api
class TestTicketPurchase:

    @pytest.mark.asyncio
    async def test_last_ticket(self, client, auth_headers_user, auth_headers_other, auth_headers_admin):
        response = await client.post("/api/v1/events", json=EVENT, headers=auth_headers_admin)
        event_id = response.json()["id"]

        first = await buy_ticket(client, event_id, auth_headers_user)
        second = await buy_ticket(client, event_id, auth_headers_other)
        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["payment"]["amount"] == 500
        assert first.json()["payment"]["eventId"] == event_id

        first_id = first.json()["payment"]["id"]
        second_id = second.json()["payment"]["id"]
        await upload_proof(client, first_id, auth_headers_user)
        await upload_proof(client, second_id, auth_headers_other)

        response = await client.post(f"/api/v1/payments/{first_id}/process", headers=auth_headers_admin)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        response = await client.post(f"/api/v1/payments/{second_id}/process", headers=auth_headers_admin)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SOLD_OUT"

        response = await client.get(f"/api/v1/payments/{second_id}", headers=auth_headers_other)
        assert response.json()["status"] == "pending"

        response = await client.get(f"/api/v1/events/{event_id}")
        assert response.json()["remainingTickets"] == 0

        response = await buy_ticket(client, event_id, auth_headers_other)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SOLD_OUT"

        response = await client.get("/api/v1/payments/my-event-tickets", headers=auth_headers_user)
        tickets = response.json()
        assert len(tickets) == 1
        assert tickets[0]["eventTitle"] == "New Year Gala"
        assert tickets[0]["payment"]["qrCodeUrl"] is not None

        response = await client.get(f"/api/v1/payments/{first_id}/qr", headers=auth_headers_user)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    @pytest.mark.asyncio
    async def test_unpublished_event(self, client, make_event, auth_headers_user):
        event = await make_event(status=EventStatus.DRAFT)

        response = await buy_ticket(client, event.id, auth_headers_user)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "EVENT_NOT_AVAILABLE"

    @pytest.mark.asyncio
    async def test_unknown_event(self, client, auth_headers_user):
        response = await buy_ticket(client, "00000000-0000-0000-0000-000000000000", auth_headers_user)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_payment_visible_to_owner_only(self, client, test_event, auth_headers_user, auth_headers_other):
        response = await buy_ticket(client, test_event.id, auth_headers_user)
        payment_id = response.json()["payment"]["id"]

        assert (await client.get(f"/api/v1/payments/{payment_id}", headers=auth_headers_user)).status_code == 200
        assert (await client.get(f"/api/v1/payments/{payment_id}", headers=auth_headers_other)).status_code == 403


@pytest.mark.api
class TestEventAdministration:

    @pytest.mark.asyncio
    async def test_publish_draft(self, client, db_session, auth_headers_user, auth_headers_admin):
        payload = {key: value for key, value in EVENT.items() if key != "status"}
        response = await client.post("/api/v1/events", json=payload, headers=auth_headers_admin)
        event_id = response.json()["id"]

        response = await client.put(
            f"/api/v1/events/{event_id}",
            json={"status": "published", "totalTickets": 50},
            headers=auth_headers_admin
        )

        assert response.status_code == 200
        assert response.json()["status"] == "published"
        assert response.json()["remainingTickets"] == 50
        assert response.json()["title"] == "New Year Gala"

        listed = (await client.get("/api/v1/events")).json()
        assert [event["id"] for event in listed] == [event_id]
        assert (await buy_ticket(client, event_id, auth_headers_user)).status_code == 201

        result = await db_session.execute(select(func.count(AuditLog.id)).where(AuditLog.action == "update_event"))
        assert result.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_update_requires_admin(self, client, test_event, auth_headers_user):
        response = await client.put(
            f"/api/v1/events/{test_event.id}",
            json={"status": "cancelled"},
            headers=auth_headers_user
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_required_fields_cannot_be_cleared(self, client, test_event, auth_headers_admin):
        response = await client.put(
            f"/api/v1/events/{test_event.id}",
            json={"title": None},
            headers=auth_headers_admin
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "title"}

    @pytest.mark.asyncio
    async def test_capacity_not_below_sold(
        self, client, make_event, make_event_payment, test_user, other_user, auth_headers_admin
    ):
        event = await make_event(total_tickets=5)
        event_id = event.id
        await make_event_payment(event, test_user, status=PaymentStatus.COMPLETED)
        await make_event_payment(event, other_user, status=PaymentStatus.COMPLETED)

        response = await client.put(
            f"/api/v1/events/{event_id}",
            json={"totalTickets": 1},
            headers=auth_headers_admin
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CAPACITY_BELOW_SOLD"

        response = await client.put(
            f"/api/v1/events/{event_id}",
            json={"totalTickets": 2},
            headers=auth_headers_admin
        )
        assert response.status_code == 200
        assert response.json()["remainingTickets"] == 0

    @pytest.mark.asyncio
    async def test_cancelled_event_cannot_be_bought(
        self, client, test_event, test_user, make_event_payment, auth_headers_other, auth_headers_admin
    ):
        await make_event_payment(test_event, test_user, status=PaymentStatus.COMPLETED)

        response = await client.delete(f"/api/v1/events/{test_event.id}", headers=auth_headers_admin)
        assert response.status_code == 200
        assert response.json()["message"] == "Event cancelled"

        assert (await client.get(f"/api/v1/events/{test_event.id}")).status_code == 404
        response = await client.get(f"/api/v1/events/{test_event.id}", headers=auth_headers_admin)
        assert response.json()["status"] == "cancelled"

        response = await buy_ticket(client, test_event.id, auth_headers_other)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "EVENT_NOT_AVAILABLE"

    @pytest.mark.asyncio
    async def test_delete_event_without_payments(self, client, db_session, test_event, auth_headers_admin):
        response = await client.delete(f"/api/v1/events/{test_event.id}", headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json()["message"] == "Event deleted"
        assert (await client.get(f"/api/v1/events/{test_event.id}", headers=auth_headers_admin)).status_code == 404

        result = await db_session.execute(select(func.count(AuditLog.id)).where(AuditLog.action == "delete_event"))
        assert result.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_delete_requires_admin(self, client, test_event, auth_headers_user):
        response = await client.delete(f"/api/v1/events/{test_event.id}", headers=auth_headers_user)
        assert response.status_code == 403
