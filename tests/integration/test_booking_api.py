"""Integration tests for booking endpoints."""

import asyncio
from uuid import uuid4

import pytest

from tests.fixtures.time_helpers import next_weekday


@pytest.fixture
def booking_payload(sample_studio, sample_employee, sample_service, sample_offering):
    monday = next_weekday(0)
    return {
        "studio_id": sample_studio.id,
        "service_id": sample_service.id,
        "employee_id": sample_employee.id,
        "start_time": f"{monday.isoformat()}T10:00:00Z",
        "customer_name": "Ada Lovelace",
        "customer_phone": "+15550100",
        "customer_email": "ada@example.com",
        "notes": "Allergic to latex",
    }


class TestBookingAPI:
    async def test_create_and_fetch(self, client, booking_payload):
        response = await client.post("/api/v1/bookings/", json=booking_payload)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["price"] == "80.00"
        assert data["private_notes"] is None

        fetched = await client.get(f"/api/v1/bookings/{data['uuid']}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == data["id"]

    async def test_double_booking_conflict(self, client, booking_payload):
        first = await client.post("/api/v1/bookings/", json=booking_payload)
        second = await client.post("/api/v1/bookings/", json=booking_payload)

        assert first.status_code == 201
        assert second.status_code == 409

    async def test_concurrent_requests_single_winner(self, client, booking_payload):
        responses = await asyncio.gather(
            *(client.post("/api/v1/bookings/", json=booking_payload) for _ in range(5))
        )
        codes = sorted(r.status_code for r in responses)
        assert codes == [201, 409, 409, 409, 409]

    async def test_invalid_phone_is_bad_request(self, client, booking_payload):
        booking_payload["customer_phone"] = "call me"
        response = await client.post("/api/v1/bookings/", json=booking_payload)
        assert response.status_code == 400

    async def test_past_start_is_bad_request(self, client, booking_payload):
        booking_payload["start_time"] = "2001-01-01T10:00:00Z"
        response = await client.post("/api/v1/bookings/", json=booking_payload)
        assert response.status_code == 400

    async def test_unknown_employee(self, client, booking_payload):
        booking_payload["employee_id"] = 999
        response = await client.post("/api/v1/bookings/", json=booking_payload)
        assert response.status_code == 404

    async def test_unknown_booking(self, client):
        response = await client.get(f"/api/v1/bookings/{uuid4()}")
        assert response.status_code == 404

    async def test_status_lifecycle(self, client, booking_payload):
        created = (await client.post("/api/v1/bookings/", json=booking_payload)).json()
        url = f"/api/v1/bookings/{created['uuid']}/status"

        confirmed = await client.patch(url, json={"status": "CONFIRMED"})
        assert confirmed.status_code == 200
        assert confirmed.json()["previous_status"] == "PENDING"

        completed = await client.patch(
            url, json={"status": "COMPLETED", "private_notes": "Went well"}
        )
        assert completed.status_code == 200
        assert completed.json()["private_notes"] == "Went well"

        reopened = await client.patch(url, json={"status": "PENDING"})
        assert reopened.status_code == 409

    async def test_unknown_status_value(self, client, booking_payload):
        created = (await client.post("/api/v1/bookings/", json=booking_payload)).json()
        response = await client.patch(
            f"/api/v1/bookings/{created['uuid']}/status", json={"status": "LOST"}
        )
        assert response.status_code == 400

    async def test_list_bookings(self, client, booking_payload, sample_studio):
        await client.post("/api/v1/bookings/", json=booking_payload)
        booking_payload["start_time"] = booking_payload["start_time"].replace(
            "T10:00", "T14:00"
        )
        later = (await client.post("/api/v1/bookings/", json=booking_payload)).json()
        await client.patch(
            f"/api/v1/bookings/{later['uuid']}/status", json={"status": "CANCELLED"}
        )

        response = await client.get(
            "/api/v1/bookings/",
            params={"studio_id": sample_studio.id, "status": "PENDING"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 1
        assert data["bookings"][0]["status"] == "PENDING"

        everything = await client.get(
            "/api/v1/bookings/", params={"studio_id": sample_studio.id}
        )
        assert everything.json()["total_count"] == 2
