"""Tests for booking endpoints."""

import uuid
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from tests.factories import booking_payload, future_stay

pytestmark = pytest.mark.asyncio(loop_scope="session")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _create(client: AsyncClient, payload: dict, headers: dict | None = None) -> dict:
    response = await client.post("/api/v1/bookings", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# POST /api/v1/bookings
# ---------------------------------------------------------------------------


class TestCreateBooking:
    """Tests for creating bookings."""

    async def test_create_success(self, client: AsyncClient, test_property: dict) -> None:
        check_in, check_out = future_stay(30, 5)
        payload = booking_payload(
            test_property["id"],
            check_in,
            check_out,
            booking_amount="750.00",
            special_requests="Late check-in around 10pm",
            additional_guests=[{"guest_name": "Mary Doe", "guest_age": 31, "relationship_to_main_guest": "spouse"}],
        )

        response = await client.post("/api/v1/bookings", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["property_id"] == test_property["id"]
        assert data["guest_name"] == "John Doe"
        assert data["guest_email"] == "john@example.com"
        assert data["check_in_date"] == check_in.isoformat()
        assert data["check_out_date"] == check_out.isoformat()
        assert data["total_nights"] == 5
        assert data["booking_status"] == "confirmed"
        assert data["payment_status"] == "pending"
        assert float(data["booking_amount"]) == 750.00
        assert data["special_requests"] == "Late check-in around 10pm"
        assert data["created_by"] is None
        assert [g["guest_name"] for g in data["additional_guests"]] == ["Mary Doe"]
        assert "id" in data
        assert "created_at" in data

    async def test_create_records_acting_user(self, client: AsyncClient, test_property: dict) -> None:
        actor = str(uuid.uuid4())
        data = await _create(
            client, booking_payload(test_property["id"], *future_stay(30, 2)), headers={"X-User-ID": actor}
        )
        assert data["created_by"] == actor

    async def test_create_bad_actor_header(self, client: AsyncClient, test_property: dict) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(test_property["id"], *future_stay(30, 2)),
            headers={"X-User-ID": "admin"},
        )
        assert response.status_code == 400

    async def test_create_pending(self, client: AsyncClient, test_property: dict) -> None:
        data = await _create(
            client, booking_payload(test_property["id"], *future_stay(30, 2), booking_status="pending")
        )
        assert data["booking_status"] == "pending"

    @pytest.mark.parametrize("booking_status", ["cancelled", "completed", "tentative"])
    async def test_create_rejects_non_initial_status(
        self, client: AsyncClient, test_property: dict, booking_status: str
    ) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(test_property["id"], *future_stay(30, 2), booking_status=booking_status),
        )
        assert response.status_code == 400

    async def test_create_same_dates_conflict(self, client: AsyncClient, test_property: dict) -> None:
        payload = booking_payload(test_property["id"], *future_stay(50, 5))
        first = await _create(client, payload)

        response = await client.post("/api/v1/bookings", json=payload)

        assert response.status_code == 409
        body = response.json()
        assert "overlap" in body["detail"].lower()
        assert body["conflicting_booking_ids"] == [first["id"]]

    async def test_create_partial_overlap_conflict(self, client: AsyncClient, test_property: dict) -> None:
        check_in, check_out = future_stay(60, 5)
        await _create(client, booking_payload(test_property["id"], check_in, check_out))

        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(test_property["id"], check_out - timedelta(days=2), check_out + timedelta(days=3)),
        )
        assert response.status_code == 409

    async def test_create_back_to_back(self, client: AsyncClient, test_property: dict) -> None:
        check_in, check_out = future_stay(60, 5)
        await _create(client, booking_payload(test_property["id"], check_in, check_out))

        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(test_property["id"], check_out, check_out + timedelta(days=2)),
        )
        assert response.status_code == 201

    async def test_create_same_day_checkout(self, client: AsyncClient, test_property: dict) -> None:
        check_in, _ = future_stay(70, 1)
        response = await client.post("/api/v1/bookings", json=booking_payload(test_property["id"], check_in, check_in))
        assert response.status_code == 400

    async def test_create_checkout_before_checkin(self, client: AsyncClient, test_property: dict) -> None:
        check_in, _ = future_stay(80, 1)
        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(test_property["id"], check_in, check_in - timedelta(days=2)),
        )
        assert response.status_code == 400

    async def test_create_malformed_date(self, client: AsyncClient, test_property: dict) -> None:
        payload = booking_payload(test_property["id"], *future_stay(30, 2))
        payload["check_in_date"] = "2024-02-30"
        response = await client.post("/api/v1/bookings", json=payload)
        assert response.status_code == 400

    async def test_create_missing_guest_fields(self, client: AsyncClient, test_property: dict) -> None:
        payload = booking_payload(test_property["id"], *future_stay(30, 2))
        del payload["guest_id_card"]
        response = await client.post("/api/v1/bookings", json=payload)
        assert response.status_code == 400

    async def test_create_zero_guests(self, client: AsyncClient, test_property: dict) -> None:
        response = await client.post(
            "/api/v1/bookings",
            json=booking_payload(test_property["id"], *future_stay(30, 2), number_of_guests=0),
        )
        assert response.status_code == 400

    async def test_create_unknown_property(self, client: AsyncClient, setup_test_db) -> None:
        response = await client.post("/api/v1/bookings", json=booking_payload(str(uuid.uuid4()), *future_stay(30, 2)))
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# GET /api/v1/bookings/{id}
# ---------------------------------------------------------------------------


class TestGetBooking:
    async def test_get_success(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))

        response = await client.get(f"/api/v1/bookings/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
        assert response.json()["total_nights"] == 3

    async def test_repeated_reads_are_identical(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(
            client,
            booking_payload(
                test_property["id"],
                *future_stay(30, 4),
                additional_guests=[{"guest_name": "Mary Doe", "guest_age": 31}],
            ),
        )

        first = await client.get(f"/api/v1/bookings/{created['id']}")
        second = await client.get(f"/api/v1/bookings/{created['id']}")

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert first.json()["total_nights"] == 4
        assert first.json()["updated_at"] == created["updated_at"]

    async def test_get_not_found(self, client: AsyncClient, setup_test_db) -> None:
        response = await client.get(f"/api/v1/bookings/{uuid.uuid4()}")
        assert response.status_code == 404

    async def test_get_malformed_id(self, client: AsyncClient, setup_test_db) -> None:
        response = await client.get("/api/v1/bookings/12345")
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# PUT /api/v1/bookings/{id}
# ---------------------------------------------------------------------------


class TestUpdateBooking:
    """Tests for sparse booking updates."""

    async def test_update_partial(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(
            client,
            booking_payload(test_property["id"], *future_stay(30, 3), special_requests="Extra towels"),
        )

        response = await client.put(f"/api/v1/bookings/{created['id']}", json={"booking_notes": "Paid deposit"})

        assert response.status_code == 200
        data = response.json()
        assert data["booking_notes"] == "Paid deposit"
        assert data["special_requests"] == "Extra towels"
        assert data["guest_name"] == created["guest_name"]
        assert data["check_in_date"] == created["check_in_date"]
        assert data["check_out_date"] == created["check_out_date"]

    async def test_update_dates(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))
        new_check_out = (date.fromisoformat(created["check_out_date"]) + timedelta(days=2)).isoformat()

        response = await client.put(f"/api/v1/bookings/{created['id']}", json={"check_out_date": new_check_out})

        assert response.status_code == 200
        assert response.json()["check_out_date"] == new_check_out
        assert response.json()["total_nights"] == 5

    async def test_update_into_overlap(self, client: AsyncClient, test_property: dict) -> None:
        first = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))
        second = await _create(client, booking_payload(test_property["id"], *future_stay(40, 3)))

        response = await client.put(
            f"/api/v1/bookings/{second['id']}",
            json={"check_in_date": first["check_in_date"], "check_out_date": first["check_out_date"]},
        )

        assert response.status_code == 409
        assert response.json()["conflicting_booking_ids"] == [first["id"]]

        unchanged = await client.get(f"/api/v1/bookings/{second['id']}")
        assert unchanged.json()["check_in_date"] == second["check_in_date"]

    async def test_update_inverted_dates(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))
        response = await client.put(
            f"/api/v1/bookings/{created['id']}",
            json={"check_in_date": created["check_out_date"], "check_out_date": created["check_in_date"]},
        )
        assert response.status_code == 400

    async def test_update_empty_body(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))
        response = await client.put(f"/api/v1/bookings/{created['id']}", json={})
        assert response.status_code == 400

    async def test_update_null_required_field(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))
        response = await client.put(f"/api/v1/bookings/{created['id']}", json={"guest_name": None})
        assert response.status_code == 400

    async def test_update_not_found(self, client: AsyncClient, setup_test_db) -> None:
        response = await client.put(f"/api/v1/bookings/{uuid.uuid4()}", json={"booking_notes": "hello"})
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# PUT /api/v1/bookings/{id}/cancel
# ---------------------------------------------------------------------------


class TestCancelBooking:
    async def test_cancel_success(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))

        response = await client.put(f"/api/v1/bookings/{created['id']}/cancel")

        assert response.status_code == 204
        assert response.content == b""
        fetched = await client.get(f"/api/v1/bookings/{created['id']}")
        assert fetched.json()["booking_status"] == "cancelled"

    async def test_cancel_frees_dates(self, client: AsyncClient, test_property: dict) -> None:
        payload = booking_payload(test_property["id"], *future_stay(30, 3))
        created = await _create(client, payload)
        await client.put(f"/api/v1/bookings/{created['id']}/cancel")

        response = await client.post("/api/v1/bookings", json=payload)
        assert response.status_code == 201

    async def test_cancel_twice(self, client: AsyncClient, test_property: dict) -> None:
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)))
        await client.put(f"/api/v1/bookings/{created['id']}/cancel")

        response = await client.put(f"/api/v1/bookings/{created['id']}/cancel")
        assert response.status_code == 409

    async def test_cancel_started_stay(self, client: AsyncClient, test_property: dict) -> None:
        today = date.today()
        created = await _create(
            client, booking_payload(test_property["id"], today - timedelta(days=1), today + timedelta(days=2))
        )
        response = await client.put(f"/api/v1/bookings/{created['id']}/cancel")
        assert response.status_code == 409

    async def test_cancel_not_found(self, client: AsyncClient, setup_test_db) -> None:
        response = await client.put(f"/api/v1/bookings/{uuid.uuid4()}/cancel")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# GET /api/v1/bookings/{id}/history
# ---------------------------------------------------------------------------


class TestBookingHistory:
    async def test_history_trail(self, client: AsyncClient, test_property: dict) -> None:
        actor = str(uuid.uuid4())
        headers = {"X-User-ID": actor}
        created = await _create(client, booking_payload(test_property["id"], *future_stay(30, 3)), headers=headers)
        await client.put(f"/api/v1/bookings/{created['id']}", json={"number_of_guests": 3}, headers=headers)
        await client.put(f"/api/v1/bookings/{created['id']}/cancel")

        response = await client.get(f"/api/v1/bookings/{created['id']}/history")

        assert response.status_code == 200
        entries = response.json()
        assert [e["modification_type"] for e in entries] == ["created", "updated", "cancelled"]
        assert [e["modified_by"] for e in entries] == [actor, actor, None]
        assert entries[1]["old_values"]["number_of_guests"] == 2
        assert entries[1]["new_values"]["number_of_guests"] == 3

    async def test_history_not_found(self, client: AsyncClient, setup_test_db) -> None:
        response = await client.get(f"/api/v1/bookings/{uuid.uuid4()}/history")
        assert response.status_code == 404
