"""
HTTP tests for booking, listing, cancelling and reminder toggles.

The clock is frozen on Wednesday 2025-03-05 10:00 local time and bookings
target the following Monday.
"""

from datetime import datetime

import pytest

from cliniclink.api.deps import get_notification_channel
from cliniclink.core import clock as clock_module
from cliniclink.main import app
from conftest import BrokenChannel

MONDAY = "2025-03-10"


async def book(client, headers, time: str, doctor_id: str = "1", day: str = MONDAY, reason: str = "Fever"):
    return await client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor_id, "date": day, "time": time, "reason": reason},
        headers=headers,
    )


class TestBooking:
    async def test_book_success(self, client, patient, patient_headers):
        response = await book(client, patient_headers, "09:00")
        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == patient.id
        assert body["doctor_name"] == "Dr. Smith"
        assert body["specialty"] == "Cardiologist"
        assert body["date"] == MONDAY
        assert body["time"] == "09:00:00"
        assert not body["created_at"].endswith("Z")

    async def test_conflict_scenario(self, client, patient_headers, other_headers):
        assert (await book(client, patient_headers, "09:00")).status_code == 201

        conflict = await book(client, other_headers, "09:30")
        assert conflict.status_code == 409
        assert conflict.json()["code"] == "SlotConflict"

        ok = await book(client, other_headers, "09:45")
        assert ok.status_code == 201

    async def test_saturday_rejected(self, client, patient_headers):
        response = await book(client, patient_headers, "10:00", day="2025-03-08")
        assert response.status_code == 422
        assert response.json()["code"] == "NonBusinessDay"

    async def test_outside_hours_rejected(self, client, patient_headers):
        response = await book(client, patient_headers, "17:00")
        assert response.status_code == 422
        assert response.json()["code"] == "OutsideBusinessHours"

    async def test_past_rejected(self, client, patient_headers):
        response = await book(client, patient_headers, "09:00", day="2025-03-04")
        assert response.status_code == 422
        assert response.json()["code"] == "PastTime"

    async def test_blank_reason_rejected(self, client, patient_headers):
        response = await book(client, patient_headers, "09:00", reason="  ")
        assert response.json()["code"] == "MissingFields"

    async def test_anonymous_rejected_after_slot_checks(self, client):
        response = await book(client, {}, "09:00")
        assert response.status_code == 401
        assert response.json()["code"] == "Unauthenticated"

        weekend = await book(client, {}, "10:00", day="2025-03-08")
        assert weekend.json()["code"] == "NonBusinessDay"

    @pytest.mark.parametrize("bad_time", ["25:00", "9am", "10:00:30"])
    async def test_malformed_time_fails_validation(self, client, patient_headers, bad_time):
        response = await book(client, patient_headers, bad_time)
        assert response.status_code == 422
        assert "code" not in response.json()

    async def test_malformed_date_fails_validation(self, client, patient_headers):
        response = await book(client, patient_headers, "09:00", day="2025-02-30")
        assert response.status_code == 422


class TestListing:
    async def test_upcoming_is_ordered_and_annotated(self, client, clock, patient_headers):
        later = (await book(client, patient_headers, "09:00", day="2025-03-12")).json()
        sooner = (await book(client, patient_headers, "14:00")).json()
        await client.post(f"/api/v1/appointments/{later['id']}/reminder", headers=patient_headers)

        response = await client.get("/api/v1/appointments/upcoming", headers=patient_headers)
        assert response.status_code == 200
        rows = response.json()["appointments"]
        assert [(r["id"], r["reminder"]) for r in rows] == [(sooner["id"], False), (later["id"], True)]

        clock.now = datetime(2025, 3, 10, 14, 0)
        rows = (await client.get("/api/v1/appointments/upcoming", headers=patient_headers)).json()
        assert [r["id"] for r in rows["appointments"]] == [later["id"]]

    async def test_upcoming_requires_login(self, client):
        response = await client.get("/api/v1/appointments/upcoming")
        assert response.status_code == 401

    async def test_history_filters(self, client, clock, patient_headers, other_headers):
        await book(client, patient_headers, "09:00", doctor_id="1")
        await book(client, patient_headers, "11:00", doctor_id="2", day="2025-03-11")
        await book(client, other_headers, "13:00", doctor_id="3")

        clock.now = datetime(2025, 3, 20, 9, 0)
        response = await client.get("/api/v1/appointments/history", headers=patient_headers)
        body = response.json()
        assert body["doctors"] == ["Dr. Smith", "Dr. Patel"]
        assert len(body["appointments"]) == 2

        by_doctor = await client.get(
            "/api/v1/appointments/history", params={"doctor": "Dr. Patel"}, headers=patient_headers
        )
        assert [a["doctor_id"] for a in by_doctor.json()["appointments"]] == ["2"]

        by_range = await client.get(
            "/api/v1/appointments/history",
            params={"from_dt": "2025-03-10T00:00:00", "to_dt": "2025-03-10T23:59:00"},
            headers=patient_headers,
        )
        assert [a["date"] for a in by_range.json()["appointments"]] == [MONDAY]

    async def test_history_range_accepts_offsets(self, client, clock, patient_headers, monkeypatch):
        monkeypatch.setattr(clock_module.settings, "clinic_timezone", "UTC")
        await book(client, patient_headers, "09:00")
        await book(client, patient_headers, "11:00", day="2025-03-11")

        clock.now = datetime(2025, 3, 20, 9, 0)
        whole_month = await client.get(
            "/api/v1/appointments/history",
            params={"from_dt": "2025-03-01T00:00:00Z", "to_dt": "2025-03-31T00:00:00Z"},
            headers=patient_headers,
        )
        assert whole_month.status_code == 200
        assert len(whole_month.json()["appointments"]) == 2

        # 14:00 at +05:00 is 09:00 clinic time; the bound is inclusive.
        shifted = await client.get(
            "/api/v1/appointments/history",
            params={"from_dt": "2025-03-10T14:00:00+05:00", "to_dt": "2025-03-10T14:30:00+05:00"},
            headers=patient_headers,
        )
        assert shifted.status_code == 200
        assert [a["time"] for a in shifted.json()["appointments"]] == ["09:00:00"]



class TestCancellation:
    async def test_cancel_and_not_found_afterwards(self, client, patient_headers):
        created = (await book(client, patient_headers, "10:00")).json()
        response = await client.delete(f"/api/v1/appointments/{created['id']}", headers=patient_headers)
        assert response.status_code == 204

        again = await client.delete(f"/api/v1/appointments/{created['id']}", headers=patient_headers)
        assert again.status_code == 404
        assert again.json()["code"] == "NotFound"

    async def test_cancel_twenty_hours_before_is_rejected(self, client, clock, patient_headers):
        created = (await book(client, patient_headers, "10:00")).json()
        clock.now = datetime(2025, 3, 9, 14, 0)
        response = await client.delete(f"/api/v1/appointments/{created['id']}", headers=patient_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "CancellationTooLate"

        upcoming = (await client.get("/api/v1/appointments/upcoming", headers=patient_headers)).json()
        assert [a["id"] for a in upcoming["appointments"]] == [created["id"]]

    async def test_cannot_cancel_someone_elses(self, client, patient_headers, other_headers):
        created = (await book(client, patient_headers, "10:00")).json()
        response = await client.delete(f"/api/v1/appointments/{created['id']}", headers=other_headers)
        assert response.status_code == 404

    async def test_freed_slot_can_be_rebooked(self, client, patient_headers, other_headers):
        created = (await book(client, patient_headers, "10:00")).json()
        await client.delete(f"/api/v1/appointments/{created['id']}", headers=patient_headers)
        assert (await book(client, other_headers, "10:15")).status_code == 201


class TestReminderToggle:
    async def test_toggle_on_schedules_two_events(self, client, channel, patient, patient_headers):
        created = (await book(client, patient_headers, "16:00")).json()
        response = await client.post(
            f"/api/v1/appointments/{created['id']}/reminder", headers=patient_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["enabled"] is True
        assert [e["fire_at"] for e in body["events"]] == [None, "2025-03-10T04:00:00"]
        assert [recipient for recipient, _ in channel.scheduled] == [patient.email] * 2

    async def test_toggle_off_schedules_nothing(self, client, channel, patient_headers):
        created = (await book(client, patient_headers, "16:00")).json()
        url = f"/api/v1/appointments/{created['id']}/reminder"
        await client.post(url, headers=patient_headers)
        response = await client.post(url, headers=patient_headers)
        assert response.json() == {"appointment_id": created["id"], "enabled": False, "events": []}
        assert len(channel.scheduled) == 2

    async def test_close_to_appointment_only_acknowledges(self, client, clock, channel, patient_headers):
        created = (await book(client, patient_headers, "16:00")).json()
        clock.now = datetime(2025, 3, 10, 9, 0)
        response = await client.post(
            f"/api/v1/appointments/{created['id']}/reminder", headers=patient_headers
        )
        assert len(response.json()["events"]) == 1
        assert channel.scheduled[0][1].fire_at is None

    async def test_broken_channel_keeps_reminder_on(self, client, patient_headers):
        created = (await book(client, patient_headers, "16:00")).json()
        app.dependency_overrides[get_notification_channel] = lambda: BrokenChannel()
        response = await client.post(
            f"/api/v1/appointments/{created['id']}/reminder", headers=patient_headers
        )
        assert response.status_code == 200
        assert response.json()["enabled"] is True

        upcoming = (await client.get("/api/v1/appointments/upcoming", headers=patient_headers)).json()
        assert upcoming["appointments"][0]["reminder"] is True

    async def test_unknown_appointment(self, client, patient_headers):
        response = await client.post("/api/v1/appointments/999/reminder", headers=patient_headers)
        assert response.status_code == 404


class TestSlotsAndDoctors:
    async def test_doctors(self, client):
        response = await client.get("/api/v1/doctors")
        assert [d["name"] for d in response.json()] == ["Dr. Smith", "Dr. Patel", "Dr. Kumar"]

    async def test_available_slots(self, client, patient_headers):
        await book(client, patient_headers, "10:00")
        response = await client.get("/api/v1/slots/available", params={"doctor_id": "1", "date": MONDAY})
        assert response.status_code == 200
        slots = {s["start"]: s["available"] for s in response.json()["slots"]}
        assert slots["2025-03-10T09:15:00"] is True
        assert slots["2025-03-10T09:30:00"] is False
        assert slots["2025-03-10T10:30:00"] is False
        assert slots["2025-03-10T10:45:00"] is True

    async def test_weekend_has_no_slots(self, client):
        response = await client.get("/api/v1/slots/available", params={"doctor_id": "1", "date": "2025-03-08"})
        assert response.json()["slots"] == []

    async def test_unknown_doctor(self, client):
        response = await client.get("/api/v1/slots/available", params={"doctor_id": "9", "date": MONDAY})
        assert response.status_code == 404
