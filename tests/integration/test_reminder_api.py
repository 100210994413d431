"""
Integration tests for the reminder HTTP endpoints.
"""

import pytest

from vetcare.domain.entities import ReminderChannel


@pytest.mark.controllers
@pytest.mark.reminders
class TestReminderEndpoints:
    def test_create_future_reminder(self, client):
        response = client.post(
            "/api/reminders",
            json={
                "message": "Deworming due",
                "due_at": "2024-04-25T09:00:00",
                "category": "followup",
                "patient_id": 1,
                "client_id": 101,
            },
        )

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["state"] == "pending"
        assert data["sent"] is False
        assert data["channel"] == "push notification"
        assert data["due_at"] == "2024-04-25T09:00:00+00:00"

    def test_create_past_due_reminder_fires_at_once(self, client, senders):
        response = client.post(
            "/api/reminders",
            json={"message": "Overdue", "due_at": "2024-04-19T09:00:00+00:00"},
        )

        data = response.get_json()["data"]
        assert data["sent"] is True
        assert data["state"] == "fired"
        assert len(senders[ReminderChannel.PUSH].sent) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            {"due_at": "2024-04-25T09:00:00"},
            {"message": "x"},
            {"message": "x", "due_at": "next week"},
            {"message": "x", "due_at": "2024-04-25T09:00:00", "category": "grooming"},
        ],
    )
    def test_invalid_reminder_is_bad_request(self, client, payload):
        assert client.post("/api/reminders", json=payload).status_code == 400

    def test_vaccination_reminder(self, client):
        response = client.post(
            "/api/reminders/vaccination",
            json={
                "vaccine_name": "Rabies",
                "expiry_date": "2024-06-07",
                "patient_id": 1,
                "client_id": 101,
            },
        )

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["category"] == "vaccination"
        assert data["channel"] == "email"
        assert data["due_at"].startswith("2024-05-31")

    def test_cancel(self, client):
        client.post(
            "/api/reminders",
            json={"message": "Checkup", "due_at": "2024-04-25T09:00:00"},
        )

        assert client.post("/api/reminders/1/cancel").status_code == 200
        assert client.post("/api/reminders/1/cancel").status_code == 404
        assert client.get("/api/reminders").get_json()["data"] == []

    def test_dispatch_due(self, client, clock, senders):
        client.post(
            "/api/reminders",
            json={"message": "Soon", "due_at": "2024-04-20T09:30:00"},
        )
        assert client.post("/api/reminders/dispatch").get_json()["data"] == []

        clock.advance(hours=1)
        data = client.post("/api/reminders/dispatch").get_json()["data"]

        assert [r["message"] for r in data] == ["Soon"]
        assert len(senders[ReminderChannel.PUSH].sent) == 1

    def test_list_filters(self, client):
        client.post(
            "/api/reminders",
            json={"message": "Later", "due_at": "2024-04-25T09:00:00", "category": "appointment"},
        )
        client.post(
            "/api/reminders",
            json={"message": "Now", "due_at": "2024-04-01T09:00:00", "category": "appointment"},
        )
        client.post(
            "/api/reminders/vaccination",
            json={"vaccine_name": "Parvo", "expiry_date": "2024-06-07"},
        )

        every = client.get("/api/reminders").get_json()["data"]
        appointment = client.get("/api/reminders?category=appointment").get_json()["data"]
        pending = client.get("/api/reminders?pending=true").get_json()["data"]
        pending_appointment = client.get(
            "/api/reminders?category=appointment&pending=1"
        ).get_json()["data"]

        assert len(every) == 3
        assert {r["message"] for r in appointment} == {"Later", "Now"}
        assert len(pending) == 2
        assert [r["message"] for r in pending_appointment] == ["Later"]
        assert client.get("/api/reminders?category=grooming").status_code == 400

    def test_summary(self, client):
        client.post(
            "/api/reminders",
            json={"message": "Now", "due_at": "2024-04-01T09:00:00", "category": "appointment"},
        )
        client.post(
            "/api/reminders/vaccination",
            json={"vaccine_name": "Rabies", "expiry_date": "2024-06-07"},
        )

        summary = client.get("/api/reminders/summary").get_json()["data"]

        assert summary == {
            "total": 2,
            "sent": 1,
            "pending": 1,
            "dispatching": 0,
            "failed": 0,
            "by_category": {"appointment": 1, "vaccination": 1},
        }

    def test_health_reports_pending_reminders(self, client):
        client.post(
            "/api/reminders",
            json={"message": "Later", "due_at": "2024-04-25T09:00:00"},
        )

        body = client.get("/health").get_json()

        assert body["data"]["pending_reminders"] == 1
        assert body["data"]["scheduler_running"] is False
