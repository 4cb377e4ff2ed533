from datetime import date

import pytest

from hemsy.domain.email.repository import EmailRepository
from hemsy.models_email import EmailLog


@pytest.fixture
def sent_logs(api, make_appointment, delivery):
    """One sent scheduled email and one failed cancellation"""
    first = make_appointment()
    second = make_appointment(appointment_date=date(2026, 1, 20))
    api.post(f"/emails/appointments/{first.id}/send", json={"email_type": "appointment_scheduled"})
    delivery.fail_for.add("sarah@example.com")
    api.post(f"/emails/appointments/{second.id}/send", json={"email_type": "appointment_canceled"})
    delivery.fail_for.clear()
    return first, second


class TestSendRoute:
    def test_send(self, api, appointment, delivery):
        response = api.post(
            f"/emails/appointments/{appointment.id}/send",
            json={"email_type": "appointment_reminder"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert delivery.sent[0]["subject"] == "Reminder: your appointment with Sarah's Alterations"

    def test_invalid_kind_is_a_failed_result(self, api, appointment):
        response = api.post(
            f"/emails/appointments/{appointment.id}/send",
            json={"email_type": "appointment_party"},
        )

        assert response.json() == {"success": False, "error": "Invalid request data", "log_id": None}

    def test_resend_not_implemented(self, api, sent_logs, db):
        log = db.query(EmailLog).first()

        response = api.post(f"/emails/logs/{log.id}/resend")

        assert response.json()["error"] == "Not implemented"


class TestMonitoring:
    def test_list_logs_with_filters(self, api, sent_logs):
        everything = api.get("/emails/logs").json()
        failed = api.get("/emails/logs", params={"status": "failed"}).json()
        paged = api.get("/emails/logs", params={"limit": 1, "offset": 1}).json()

        assert everything["total"] == 2
        assert failed["total"] == 1
        assert failed["logs"][0]["email_type"] == "appointment_canceled"
        assert failed["logs"][0]["last_error"] == "Mailbox unavailable"
        assert paged["total"] == 2
        assert len(paged["logs"]) == 1

    def test_get_log(self, api, sent_logs):
        log_id = api.get("/emails/logs").json()["logs"][0]["id"]

        response = api.get(f"/emails/logs/{log_id}")

        assert response.status_code == 200
        assert response.json()["metadata"]["appointment_id"]
        assert api.get("/emails/logs/missing").status_code == 404

    def test_statistics(self, api, sent_logs):
        stats = api.get("/emails/statistics").json()

        assert stats["total"] == 2
        assert stats["sent"] == 1
        assert stats["failed"] == 1
        assert stats["pending"] == 0
        assert stats["by_type"] == {"appointment_scheduled": 1, "appointment_canceled": 1}
        assert stats["daily_counts"] == [{"date": "2026-01-10", "count": 2}]

    def test_statistics_count_every_log(self, api, db, owner, clock):
        repository = EmailRepository(db, owner.id, clock=clock)
        for index in range(60):
            repository.create_email_log(
                email_type="appointment_reminder",
                recipient_email="jane@example.com",
                recipient_name="Jane Smith",
                subject="Reminder",
                body="Body",
                status="sent" if index % 3 else "failed",
                attempts=1,
                metadata_={},
            )
            if index == 29:
                clock.advance(days=1)

        stats = api.get("/emails/statistics").json()

        assert len(api.get("/emails/logs").json()["logs"]) == 50
        assert stats["total"] == 60
        assert stats["sent"] == 40
        assert stats["failed"] == 20
        assert stats["by_type"] == {"appointment_reminder": 60}
        assert stats["daily_counts"] == [
            {"date": "2026-01-10", "count": 30},
            {"date": "2026-01-11", "count": 30},
        ]

    def test_cleanup_keeps_recent_logs(self, api, sent_logs, clock):

        assert api.delete("/emails/logs").json() == {"deleted": 0, "days_to_keep": 90}

        clock.advance(days=91)

        assert api.delete("/emails/logs").json()["deleted"] == 2
        assert api.get("/emails/logs").json()["total"] == 0

    def test_cleanup_rejects_zero_days(self, api):
        assert api.delete("/emails/logs", params={"days_to_keep": 0}).status_code == 400


class TestSettings:
    def test_defaults_created_on_first_read(self, api):
        assert api.get("/emails/settings").json() == {
            "receive_appointment_notifications": True,
            "email_signature": None,
            "reply_to_email": None,
        }

    def test_update(self, api):
        response = api.put(
            "/emails/settings",
            json={"receive_appointment_notifications": False, "reply_to_email": "Hi@Sarahs.example"},
        )

        assert response.status_code == 200
        assert response.json()["receive_appointment_notifications"] is False
        assert response.json()["reply_to_email"] == "hi@sarahs.example"
        assert api.get("/emails/settings").json()["receive_appointment_notifications"] is False

    def test_signature_length_limit(self, api):
        assert api.put("/emails/settings", json={"email_signature": "x" * 501}).status_code == 422


class TestTemplates:
    def test_list(self, api):
        templates = api.get("/emails/templates").json()

        assert len(templates) == 9
        scheduled = next(t for t in templates if t["email_type"] == "appointment_scheduled")
        assert "confirmation_link" in scheduled["variables"]

    def test_preview_uses_sample_data(self, api):
        preview = api.get("/emails/templates/appointment_rescheduled/preview").json()

        assert "Jane Smith" in preview["body"]
        assert "{" not in preview["body"]

    def test_variables(self, api):
        variables = api.get("/emails/templates/appointment_no_show/variables").json()

        assert [v["key"] for v in variables] == ["client_name", "appointment_time", "shop_name", "seamstress_name"]

    def test_unknown_template(self, api):
        assert api.get("/emails/templates/appointment_party/preview").status_code == 404
        assert api.get("/emails/templates/appointment_party/variables").status_code == 404
