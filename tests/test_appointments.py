import pytest

from hemsy.domain.appointments.service import can_transition
from hemsy.models import Appointment
from hemsy.models_email import ConfirmationToken, EmailLog


def latest_token(db, appointment_id):
    return (
        db.query(ConfirmationToken)
        .filter(ConfirmationToken.appointment_id == appointment_id)
        .order_by(ConfirmationToken.created_at.desc(), ConfirmationToken.id)
        .first()
    )


@pytest.fixture
def created(api, client_record):
    response = api.post(
        "/appointments",
        json={
            "clientId": client_record.id,
            "title": "Hem trousers",
            "type": "fitting",
            "date": "2026-01-15",
            "startTime": "10:00",
            "endTime": "10:30",
        },
    )
    assert response.status_code == 200
    return response.json()


class TestCreateAppointment:
    def test_create_sends_scheduled_email(self, db, created, delivery):
        assert created["appointment"]["status"] == "pending"
        assert created["appointment"]["clientName"] == "Jane Smith"
        assert created["email"]["success"] is True

        log = db.get(EmailLog, created["email"]["log_id"])
        assert log.email_type == "appointment_scheduled"
        assert len(delivery.sent_to("jane@example.com")) == 1

    def test_create_without_email(self, api, client_record, delivery):
        response = api.post(
            "/appointments",
            json={
                "clientId": client_record.id,
                "title": "Consultation",
                "date": "2026-01-15",
                "startTime": "09:00",
                "endTime": "09:30",
                "sendEmail": False,
            },
        )

        assert response.status_code == 200
        assert response.json()["email"] is None
        assert delivery.sent == []

    def test_unknown_client(self, api):
        response = api.post(
            "/appointments",
            json={
                "clientId": "00000000-0000-4000-8000-000000000000",
                "title": "Consultation",
                "date": "2026-01-15",
                "startTime": "09:00",
                "endTime": "09:30",
            },
        )

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "overrides",
        [
            {"startTime": "25:00"},
            {"endTime": "08:00"},
            {"date": "15/01/2026"},
            {"type": "tailoring"},
            {"clientId": "abc"},
        ],
    )
    def test_validation(self, api, client_record, overrides):
        body = {
            "clientId": client_record.id,
            "title": "Consultation",
            "date": "2026-01-15",
            "startTime": "09:00",
            "endTime": "09:30",
            **overrides,
        }

        assert api.post("/appointments", json=body).status_code == 422

    def test_list_and_get(self, api, created):
        appointment_id = created["appointment"]["id"]

        listed = api.get("/appointments", params={"status": "pending"}).json()
        assert [a["id"] for a in listed] == [appointment_id]
        assert api.get(f"/appointments/{appointment_id}").json()["title"] == "Hem trousers"
        assert api.get("/appointments/00000000-0000-4000-8000-000000000000").status_code == 404


class TestLifecycle:
    def test_reschedule_resets_to_pending_and_invalidates_links(self, db, api, created, delivery, clock):
        appointment_id = created["appointment"]["id"]
        old_token = latest_token(db, appointment_id).token
        api.post(f"/appointments/public/confirm/{old_token}")
        assert db.get(Appointment, appointment_id).status == "confirmed"
        clock.advance(minutes=1)

        response = api.post(
            f"/appointments/{appointment_id}/reschedule",
            json={"date": "2026-01-16", "startTime": "11:00", "endTime": "11:30"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["appointment"]["status"] == "pending"
        assert body["email"]["success"] is True

        log = db.get(EmailLog, body["email"]["log_id"])
        assert log.metadata_["reschedule_key"] == "2026-01-15 10:00->2026-01-16 11:00"
        assert "New time: Friday, January 16 at 11:00 AM" in delivery.sent_to("jane@example.com")[-1]["text"]

        new_token = latest_token(db, appointment_id)
        assert new_token.token != old_token
        assert new_token.token in delivery.sent_to("jane@example.com")[-1]["text"]

    def test_reschedule_to_same_time_is_rejected(self, api, created):
        response = api.post(
            f"/appointments/{created['appointment']['id']}/reschedule",
            json={"date": "2026-01-15", "startTime": "10:00", "endTime": "10:30"},
        )

        assert response.status_code == 400

    def test_cancel_notifies_client_and_owner(self, api, created, delivery):
        response = api.post(f"/appointments/{created['appointment']['id']}/cancel", json={"reason": "Sick"})

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "canceled"
        assert "has been canceled" in delivery.sent_to("jane@example.com")[-1]["subject"]
        assert len(delivery.sent_to("sarah@example.com")) == 1

    def test_cancel_without_body(self, api, created):
        response = api.post(f"/appointments/{created['appointment']['id']}/cancel")

        assert response.status_code == 200

    def test_canceled_appointment_cannot_be_rescheduled(self, api, created):
        appointment_id = created["appointment"]["id"]
        api.post(f"/appointments/{appointment_id}/cancel", json={"sendEmail": False})

        response = api.post(
            f"/appointments/{appointment_id}/reschedule",
            json={"date": "2026-01-16", "startTime": "11:00", "endTime": "11:30"},
        )

        assert response.status_code == 400

    def test_no_show_and_complete(self, api, make_appointment, delivery):
        missed = make_appointment()
        done = make_appointment(status="confirmed")

        no_show = api.post(f"/appointments/{missed.id}/no-show")
        completed = api.post(f"/appointments/{done.id}/complete")

        assert no_show.json()["appointment"]["status"] == "no_show"
        assert "We missed you" in delivery.sent[-1]["subject"]
        assert completed.json()["appointment"]["status"] == "completed"
        assert completed.json()["email"] is None

    def test_completed_is_terminal(self, api, make_appointment):
        appointment = make_appointment(status="completed")

        assert api.post(f"/appointments/{appointment.id}/cancel").status_code == 400
        assert api.post(f"/appointments/{appointment.id}/no-show").status_code == 400

    def test_confirmation_request_only_for_pending(self, api, make_appointment, delivery):
        pending = make_appointment()
        confirmed = make_appointment(status="confirmed")

        ok = api.post(f"/appointments/{pending.id}/confirmation-request")
        rejected = api.post(f"/appointments/{confirmed.id}/confirmation-request")

        assert ok.json()["success"] is True
        assert "Please confirm" in delivery.sent[-1]["subject"]
        assert rejected.status_code == 400


@pytest.mark.parametrize(
    "current,new,allowed",
    [
        ("pending", "confirmed", True),
        ("pending", "declined", True),
        ("confirmed", "declined", False),
        ("confirmed", "completed", True),
        ("declined", "confirmed", False),
        ("canceled", "pending", False),
    ],
)
def test_transitions(current, new, allowed):
    assert can_transition(current, new) is allowed


class TestPublicConfirmation:
    def test_validate_token(self, db, api, created):
        token = latest_token(db, created["appointment"]["id"]).token

        response = api.get(f"/appointments/public/confirm/{token}")

        assert response.status_code == 200
        assert response.json()["appointment"]["shopName"] == "Sarah's Alterations"

    def test_confirm_notifies_owner_once(self, db, api, created, delivery):
        token = latest_token(db, created["appointment"]["id"]).token

        response = api.post(f"/appointments/public/confirm/{token}")

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        [owner_message] = delivery.sent_to("sarah@example.com")
        assert owner_message["subject"] == "Jane Smith confirmed their appointment"

    def test_used_token_is_gone(self, db, api, created):
        token = latest_token(db, created["appointment"]["id"]).token
        api.post(f"/appointments/public/confirm/{token}")

        response = api.post(f"/appointments/public/confirm/{token}")

        assert response.status_code == 410
        assert response.json()["detail"] == "This link has already been used"

    def test_expired_token(self, db, api, created, clock):
        token = latest_token(db, created["appointment"]["id"]).token
        clock.advance(hours=25)

        response = api.get(f"/appointments/public/confirm/{token}")

        assert response.status_code == 410
        assert response.json()["detail"] == "This link has expired"

    def test_unknown_token(self, api):
        assert api.get(f"/appointments/public/confirm/{'0' * 64}").status_code == 404

    def test_decline(self, db, api, created, delivery):
        appointment_id = created["appointment"]["id"]
        token = latest_token(db, appointment_id).token

        response = api.post(f"/appointments/public/decline/{token}")

        assert response.status_code == 200
        assert response.json()["status"] == "declined"
        assert db.get(Appointment, appointment_id).status == "declined"
        assert api.post(f"/appointments/public/confirm/{token}").status_code == 410
