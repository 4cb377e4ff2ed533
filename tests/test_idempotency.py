from datetime import datetime, timezone

import pytest

from hemsy.domain.email.idempotency import IdempotencyGuard, dedupe_key, reschedule_key
from hemsy.domain.email.kinds import EmailType
from hemsy.domain.email.repository import EmailRepository
from hemsy.shared.clock import utcnow

APPOINTMENT_ID = "00000000-0000-4000-8000-0000000000aa"


@pytest.fixture
def repository(db, owner, clock):
    return EmailRepository(db, owner.id, clock=clock)


@pytest.fixture
def guard(repository, clock):
    return IdempotencyGuard(repository, clock=clock, window_minutes=5)


def log(repository, email_type, metadata=None, key=None):
    return repository.create_email_log(
        email_type=email_type.value,
        recipient_email="jane@example.com",
        recipient_name="Jane Smith",
        subject="Subject",
        body="Body",
        status="sent",
        attempts=1,
        metadata_={"appointment_id": APPOINTMENT_ID, **(metadata or {})},
        appointment_id=APPOINTMENT_ID,
        dedupe_key=key,
    )


def test_reschedule_key():
    assert reschedule_key("2026-01-15 10:00", "2026-01-16 11:00") == "2026-01-15 10:00->2026-01-16 11:00"
    assert reschedule_key(None, "2026-01-16 11:00") == "unknown->2026-01-16 11:00"


def test_dedupe_key_excludes_reschedules():
    assert dedupe_key(APPOINTMENT_ID, EmailType.APPOINTMENT_CONFIRMED) == f"{APPOINTMENT_ID}:appointment_confirmed"
    assert dedupe_key(APPOINTMENT_ID, EmailType.APPOINTMENT_RESCHEDULED) is None


class TestNonRescheduleKinds:
    def test_no_prior_log(self, guard):
        assert guard.check_duplicate(APPOINTMENT_ID, EmailType.APPOINTMENT_SCHEDULED) is None

    def test_prior_log_of_any_age_is_a_duplicate(self, guard, repository, clock):
        log_id = log(repository, EmailType.APPOINTMENT_SCHEDULED)
        clock.advance(days=365)

        assert guard.check_duplicate(APPOINTMENT_ID, EmailType.APPOINTMENT_SCHEDULED) == log_id

    def test_other_kind_is_not_a_duplicate(self, guard, repository):
        log(repository, EmailType.APPOINTMENT_SCHEDULED)

        assert guard.check_duplicate(APPOINTMENT_ID, EmailType.APPOINTMENT_REMINDER) is None

    def test_scoped_to_creator(self, db, guard, clock):
        other = EmailRepository(db, 424242, clock=clock)
        log(other, EmailType.APPOINTMENT_SCHEDULED)

        assert guard.check_duplicate(APPOINTMENT_ID, EmailType.APPOINTMENT_SCHEDULED) is None


class TestRescheduleWindow:
    def test_matching_key_inside_window(self, guard, repository, clock):
        log_id = log(
            repository,
            EmailType.APPOINTMENT_RESCHEDULED,
            {"reschedule_key": "2026-01-15 10:00->2026-01-16 11:00"},
        )
        clock.advance(minutes=4, seconds=59)

        assert (
            guard.check_duplicate(
                APPOINTMENT_ID, EmailType.APPOINTMENT_RESCHEDULED, "2026-01-15 10:00", "2026-01-16 11:00"
            )
            == log_id
        )

    def test_exactly_window_old_is_not_a_duplicate(self, guard, repository, clock):
        log(
            repository,
            EmailType.APPOINTMENT_RESCHEDULED,
            {"reschedule_key": "2026-01-15 10:00->2026-01-16 11:00"},
        )
        clock.advance(minutes=5)

        assert (
            guard.check_duplicate(
                APPOINTMENT_ID, EmailType.APPOINTMENT_RESCHEDULED, "2026-01-15 10:00", "2026-01-16 11:00"
            )
            is None
        )

    def test_different_key_is_not_a_duplicate(self, guard, repository):
        log(
            repository,
            EmailType.APPOINTMENT_RESCHEDULED,
            {"reschedule_key": "2026-01-15 10:00->2026-01-16 11:00"},
        )

        assert (
            guard.check_duplicate(
                APPOINTMENT_ID, EmailType.APPOINTMENT_RESCHEDULED, "2026-01-16 11:00", "2026-01-17 09:00"
            )
            is None
        )

    def test_newest_match_wins(self, guard, repository, clock):
        metadata = {"reschedule_key": "unknown->2026-01-16 11:00"}
        log(repository, EmailType.APPOINTMENT_RESCHEDULED, metadata)
        clock.advance(minutes=1)
        newest = log(repository, EmailType.APPOINTMENT_RESCHEDULED, metadata)

        assert guard.check_duplicate(APPOINTMENT_ID, EmailType.APPOINTMENT_RESCHEDULED, None, "2026-01-16 11:00") == newest


def test_default_clock_is_naive_utc(repository):
    guard = IdempotencyGuard(repository)

    assert guard.clock is utcnow
    assert guard.clock().tzinfo is None
    assert abs((guard.clock() - datetime.now(timezone.utc).replace(tzinfo=None)).total_seconds()) < 5
