"""
Idempotency guard for appointment emails

Non-reschedule kinds are sent at most once per appointment and kind, ever.
Reschedules are keyed by the specific time change and only suppressed when an
identical one was logged within a short window.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ...config import RESCHEDULE_DEDUPE_MINUTES
from ...shared.clock import utcnow
from .kinds import EmailType
from .repository import EmailRepository

logger = logging.getLogger(__name__)


def reschedule_key(previous_time: Optional[str], new_time: str) -> str:
    return f"{previous_time or 'unknown'}->{new_time}"


def dedupe_key(appointment_id: str, email_type: EmailType) -> Optional[str]:
    """Store-level uniqueness key; reschedules are excluded and get None"""
    if email_type == EmailType.APPOINTMENT_RESCHEDULED:
        return None
    return f"{appointment_id}:{email_type.value}"


class IdempotencyGuard:
    def __init__(
        self,
        repository: EmailRepository,
        clock: Callable[[], datetime] = utcnow,
        window_minutes: int = RESCHEDULE_DEDUPE_MINUTES,
    ):
        self.repository = repository
        self.clock = clock
        self.window = timedelta(minutes=window_minutes)

    def check_duplicate(
        self,
        appointment_id: str,
        email_type: EmailType,
        previous_time: Optional[str] = None,
        new_time: Optional[str] = None,
    ) -> Optional[str]:
        """Return the id of an existing log that makes this send a duplicate, or None"""
        if email_type != EmailType.APPOINTMENT_RESCHEDULED:
            existing = self.repository.find_logs(email_type.value, appointment_id)
            if existing:
                logger.info(
                    f"ℹ️ Skipping {email_type.value} for appointment {appointment_id}: "
                    f"already logged as {existing[0].id}"
                )
                return existing[0].id
            return None

        key = reschedule_key(previous_time, new_time)
        cutoff = self.clock() - self.window
        recent = self.repository.find_logs(
            email_type.value,
            appointment_id,
            metadata_contains={"reschedule_key": key},
            created_after=cutoff,
        )
        if recent:
            logger.info(
                f"ℹ️ Skipping duplicate reschedule for appointment {appointment_id} "
                f"({key}) inside {self.window}: {recent[0].id}"
            )
            return recent[0].id
        return None
