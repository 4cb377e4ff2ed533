"""Delivery gate - business rules that can silently suppress an email"""

import logging
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Optional

from ... import config
from ...shared.clock import utcnow
from .context import AppointmentContext
from .kinds import TIME_SENSITIVE_TYPES, EmailType, is_owner_only
from .repository import EmailRepository

logger = logging.getLogger(__name__)


class GateDecision(NamedTuple):
    send: bool
    reason: Optional[str] = None


class DeliveryGate:
    """
    Evaluates, in order: global switch, client opt-out, time cutoff for
    time-sensitive kinds, then owner preference for owner-only kinds.
    """

    def __init__(
        self,
        repository: EmailRepository,
        clock: Callable[[], datetime] = utcnow,
        enabled: Optional[bool] = None,
        hour_cutoff: Optional[float] = None,
    ):
        self.repository = repository
        self.clock = clock
        self.enabled = config.EMAIL_ENABLED if enabled is None else enabled
        self.hour_cutoff = config.EMAIL_HOUR_CUTOFF if hour_cutoff is None else hour_cutoff

    def should_send(self, context: AppointmentContext, email_type: EmailType) -> GateDecision:
        if not self.enabled:
            return GateDecision(False, "Email sending disabled")

        if context.client.accept_email is False:
            return GateDecision(False, "Client opted out")

        if email_type in TIME_SENSITIVE_TYPES:
            hours_until = self.hours_until(context)
            # Exactly at the cutoff counts as too close
            if hours_until <= self.hour_cutoff:
                return GateDecision(False, "Too close to appointment time")

        if is_owner_only(email_type):
            settings = self.repository.get_user_email_settings()
            if settings and not settings.receive_appointment_notifications:
                return GateDecision(False, "Owner opted out of notifications")

        return GateDecision(True)

    def hours_until(self, context: AppointmentContext) -> float:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return (context.scheduled_at - now).total_seconds() / 3600
