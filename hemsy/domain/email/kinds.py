"""Email kinds and the recipient fan-out table"""

from enum import Enum
from typing import NamedTuple, Optional


class EmailType(str, Enum):
    APPOINTMENT_SCHEDULED = "appointment_scheduled"
    APPOINTMENT_CONFIRMATION_REQUEST = "appointment_confirmation_request"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_RESCHEDULED = "appointment_rescheduled"
    APPOINTMENT_RESCHEDULED_OWNER = "appointment_rescheduled_owner"
    APPOINTMENT_CANCELED = "appointment_canceled"
    APPOINTMENT_CANCELED_OWNER = "appointment_canceled_owner"
    APPOINTMENT_NO_SHOW = "appointment_no_show"
    APPOINTMENT_REMINDER = "appointment_reminder"


class RecipientRole(str, Enum):
    CLIENT = "client"
    OWNER = "owner"


class Recipient(NamedTuple):
    role: RecipientRole
    template_type: EmailType


# Which audiences each dispatchable kind notifies, and with which template
RECIPIENTS: dict[EmailType, list[Recipient]] = {
    EmailType.APPOINTMENT_SCHEDULED: [
        Recipient(RecipientRole.CLIENT, EmailType.APPOINTMENT_SCHEDULED),
    ],
    EmailType.APPOINTMENT_CONFIRMATION_REQUEST: [
        Recipient(RecipientRole.CLIENT, EmailType.APPOINTMENT_CONFIRMATION_REQUEST),
    ],
    EmailType.APPOINTMENT_CONFIRMED: [
        Recipient(RecipientRole.OWNER, EmailType.APPOINTMENT_CONFIRMED),
    ],
    EmailType.APPOINTMENT_RESCHEDULED: [
        Recipient(RecipientRole.CLIENT, EmailType.APPOINTMENT_RESCHEDULED),
        Recipient(RecipientRole.OWNER, EmailType.APPOINTMENT_RESCHEDULED_OWNER),
    ],
    EmailType.APPOINTMENT_CANCELED: [
        Recipient(RecipientRole.CLIENT, EmailType.APPOINTMENT_CANCELED),
        Recipient(RecipientRole.OWNER, EmailType.APPOINTMENT_CANCELED_OWNER),
    ],
    EmailType.APPOINTMENT_NO_SHOW: [
        Recipient(RecipientRole.CLIENT, EmailType.APPOINTMENT_NO_SHOW),
    ],
    EmailType.APPOINTMENT_REMINDER: [
        Recipient(RecipientRole.CLIENT, EmailType.APPOINTMENT_REMINDER),
    ],
}

# Kinds whose usefulness depends on the appointment still being ahead
TIME_SENSITIVE_TYPES = frozenset(
    {
        EmailType.APPOINTMENT_SCHEDULED,
        EmailType.APPOINTMENT_RESCHEDULED,
        EmailType.APPOINTMENT_CONFIRMATION_REQUEST,
    }
)

# Kinds that carry a confirm/decline link for the client
CONFIRMATION_LINK_TYPES = frozenset(
    {
        EmailType.APPOINTMENT_SCHEDULED,
        EmailType.APPOINTMENT_RESCHEDULED,
        EmailType.APPOINTMENT_CONFIRMATION_REQUEST,
    }
)


def parse_email_type(value) -> Optional[EmailType]:
    """Return the EmailType for a raw value, or None if it is not a known kind"""
    try:
        return EmailType(value)
    except ValueError:
        return None


def is_dispatchable(email_type: EmailType) -> bool:
    return email_type in RECIPIENTS


def is_owner_only(email_type: EmailType) -> bool:
    recipients = RECIPIENTS.get(email_type, [])
    return bool(recipients) and all(r.role == RecipientRole.OWNER for r in recipients)
