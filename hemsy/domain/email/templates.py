"""
Default email templates
Plain-text subject/body pairs with {placeholder} variables, one per email type.
Templates are fixed at import time; there is no per-shop customization.
"""

from typing import NamedTuple, Optional

from .kinds import EmailType, parse_email_type


class Template(NamedTuple):
    email_type: EmailType
    subject: str
    body: str


DEFAULT_TEMPLATES = {
    EmailType.APPOINTMENT_SCHEDULED: Template(
        EmailType.APPOINTMENT_SCHEDULED,
        "Your appointment with {shop_name} is scheduled",
        "Hi {client_name},\n\n"
        "Your appointment with {shop_name} is scheduled for:\n"
        "{appointment_time}\n\n"
        "Please confirm your appointment: {confirmation_link}\n"
        "Can't make it? Let us know: {decline_link}\n\n"
        "If you have any questions or need to reschedule, please contact us.\n\n"
        "Thank you,\n{shop_name}",
    ),
    EmailType.APPOINTMENT_CONFIRMATION_REQUEST: Template(
        EmailType.APPOINTMENT_CONFIRMATION_REQUEST,
        "Please confirm your appointment with {shop_name}",
        "Hi {client_name},\n\n"
        "Please confirm your upcoming appointment on {appointment_time}.\n\n"
        "Confirm: {confirmation_link}\n"
        "Decline: {decline_link}\n\n"
        "Thank you,\n{shop_name}",
    ),
    EmailType.APPOINTMENT_CONFIRMED: Template(
        EmailType.APPOINTMENT_CONFIRMED,
        "{client_name} confirmed their appointment",
        "Hi {seamstress_name},\n\n"
        "{client_name} has confirmed their appointment on {appointment_time}.\n\n"
        "Hemsy Notifications",
    ),
    EmailType.APPOINTMENT_RESCHEDULED: Template(
        EmailType.APPOINTMENT_RESCHEDULED,
        "Your appointment with {shop_name} has been rescheduled",
        "Hi {client_name},\n\n"
        "Your appointment with {shop_name} has been rescheduled.\n\n"
        "Previous time: {previous_time}\n"
        "New time: {appointment_time}\n\n"
        "Please confirm the new time: {confirmation_link}\n"
        "Can't make it? Let us know: {decline_link}\n\n"
        "If you have any questions or concerns, please contact us.\n\n"
        "Thank you,\n{shop_name}",
    ),
    EmailType.APPOINTMENT_RESCHEDULED_OWNER: Template(
        EmailType.APPOINTMENT_RESCHEDULED_OWNER,
        "Appointment rescheduled: {client_name}",
        "Hi {seamstress_name},\n\n"
        "{client_name}'s appointment has been rescheduled.\n\n"
        "Previous time: {previous_time}\n"
        "New time: {appointment_time}\n\n"
        "Hemsy Notifications",
    ),
    EmailType.APPOINTMENT_CANCELED: Template(
        EmailType.APPOINTMENT_CANCELED,
        "Your appointment with {shop_name} has been canceled",
        "Hi {client_name},\n\n"
        "Your appointment with {shop_name} on {previous_time} has been canceled.\n\n"
        "We apologize for any inconvenience. Please contact us to reschedule.\n\n"
        "Thank you,\n{shop_name}",
    ),
    EmailType.APPOINTMENT_CANCELED_OWNER: Template(
        EmailType.APPOINTMENT_CANCELED_OWNER,
        "Appointment canceled: {client_name}",
        "Hi {seamstress_name},\n\n"
        "{client_name}'s appointment on {previous_time} has been canceled.\n\n"
        "Hemsy Notifications",
    ),
    EmailType.APPOINTMENT_NO_SHOW: Template(
        EmailType.APPOINTMENT_NO_SHOW,
        "We missed you at {shop_name}",
        "Hi {client_name},\n\n"
        "We missed you at your appointment on {appointment_time} with {shop_name}.\n\n"
        "Please contact us to reschedule your appointment.\n\n"
        "Thank you,\n{shop_name}",
    ),
    EmailType.APPOINTMENT_REMINDER: Template(
        EmailType.APPOINTMENT_REMINDER,
        "Reminder: your appointment with {shop_name}",
        "Hi {client_name},\n\n"
        "This is a friendly reminder about your upcoming appointment with {shop_name} "
        "on {appointment_time}.\n\n"
        "We look forward to seeing you!\n\n"
        "Thank you,\n{shop_name}",
    ),
}

# Client copies used when no confirmation token was issued for the appointment
TEMPLATES_WITHOUT_LINKS = {
    EmailType.APPOINTMENT_SCHEDULED: Template(
        EmailType.APPOINTMENT_SCHEDULED,
        "Your appointment with {shop_name} is scheduled",
        "Hi {client_name},\n\n"
        "Your appointment with {shop_name} is scheduled for:\n"
        "{appointment_time}\n\n"
        "If you have any questions or need to reschedule, please contact us.\n\n"
        "Thank you,\n{shop_name}",
    ),
    EmailType.APPOINTMENT_RESCHEDULED: Template(
        EmailType.APPOINTMENT_RESCHEDULED,
        "Your appointment with {shop_name} has been rescheduled",
        "Hi {client_name},\n\n"
        "Your appointment with {shop_name} has been rescheduled.\n\n"
        "Previous time: {previous_time}\n"
        "New time: {appointment_time}\n\n"
        "If you have any questions or concerns, please contact us.\n\n"
        "Thank you,\n{shop_name}",
    ),
}


def get_template(email_type, with_links: bool = True) -> Optional[Template]:
    """
    Return the default template for an email type, or None for unknown types.

    With ``with_links=False`` the variant without confirm/decline lines is
    returned where one exists.
    """
    kind = parse_email_type(email_type)
    if kind is None:
        return None
    if not with_links and kind in TEMPLATES_WITHOUT_LINKS:
        return TEMPLATES_WITHOUT_LINKS[kind]
    return DEFAULT_TEMPLATES.get(kind)


def get_all_templates() -> list[Template]:
    return list(DEFAULT_TEMPLATES.values())
