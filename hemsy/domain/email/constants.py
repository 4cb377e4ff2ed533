"""
Email constants
Variable allow-lists, sample data for previews and delivery constraints per email type
"""

from .kinds import EmailType

EMAIL_TYPE_LABELS = {
    EmailType.APPOINTMENT_SCHEDULED: "Appointment Scheduled",
    EmailType.APPOINTMENT_CONFIRMATION_REQUEST: "Confirmation Request",
    EmailType.APPOINTMENT_CONFIRMED: "Appointment Confirmed",
    EmailType.APPOINTMENT_RESCHEDULED: "Appointment Rescheduled",
    EmailType.APPOINTMENT_RESCHEDULED_OWNER: "Appointment Rescheduled (Shop)",
    EmailType.APPOINTMENT_CANCELED: "Appointment Canceled",
    EmailType.APPOINTMENT_CANCELED_OWNER: "Appointment Canceled (Shop)",
    EmailType.APPOINTMENT_NO_SHOW: "Missed Appointment",
    EmailType.APPOINTMENT_REMINDER: "Appointment Reminder",
}

EMAIL_STATUSES = ("pending", "sent", "failed")

EMAIL_CONSTRAINTS = {
    "subject_max_length": 200,
    "body_max_length": 2000,
    "signature_max_length": 500,
}

# Shared variable descriptions
_CLIENT_NAME = {"key": "client_name", "description": "Client full name", "example": "Jane Smith"}
_APPOINTMENT_TIME = {
    "key": "appointment_time",
    "description": "Formatted appointment time",
    "example": "Monday, January 15 at 2:00 PM",
}
_PREVIOUS_TIME = {
    "key": "previous_time",
    "description": "Previous appointment time",
    "example": "Monday, January 15 at 2:00 PM",
}
_SHOP_NAME = {"key": "shop_name", "description": "Business name", "example": "Sarah's Alterations"}
_SEAMSTRESS_NAME = {"key": "seamstress_name", "description": "Seamstress name", "example": "Sarah"}
_CONFIRMATION_LINK = {
    "key": "confirmation_link",
    "description": "URL the client clicks to confirm the appointment",
    "example": "https://hemsy.app/confirm/abcd1234",
}
_DECLINE_LINK = {
    "key": "decline_link",
    "description": "URL the client clicks to decline the appointment",
    "example": "https://hemsy.app/decline/abcd1234",
}

_SAMPLE = {
    "client_name": "Jane Smith",
    "appointment_time": "Tuesday, January 16 at 3:00 PM",
    "previous_time": "Monday, January 15 at 2:00 PM",
    "shop_name": "Sarah's Alterations",
    "seamstress_name": "Sarah",
    "confirmation_link": "https://example.com/confirm/sample-token",
    "decline_link": "https://example.com/decline/sample-token",
}


def _config(*variables):
    return {
        "variables": list(variables),
        "sample_data": {v["key"]: _SAMPLE[v["key"]] for v in variables},
    }


EMAIL_VARIABLES = {
    EmailType.APPOINTMENT_SCHEDULED: _config(
        _CLIENT_NAME, _APPOINTMENT_TIME, _SHOP_NAME, _SEAMSTRESS_NAME, _CONFIRMATION_LINK, _DECLINE_LINK
    ),
    EmailType.APPOINTMENT_CONFIRMATION_REQUEST: _config(
        _CLIENT_NAME, _APPOINTMENT_TIME, _SHOP_NAME, _CONFIRMATION_LINK, _DECLINE_LINK
    ),
    EmailType.APPOINTMENT_CONFIRMED: _config(
        _CLIENT_NAME, _APPOINTMENT_TIME, _SHOP_NAME, _SEAMSTRESS_NAME
    ),
    EmailType.APPOINTMENT_RESCHEDULED: _config(
        _CLIENT_NAME, _APPOINTMENT_TIME, _PREVIOUS_TIME, _SHOP_NAME, _SEAMSTRESS_NAME, _CONFIRMATION_LINK, _DECLINE_LINK
    ),
    EmailType.APPOINTMENT_RESCHEDULED_OWNER: _config(
        _CLIENT_NAME, _APPOINTMENT_TIME, _PREVIOUS_TIME, _SHOP_NAME, _SEAMSTRESS_NAME
    ),
    EmailType.APPOINTMENT_CANCELED: _config(
        _CLIENT_NAME, _PREVIOUS_TIME, _SHOP_NAME, _SEAMSTRESS_NAME
    ),
    EmailType.APPOINTMENT_CANCELED_OWNER: _config(
        _CLIENT_NAME, _PREVIOUS_TIME, _SHOP_NAME, _SEAMSTRESS_NAME
    ),
    EmailType.APPOINTMENT_NO_SHOW: _config(
        _CLIENT_NAME, _APPOINTMENT_TIME, _SHOP_NAME, _SEAMSTRESS_NAME
    ),
    EmailType.APPOINTMENT_REMINDER: _config(
        _CLIENT_NAME, _APPOINTMENT_TIME, _SHOP_NAME, _SEAMSTRESS_NAME
    ),
}

# Appended to every client-facing body
EMAIL_FOOTER = "\n\n--\nSent with Hemsy"
