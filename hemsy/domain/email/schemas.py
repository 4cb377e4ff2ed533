"""Email domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email
from .constants import EMAIL_CONSTRAINTS


class EmailSendResult(BaseModel):
    """Outcome of one dispatch; suppressed and duplicate sends are successes"""

    success: bool
    error: Optional[str] = None
    log_id: Optional[str] = None


class SendAppointmentEmailRequest(BaseModel):
    email_type: str
    additional_data: Optional[dict[str, Any]] = None


class EmailLogResponse(BaseModel):
    id: str
    email_type: str
    recipient_email: str
    recipient_name: str
    subject: str
    body: str
    status: str
    attempts: int
    last_error: Optional[str] = None
    resend_id: Optional[str] = None
    metadata: dict[str, Any] = {}
    appointment_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime


class EmailLogListResponse(BaseModel):
    logs: list[EmailLogResponse]
    total: int
    limit: int
    offset: int


class DailyCount(BaseModel):
    date: str
    count: int


class EmailStatisticsResponse(BaseModel):
    total: int
    sent: int
    failed: int
    pending: int
    by_type: dict[str, int]
    daily_counts: list[DailyCount]


class EmailSettingsResponse(BaseModel):
    receive_appointment_notifications: bool
    email_signature: Optional[str] = None
    reply_to_email: Optional[str] = None

    class Config:
        from_attributes = True


class EmailSettingsUpdate(BaseModel):
    """Schema for updating owner email settings"""

    receive_appointment_notifications: Optional[bool] = None
    email_signature: Optional[str] = None
    reply_to_email: Optional[str] = None

    @field_validator("email_signature")
    @classmethod
    def validate_signature(cls, v):
        if v and len(v) > EMAIL_CONSTRAINTS["signature_max_length"]:
            raise ValueError(
                f"Signature must be {EMAIL_CONSTRAINTS['signature_max_length']} characters or less"
            )
        return v

    @field_validator("reply_to_email")
    @classmethod
    def validate_reply_to(cls, v):
        return validate_email(v)


class TemplateVariable(BaseModel):
    key: str
    description: str
    example: str


class TemplateResponse(BaseModel):
    email_type: str
    label: str
    subject: str
    body: str
    variables: list[str]


class TemplatePreviewResponse(BaseModel):
    email_type: str
    subject: str
    body: str


class CleanupResponse(BaseModel):
    deleted: int
    days_to_keep: int
