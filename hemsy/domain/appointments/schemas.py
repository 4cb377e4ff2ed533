"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ValidationInfo, field_validator

from ...shared.validators import parse_date, validate_time, validate_time_range, validate_uuid
from ..email.schemas import EmailSendResult

APPOINTMENT_TYPES = ("consultation", "fitting", "pickup", "delivery", "other")


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment"""

    clientId: str
    title: str
    type: str = "consultation"
    date: date
    startTime: str
    endTime: str
    notes: Optional[str] = None
    sendEmail: bool = True

    @field_validator("clientId")
    @classmethod
    def validate_client_id(cls, v):
        if not validate_uuid(v):
            raise ValueError("Invalid client ID")
        return v

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v not in APPOINTMENT_TYPES:
            raise ValueError(f"Type must be one of: {', '.join(APPOINTMENT_TYPES)}")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_date(v)

    @field_validator("startTime")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time(v)

    @field_validator("endTime")
    @classmethod
    def validate_end_time(cls, v, info: ValidationInfo):
        v = validate_time(v)
        if info.data.get("startTime"):
            validate_time_range(info.data["startTime"], v)
        return v


class AppointmentReschedule(BaseModel):
    date: date
    startTime: str
    endTime: str
    sendEmail: bool = True

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_date(v)

    @field_validator("startTime")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time(v)

    @field_validator("endTime")
    @classmethod
    def validate_end_time(cls, v, info: ValidationInfo):
        v = validate_time(v)
        if info.data.get("startTime"):
            validate_time_range(info.data["startTime"], v)
        return v


class AppointmentAction(BaseModel):
    """Body for cancel / no-show; both notify the client by default"""

    reason: Optional[str] = None
    sendEmail: bool = True


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    clientId: Optional[str]
    clientName: Optional[str]
    title: str
    type: str
    date: date
    startTime: str
    endTime: str
    status: str
    notes: Optional[str]
    created_at: Optional[datetime] = None


class AppointmentActionResponse(BaseModel):
    appointment: AppointmentResponse
    email: Optional[EmailSendResult] = None


class PublicAppointmentInfo(BaseModel):
    title: str
    date: date
    startTime: str
    endTime: str
    status: str
    shopName: str
    clientName: Optional[str] = None


class TokenValidationResponse(BaseModel):
    valid: bool
    appointment: PublicAppointmentInfo


class PublicActionResponse(BaseModel):
    success: bool
    status: str
    message: str
