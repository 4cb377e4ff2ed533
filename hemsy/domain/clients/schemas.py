"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class ClientCreate(BaseModel):
    """Schema for creating a new client"""

    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    acceptEmail: bool = True
    acceptSms: bool = False
    notes: Optional[str] = None

    @field_validator("firstName", "lastName")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)


class ClientUpdate(BaseModel):
    """Schema for updating an existing client"""

    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    acceptEmail: Optional[bool] = None
    acceptSms: Optional[bool] = None
    notes: Optional[str] = None
    isArchived: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: str
    firstName: str
    lastName: str
    email: str
    phone: Optional[str]
    acceptEmail: bool
    acceptSms: bool
    notes: Optional[str]
    isArchived: bool
    created_at: Optional[datetime] = None
