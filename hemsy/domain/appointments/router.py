"""Appointment router - FastAPI endpoints for appointments and public confirmation links"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Appointment, User
from ..email.client import ResendClient
from ..email.dependencies import get_clock, get_delivery_client
from ..email.schemas import EmailSendResult
from .schemas import (
    AppointmentAction,
    AppointmentActionResponse,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    PublicActionResponse,
    PublicAppointmentInfo,
    TokenValidationResponse,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    delivery_client: ResendClient = Depends(get_delivery_client),
    clock=Depends(get_clock),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, delivery_client, clock=clock)


def _appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        clientId=appointment.client_id,
        clientName=appointment.client.full_name if appointment.client else None,
        title=appointment.title,
        type=appointment.type,
        date=appointment.date,
        startTime=appointment.start_time,
        endTime=appointment.end_time,
        status=appointment.status,
        notes=appointment.notes,
        created_at=appointment.created_at,
    )


def _public_info(appointment: Appointment) -> PublicAppointmentInfo:
    return PublicAppointmentInfo(
        title=appointment.title,
        date=appointment.date,
        startTime=appointment.start_time,
        endTime=appointment.end_time,
        status=appointment.status,
        shopName=appointment.shop.display_name,
        clientName=appointment.client.first_name if appointment.client else None,
    )


# ============================================================================
# PUBLIC ROUTES (token authorized, no login)
# ============================================================================


@router.get("/public/confirm/{token}", response_model=TokenValidationResponse)
async def validate_confirmation_token(
    token: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Check a confirmation link before showing the confirm/decline page"""
    appointment = service.validate_token(token)
    return TokenValidationResponse(valid=True, appointment=_public_info(appointment))


@router.post("/public/confirm/{token}", response_model=PublicActionResponse)
async def confirm_appointment(
    token: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.confirm_with_token(token)
    return PublicActionResponse(
        success=True, status=appointment.status, message="Your appointment is confirmed"
    )


@router.post("/public/decline/{token}", response_model=PublicActionResponse)
async def decline_appointment(
    token: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.decline_with_token(token)
    return PublicActionResponse(
        success=True, status=appointment.status, message="Your appointment has been declined"
    )


# ============================================================================
# CORE OPERATIONS
# ============================================================================


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    status: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    client_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments for the current user's shop"""
    appointments = service.get_appointments(current_user, status, start_date, end_date, client_id)
    return [_appointment_response(a) for a in appointments]


@router.post("", response_model=AppointmentActionResponse)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Create an appointment and notify the client"""
    appointment, email = await service.create_appointment(data, current_user)
    return AppointmentActionResponse(appointment=_appointment_response(appointment), email=email)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _appointment_response(service.get_appointment(appointment_id, current_user))


@router.post("/{appointment_id}/reschedule", response_model=AppointmentActionResponse)
async def reschedule_appointment(
    appointment_id: str,
    data: AppointmentReschedule,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Move an appointment; it goes back to pending and the client is asked to confirm again"""
    appointment, email = await service.reschedule_appointment(appointment_id, data, current_user)
    return AppointmentActionResponse(appointment=_appointment_response(appointment), email=email)


@router.post("/{appointment_id}/cancel", response_model=AppointmentActionResponse)
async def cancel_appointment(
    appointment_id: str,
    data: Optional[AppointmentAction] = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment, email = await service.cancel_appointment(appointment_id, data or AppointmentAction(), current_user)
    return AppointmentActionResponse(appointment=_appointment_response(appointment), email=email)


@router.post("/{appointment_id}/no-show", response_model=AppointmentActionResponse)
async def mark_no_show(
    appointment_id: str,
    data: Optional[AppointmentAction] = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment, email = await service.mark_no_show(appointment_id, data or AppointmentAction(), current_user)
    return AppointmentActionResponse(appointment=_appointment_response(appointment), email=email)


@router.post("/{appointment_id}/complete", response_model=AppointmentActionResponse)
async def complete_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.complete_appointment(appointment_id, current_user)
    return AppointmentActionResponse(appointment=_appointment_response(appointment))


@router.post("/{appointment_id}/confirmation-request", response_model=EmailSendResult)
async def send_confirmation_request(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Email the client a fresh confirm/decline link"""
    return await service.send_confirmation_request(appointment_id, current_user)
