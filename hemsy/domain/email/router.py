"""Email router - FastAPI endpoints for sending, logs, settings and templates"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...models_email import EmailLog
from .constants import EMAIL_TYPE_LABELS
from .dependencies import get_clock, get_email_service
from .kinds import parse_email_type
from .monitoring import EmailMonitoringService
from .renderer import TemplateRenderer
from .repository import EmailRepository
from .schemas import (
    CleanupResponse,
    EmailLogListResponse,
    EmailLogResponse,
    EmailSendResult,
    EmailSettingsResponse,
    EmailSettingsUpdate,
    EmailStatisticsResponse,
    SendAppointmentEmailRequest,
    TemplatePreviewResponse,
    TemplateResponse,
    TemplateVariable,
)
from .service import EmailService
from .templates import get_all_templates, get_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emails", tags=["Emails"])


def get_monitoring_service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    clock=Depends(get_clock),
) -> EmailMonitoringService:
    """Dependency injection for EmailMonitoringService"""
    return EmailMonitoringService(db, current_user.id, clock=clock)


def _log_response(log: EmailLog) -> EmailLogResponse:
    return EmailLogResponse(
        id=log.id,
        email_type=log.email_type,
        recipient_email=log.recipient_email,
        recipient_name=log.recipient_name,
        subject=log.subject,
        body=log.body,
        status=log.status,
        attempts=log.attempts,
        last_error=log.last_error,
        resend_id=log.resend_id,
        metadata=log.metadata_ or {},
        appointment_id=log.appointment_id,
        sent_at=log.sent_at,
        created_at=log.created_at,
    )


def _template_or_404(email_type: str):
    template = get_template(email_type)
    if template is None:
        raise HTTPException(status_code=404, detail="Email type not found")
    return template


# ============================================================================
# SENDING
# ============================================================================


@router.post("/appointments/{appointment_id}/send", response_model=EmailSendResult)
async def send_appointment_email(
    appointment_id: str,
    data: SendAppointmentEmailRequest,
    service: EmailService = Depends(get_email_service),
):
    """Send (or re-trigger) the notification for an appointment event"""
    return await service.send_appointment_email(appointment_id, data.email_type, data.additional_data)


@router.post("/logs/{log_id}/resend", response_model=EmailSendResult)
async def resend_email(
    log_id: str,
    service: EmailService = Depends(get_email_service),
):
    return await service.resend_email(log_id)


# ============================================================================
# MONITORING
# ============================================================================


@router.get("/logs", response_model=EmailLogListResponse)
async def get_email_logs(
    status: Optional[str] = Query(None),
    email_type: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: EmailMonitoringService = Depends(get_monitoring_service),
):
    """Get email logs, newest first, with optional filters"""
    logs, total = service.get_logs(status, email_type, start_date, end_date, limit, offset)
    return EmailLogListResponse(
        logs=[_log_response(log) for log in logs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/logs/{log_id}", response_model=EmailLogResponse)
async def get_email_log(
    log_id: str,
    service: EmailMonitoringService = Depends(get_monitoring_service),
):
    return _log_response(service.get_log(log_id))


@router.delete("/logs", response_model=CleanupResponse)
async def delete_old_email_logs(
    days_to_keep: int = Query(90),
    service: EmailMonitoringService = Depends(get_monitoring_service),
):
    """Delete email logs older than the retention period"""
    deleted = service.delete_old_logs(days_to_keep)
    return CleanupResponse(deleted=deleted, days_to_keep=days_to_keep)


@router.get("/statistics", response_model=EmailStatisticsResponse)
async def get_email_statistics(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    service: EmailMonitoringService = Depends(get_monitoring_service),
):
    return service.get_statistics(start_date, end_date)


# ============================================================================
# SETTINGS
# ============================================================================


@router.get("/settings", response_model=EmailSettingsResponse)
async def get_email_settings(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the owner's email settings (created with defaults on first read)"""
    return EmailRepository(db, current_user.id).get_user_email_settings()


@router.put("/settings", response_model=EmailSettingsResponse)
async def update_email_settings(
    data: EmailSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = data.model_dump(exclude_unset=True)
    settings = EmailRepository(db, current_user.id).update_user_email_settings(**updates)
    logger.info(f"✅ Email settings updated for user {current_user.id}: {', '.join(updates) or 'no changes'}")
    return settings


# ============================================================================
# TEMPLATES
# ============================================================================


@router.get("/templates", response_model=list[TemplateResponse])
async def get_email_templates(current_user: User = Depends(get_current_user)):
    """Get the built-in template for every email type"""
    renderer = TemplateRenderer()
    return [
        TemplateResponse(
            email_type=t.email_type.value,
            label=EMAIL_TYPE_LABELS[t.email_type],
            subject=t.subject,
            body=t.body,
            variables=renderer.get_allowed_variables(t.email_type),
        )
        for t in get_all_templates()
    ]


@router.get("/templates/{email_type}/preview", response_model=TemplatePreviewResponse)
async def preview_email_template(
    email_type: str,
    current_user: User = Depends(get_current_user),
):
    """Render a template with sample data"""
    template = _template_or_404(email_type)
    rendered = TemplateRenderer().render_preview(template, template.email_type)
    return TemplatePreviewResponse(
        email_type=template.email_type.value,
        subject=rendered.subject,
        body=rendered.body,
    )


@router.get("/templates/{email_type}/variables", response_model=list[TemplateVariable])
async def get_template_variables(
    email_type: str,
    current_user: User = Depends(get_current_user),
):
    if parse_email_type(email_type) is None:
        raise HTTPException(status_code=404, detail="Email type not found")
    return TemplateRenderer().get_variable_help(email_type)
