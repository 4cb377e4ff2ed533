"""
Appointment service - lifecycle state machine and notification triggers

Every state change is committed before its notification is dispatched, so a
failed email never undoes the change itself.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Appointment, User
from ...shared.clock import utcnow
from ..clients.repository import ClientRepository
from ..clients.service import get_user_shop
from ..email.client import ResendClient
from ..email.kinds import EmailType
from ..email.repository import EmailRepository, TokenRepository
from ..email.schemas import EmailSendResult
from ..email.service import EmailService
from .repository import AppointmentRepository
from .schemas import AppointmentAction, AppointmentCreate, AppointmentReschedule

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "declined", "canceled", "no_show", "completed"},
    "confirmed": {"canceled", "no_show", "completed"},
}
RESCHEDULABLE_STATUSES = {"pending", "confirmed"}

TOKEN_ERRORS = {
    "not_found": (404, "Invalid confirmation link"),
    "used": (410, "This link has already been used"),
    "expired": (410, "This link has expired"),
}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def raw_time(appointment: Appointment) -> str:
    return f"{appointment.date.isoformat()} {appointment.start_time}"


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(
        self,
        db: Session,
        delivery_client: ResendClient,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.repo = AppointmentRepository()
        self.delivery_client = delivery_client
        self.clock = clock

    def email_service(self, user_id: int) -> EmailService:
        return EmailService(self.db, user_id, self.delivery_client, clock=self.clock)

    def get_appointments(self, user: User, status: Optional[str] = None, start_date=None, end_date=None, client_id=None) -> list[Appointment]:
        return self.repo.get_appointments(self.db, user.id, status, start_date, end_date, client_id)

    def get_appointment(self, appointment_id: str, user: User) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id, user.id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    async def create_appointment(self, data: AppointmentCreate, user: User) -> tuple[Appointment, Optional[EmailSendResult]]:
        shop = get_user_shop(user)

        client = ClientRepository.get_client_by_id(self.db, data.clientId, user.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        appointment = self.repo.create_appointment(
            self.db,
            shop.id,
            client_id=client.id,
            title=data.title,
            type=data.type,
            date=data.date,
            start_time=data.startTime,
            end_time=data.endTime,
            notes=data.notes,
            status="pending",
        )
        logger.info(f"✅ Appointment {appointment.id} created for client {client.id}")

        result = None
        if data.sendEmail:
            result = await self.email_service(user.id).send_appointment_email(
                appointment.id, EmailType.APPOINTMENT_SCHEDULED
            )
        return appointment, result

    async def reschedule_appointment(
        self, appointment_id: str, data: AppointmentReschedule, user: User
    ) -> tuple[Appointment, Optional[EmailSendResult]]:
        appointment = self.get_appointment(appointment_id, user)

        if appointment.status not in RESCHEDULABLE_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot reschedule an appointment that is {appointment.status}",
            )

        previous_time = raw_time(appointment)
        if (
            appointment.date == data.date
            and appointment.start_time == data.startTime
            and appointment.end_time == data.endTime
        ):
            raise HTTPException(status_code=400, detail="Appointment time unchanged")

        # Links sent for the old time must not confirm the new one
        invalidated = EmailRepository(self.db, user.id, clock=self.clock).invalidate_unused_tokens_for_appointment(
            appointment.id
        )
        if invalidated:
            logger.info(f"🔒 Invalidated {invalidated} confirmation token(s) for appointment {appointment.id}")

        appointment = self.repo.update_appointment(
            self.db,
            appointment,
            date=data.date,
            start_time=data.startTime,
            end_time=data.endTime,
            status="pending",
        )
        logger.info(f"📅 Appointment {appointment.id} rescheduled from {previous_time} to {raw_time(appointment)}")

        result = None
        if data.sendEmail:
            result = await self.email_service(user.id).send_appointment_email(
                appointment.id,
                EmailType.APPOINTMENT_RESCHEDULED,
                {"previous_time": previous_time},
            )
        return appointment, result

    async def cancel_appointment(
        self, appointment_id: str, data: AppointmentAction, user: User
    ) -> tuple[Appointment, Optional[EmailSendResult]]:
        appointment = self._transition(appointment_id, "canceled", user)
        EmailRepository(self.db, user.id, clock=self.clock).invalidate_unused_tokens_for_appointment(appointment.id)

        result = None
        if data.sendEmail:
            additional = {"reason": data.reason} if data.reason else None
            result = await self.email_service(user.id).send_appointment_email(
                appointment.id, EmailType.APPOINTMENT_CANCELED, additional
            )
        return appointment, result

    async def mark_no_show(
        self, appointment_id: str, data: AppointmentAction, user: User
    ) -> tuple[Appointment, Optional[EmailSendResult]]:
        appointment = self._transition(appointment_id, "no_show", user)

        result = None
        if data.sendEmail:
            result = await self.email_service(user.id).send_appointment_email(
                appointment.id, EmailType.APPOINTMENT_NO_SHOW
            )
        return appointment, result

    def complete_appointment(self, appointment_id: str, user: User) -> Appointment:
        return self._transition(appointment_id, "completed", user)

    async def send_confirmation_request(self, appointment_id: str, user: User) -> EmailSendResult:
        appointment = self.get_appointment(appointment_id, user)
        if appointment.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending appointments can be sent a confirmation request")
        return await self.email_service(user.id).send_confirmation_request(appointment.id)

    # Public token flow

    def validate_token(self, token: str) -> Appointment:
        """Resolve a confirmation token to its appointment or raise 404/410"""
        validation = TokenRepository.validate_token(self.db, token, self.clock())
        if not validation["valid"]:
            status_code, detail = TOKEN_ERRORS[validation["reason"]]
            logger.warning(f"⚠️ Rejected confirmation token: {validation['reason']}")
            raise HTTPException(status_code=status_code, detail=detail)

        appointment = self.repo.get_public_appointment(self.db, validation["appointment_id"])
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    async def confirm_with_token(self, token: str) -> Appointment:
        appointment = self.validate_token(token)
        owner_id = appointment.shop.owner_user_id

        if not can_transition(appointment.status, "confirmed"):
            raise HTTPException(
                status_code=400,
                detail=f"Appointment cannot be confirmed because it is {appointment.status}",
            )

        TokenRepository.use_token(self.db, token, self.clock())
        EmailRepository(self.db, owner_id, clock=self.clock).invalidate_unused_tokens_for_appointment(appointment.id)
        appointment = self.repo.update_appointment(self.db, appointment, status="confirmed")
        logger.info(f"✅ Appointment {appointment.id} confirmed by client")

        await self.email_service(owner_id).send_appointment_email(
            appointment.id, EmailType.APPOINTMENT_CONFIRMED
        )
        return appointment

    def decline_with_token(self, token: str) -> Appointment:
        appointment = self.validate_token(token)
        owner_id = appointment.shop.owner_user_id

        if not can_transition(appointment.status, "declined"):
            raise HTTPException(
                status_code=400,
                detail=f"Appointment cannot be declined because it is {appointment.status}",
            )

        TokenRepository.use_token(self.db, token, self.clock())
        EmailRepository(self.db, owner_id, clock=self.clock).invalidate_unused_tokens_for_appointment(appointment.id)
        appointment = self.repo.update_appointment(self.db, appointment, status="declined")
        logger.info(f"ℹ️ Appointment {appointment.id} declined by client")
        return appointment

    # Private methods

    def _transition(self, appointment_id: str, new_status: str, user: User) -> Appointment:
        appointment = self.get_appointment(appointment_id, user)
        if not can_transition(appointment.status, new_status):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change appointment from {appointment.status} to {new_status}",
            )
        appointment = self.repo.update_appointment(self.db, appointment, status=new_status)
        logger.info(f"📅 Appointment {appointment.id} marked {new_status}")
        return appointment
