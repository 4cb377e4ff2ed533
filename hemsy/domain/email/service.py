"""
Email service - dispatches appointment notifications

One call per lifecycle event: fetch the appointment, drop duplicates, apply
the delivery rules, render every recipient's message, log the attempt, deliver
the fan-out concurrently and record the outcome on the log.
"""

import asyncio
import logging
from datetime import datetime
from email.utils import parseaddr
from typing import Callable, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import CONFIRMATION_URL, DECLINE_URL, EMAIL_FROM_ADDRESS
from ...shared.clock import utcnow
from ...shared.validators import validate_uuid
from ..appointments.repository import AppointmentRepository
from .client import DeliveryResult, ResendClient
from .constants import EMAIL_CONSTRAINTS, EMAIL_FOOTER
from .context import AppointmentContext, format_appointment_time, parse_raw_time
from .gate import DeliveryGate
from .idempotency import IdempotencyGuard, dedupe_key, reschedule_key
from .kinds import (
    CONFIRMATION_LINK_TYPES,
    RECIPIENTS,
    EmailType,
    RecipientRole,
    is_dispatchable,
    parse_email_type,
)
from .renderer import RenderedEmail, TemplateRenderer
from .repository import EmailRepository
from .schemas import EmailSendResult
from .templates import get_template

logger = logging.getLogger(__name__)


class OutgoingEmail(NamedTuple):
    role: RecipientRole
    to: str
    name: str
    rendered: RenderedEmail


class EmailService:
    """Orchestrates appointment emails for one shop owner"""

    def __init__(
        self,
        db: Session,
        user_id: int,
        delivery_client: ResendClient,
        clock: Callable[[], datetime] = utcnow,
        gate: Optional[DeliveryGate] = None,
        guard: Optional[IdempotencyGuard] = None,
    ):
        self.db = db
        self.user_id = user_id
        self.client = delivery_client
        self.clock = clock
        self.repository = EmailRepository(db, user_id, clock=clock)
        self.renderer = TemplateRenderer()
        self.gate = gate or DeliveryGate(self.repository, clock=clock)
        self.guard = guard or IdempotencyGuard(self.repository, clock=clock)

    async def send_appointment_email(
        self,
        appointment_id: str,
        email_type,
        additional_data: Optional[dict] = None,
    ) -> EmailSendResult:
        kind = parse_email_type(email_type)
        if not validate_uuid(str(appointment_id)) or kind is None or not is_dispatchable(kind):
            logger.warning(f"⚠️ Invalid email request: appointment={appointment_id} type={email_type}")
            return EmailSendResult(success=False, error="Invalid request data")

        additional_data = dict(additional_data or {})

        try:
            context = self._fetch_context(appointment_id)
            if context is None:
                logger.warning(f"⚠️ Appointment {appointment_id} not found for user {self.user_id}")
                return EmailSendResult(success=False, error="Appointment not found")

            previous_time = additional_data.get("previous_time")
            existing_id = self.guard.check_duplicate(
                appointment_id, kind, previous_time=previous_time, new_time=context.raw_time
            )
            if existing_id:
                return EmailSendResult(success=True, log_id=existing_id)

            decision = self.gate.should_send(context, kind)
            if not decision.send:
                logger.info(f"ℹ️ Not sending {kind.value} for appointment {appointment_id}: {decision.reason}")
                return EmailSendResult(success=True)

            if (
                kind == EmailType.APPOINTMENT_CONFIRMATION_REQUEST
                and context.status != "pending"
                and "confirmation_link" not in additional_data
            ):
                logger.warning(f"⚠️ Appointment {appointment_id} is {context.status}, not awaiting confirmation")
                return EmailSendResult(success=False, error="Appointment is not awaiting confirmation")

            settings = self.repository.get_user_email_settings()
            data = self._prepare_email_data(context, kind, additional_data)
            issued_token = self._issue_confirmation_links(context, kind, data)
            try:
                messages = self._build_messages(context, kind, data, settings)
            except Exception:
                self._discard_token(issued_token)
                raise

            metadata = {"appointment_id": appointment_id, **additional_data}
            if kind == EmailType.APPOINTMENT_RESCHEDULED:
                metadata.update(
                    reschedule_key=reschedule_key(previous_time, context.raw_time),
                    previous_time_raw=previous_time,
                    new_time_raw=context.raw_time,
                )

            primary = messages[0]
            key = dedupe_key(appointment_id, kind)
            try:
                log_id = self.repository.create_email_log(
                    email_type=kind.value,
                    recipient_email=primary.to,
                    recipient_name=primary.name,
                    subject=primary.rendered.subject[: EMAIL_CONSTRAINTS["subject_max_length"]],
                    body=primary.rendered.body,
                    status="pending",
                    attempts=0,
                    metadata_=metadata,
                    appointment_id=appointment_id,
                    dedupe_key=key,
                )
            except IntegrityError:
                # A concurrent request logged the same event first; its email carries its own token
                self._discard_token(issued_token)
                existing = self.repository.find_by_dedupe_key(key) if key else None
                if existing is None:
                    raise
                logger.info(f"ℹ️ Duplicate {kind.value} for appointment {appointment_id} lost the race to {existing.id}")
                return EmailSendResult(success=True, log_id=existing.id)

            results = await asyncio.gather(
                *(self._deliver(message, context, settings) for message in messages)
            )

            success = all(r.success for r in results)
            first_error = next((r.error or "Failed to send email" for r in results if not r.success), None)
            message_id = next((r.message_id for r in results if r.message_id), None)

            self.repository.update_email_log(
                log_id,
                status="sent" if success else "failed",
                resend_id=message_id,
                sent_at=self.clock() if success else None,
                last_error=first_error,
                attempts=1,
            )

            if success:
                logger.info(f"✅ Sent {kind.value} for appointment {appointment_id} ({len(messages)} recipient(s))")
                return EmailSendResult(success=True, log_id=log_id)

            logger.error(f"❌ Failed to send {kind.value} for appointment {appointment_id}: {first_error}")
            return EmailSendResult(success=False, error=first_error, log_id=log_id)

        except Exception as e:
            logger.error(f"❌ Error sending {email_type} for appointment {appointment_id}: {e}", exc_info=True)
            return EmailSendResult(success=False, error="Failed to send email")

    async def send_confirmation_request(self, appointment_id: str) -> EmailSendResult:
        return await self.send_appointment_email(appointment_id, EmailType.APPOINTMENT_CONFIRMATION_REQUEST)

    async def resend_email(self, log_id: str) -> EmailSendResult:
        """Manual resend is not supported; the log is left untouched"""
        logger.info(f"ℹ️ Resend requested for email log {log_id}")
        return EmailSendResult(success=False, error="Not implemented")

    # Private methods

    def _fetch_context(self, appointment_id: str) -> Optional[AppointmentContext]:
        appointment = AppointmentRepository.get_with_relations(self.db, appointment_id, self.user_id)
        if not appointment or not appointment.client:
            return None
        return AppointmentContext.from_appointment(appointment)

    def _prepare_email_data(self, context: AppointmentContext, kind: EmailType, additional_data: dict) -> dict:
        data = {
            "client_name": context.client.full_name,
            "appointment_time": format_appointment_time(context.scheduled_at),
            "shop_name": context.shop.name,
            "seamstress_name": context.shop.owner_name,
        }

        previous_time = additional_data.get("previous_time")
        if previous_time:
            parsed = parse_raw_time(previous_time)
            data["previous_time"] = format_appointment_time(parsed) if parsed else previous_time
        elif kind == EmailType.APPOINTMENT_CANCELED:
            # Canceled emails refer to the slot that was given up
            data["previous_time"] = data["appointment_time"]

        for key, value in additional_data.items():
            if key not in data and key != "previous_time" and value is not None:
                data[key] = str(value)

        return data

    def _issue_confirmation_links(self, context: AppointmentContext, kind: EmailType, data: dict) -> Optional[str]:
        """Add confirm/decline links for a pending appointment; returns the new token, if any"""
        if (
            kind not in CONFIRMATION_LINK_TYPES
            or context.status != "pending"
            or "confirmation_link" in data
        ):
            return None

        token = self.repository.create_confirmation_token(context.appointment_id).token
        data["confirmation_link"] = f"{CONFIRMATION_URL}/{token}"
        data["decline_link"] = f"{DECLINE_URL}/{token}"
        return token

    def _discard_token(self, token: Optional[str]) -> None:
        if token:
            self.repository.delete_confirmation_token(token)
            logger.info("🔒 Discarded confirmation token that no email will carry")

    def _build_messages(self, context: AppointmentContext, kind: EmailType, data: dict, settings) -> list[OutgoingEmail]:
        messages = []
        with_links = "confirmation_link" in data
        for recipient in RECIPIENTS[kind]:
            if recipient.role == RecipientRole.OWNER:
                if len(RECIPIENTS[kind]) > 1 and not settings.receive_appointment_notifications:
                    logger.info(f"ℹ️ Owner opted out, skipping {recipient.template_type.value}")
                    continue
                to, name = context.shop.email, context.shop.owner_name
            else:
                to, name = context.client.email, context.client.full_name

            if not to:
                logger.warning(f"⚠️ No {recipient.role.value} email address for appointment {context.appointment_id}")
                continue

            template = get_template(recipient.template_type, with_links=with_links)
            if template is None:
                raise RuntimeError(f"No template configured for {recipient.template_type.value}")

            messages.append(OutgoingEmail(recipient.role, to, name, self.renderer.render(template, data)))

        if not messages:
            raise RuntimeError(f"No deliverable recipients for {kind.value}")
        return messages

    async def _deliver(self, message: OutgoingEmail, context: AppointmentContext, settings) -> DeliveryResult:
        body = message.rendered.body
        reply_to = None
        if message.role == RecipientRole.CLIENT:
            if settings.email_signature:
                body = f"{body}\n\n{settings.email_signature}"
            body = f"{body}{EMAIL_FOOTER}"
            reply_to = settings.reply_to_email or context.shop.email

        _, from_email = parseaddr(EMAIL_FROM_ADDRESS)
        sender = f"{context.shop.name} <{from_email}>"

        try:
            return await self.client.send(
                to=message.to,
                subject=message.rendered.subject,
                text=body,
                from_address=sender,
                reply_to=reply_to,
            )
        except Exception as e:
            logger.error(f"❌ Delivery to {message.to} raised: {e}")
            return DeliveryResult(success=False, error=str(e) or "Failed to send email")
