"""
Resend delivery client
Constructed explicitly and passed to EmailService; preview mode logs instead of sending
"""

import asyncio
import logging
import uuid
from typing import NamedTuple, Optional

import resend

from ...config import EMAIL_FROM_ADDRESS, EMAIL_PREVIEW_MODE, RESEND_API_KEY

logger = logging.getLogger(__name__)


class DeliveryResult(NamedTuple):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class ResendClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        preview_mode: Optional[bool] = None,
    ):
        self.api_key = api_key if api_key is not None else RESEND_API_KEY
        self.from_address = from_address or EMAIL_FROM_ADDRESS
        preview = EMAIL_PREVIEW_MODE if preview_mode is None else preview_mode
        # Without an API key there is nothing to send through
        self.preview_mode = preview or not self.api_key

    async def send(
        self,
        to: str,
        subject: str,
        text: str,
        from_address: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> DeliveryResult:
        sender = from_address or self.from_address

        if self.preview_mode:
            message_id = f"preview-{uuid.uuid4()}"
            logger.info(
                f"📭 [preview] Email to {to} from {sender}: {subject}\n{text}\n(id={message_id})"
            )
            return DeliveryResult(success=True, message_id=message_id)

        params = {
            "from": sender,
            "to": [to],
            "subject": subject,
            "text": text,
        }
        if reply_to:
            params["reply_to"] = reply_to

        try:
            logger.info(f"📧 Sending email via Resend to: {to}")
            resend.api_key = self.api_key
            response = await asyncio.to_thread(resend.Emails.send, params)
            message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
            logger.info(f"✅ Email sent successfully via Resend: {message_id}")
            return DeliveryResult(success=True, message_id=message_id)
        except Exception as e:
            logger.error(f"❌ Email send error to {to}: {e}")
            return DeliveryResult(success=False, error=str(e) or "Failed to send email")
