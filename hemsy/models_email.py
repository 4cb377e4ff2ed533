"""
Email Models for appointment notifications
Logs every dispatch attempt, confirmation tokens and owner email preferences
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid
from .shared.clock import utcnow


class EmailLog(Base):
    """One row per dispatch attempt, updated once with the outcome"""

    __tablename__ = "email_logs"
    __table_args__ = (
        # One log per (owner, appointment, kind) for non-reschedule kinds.
        # Reschedules store NULL here and rely on the time-window check.
        UniqueConstraint("created_by", "dedupe_key", name="uq_email_logs_creator_dedupe_key"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email_type = Column(String(64), nullable=False, index=True)
    recipient_email = Column(String(255), nullable=False)
    recipient_name = Column(String(255), nullable=False)
    subject = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending, sent, failed
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)
    resend_id = Column(String(255), nullable=True)  # Provider message id
    metadata_ = Column("metadata", JSON, default=dict, nullable=False)
    appointment_id = Column(String(36), nullable=True, index=True)
    dedupe_key = Column(String(128), nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)


class ConfirmationToken(Base):
    """Single-use token behind the client's confirm/decline link"""

    __tablename__ = "confirmation_tokens"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    token = Column(String(64), unique=True, nullable=False, index=True)
    appointment_id = Column(
        String(36), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)


class UserEmailSettings(Base):
    __tablename__ = "user_email_settings"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    receive_appointment_notifications = Column(Boolean, default=True, nullable=False)
    email_signature = Column(String(500), nullable=True)
    reply_to_email = Column(String(255), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="email_settings")
