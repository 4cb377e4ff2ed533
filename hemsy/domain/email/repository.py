"""Email repository - Database operations for email logs, tokens and settings"""

import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...config import CONFIRMATION_TOKEN_TTL_HOURS
from ...models_email import ConfirmationToken, EmailLog, UserEmailSettings
from ...shared.clock import utcnow


class EmailRepository:
    """Repository scoped to one owner (user) for all reads and writes"""

    def __init__(self, db: Session, user_id: int, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.user_id = user_id
        self.clock = clock

    # Email log operations

    def create_email_log(self, **log_data) -> str:
        """Insert a log row and return its id. Raises IntegrityError on a duplicate dedupe_key."""
        log = EmailLog(created_by=self.user_id, created_at=self.clock(), **log_data)
        self.db.add(log)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(log)
        return log.id

    def update_email_log(self, log_id: str, **updates) -> None:
        log = (
            self.db.query(EmailLog)
            .filter(EmailLog.id == log_id, EmailLog.created_by == self.user_id)
            .first()
        )
        if not log:
            raise LookupError(f"Email log {log_id} not found")
        for key, value in updates.items():
            setattr(log, key, value)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def get_email_log(self, log_id: str) -> Optional[EmailLog]:
        return (
            self.db.query(EmailLog)
            .filter(EmailLog.id == log_id, EmailLog.created_by == self.user_id)
            .first()
        )

    def find_logs(
        self,
        email_type: str,
        appointment_id: str,
        metadata_contains: Optional[dict] = None,
        created_after: Optional[datetime] = None,
    ) -> list[EmailLog]:
        """
        Logs for one appointment and type, newest first, whose metadata
        contains every key/value in ``metadata_contains``.
        """
        query = self.db.query(EmailLog).filter(
            EmailLog.email_type == email_type,
            EmailLog.created_by == self.user_id,
            EmailLog.appointment_id == appointment_id,
        )
        if created_after is not None:
            query = query.filter(EmailLog.created_at > created_after)

        logs = query.order_by(EmailLog.created_at.desc()).all()
        if not metadata_contains:
            return logs
        return [
            log
            for log in logs
            if all((log.metadata_ or {}).get(k) == v for k, v in metadata_contains.items())
        ]

    def find_by_dedupe_key(self, dedupe_key: str) -> Optional[EmailLog]:
        return (
            self.db.query(EmailLog)
            .filter(EmailLog.created_by == self.user_id, EmailLog.dedupe_key == dedupe_key)
            .first()
        )

    def _scoped_logs(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None, query=None):
        query = query if query is not None else self.db.query(EmailLog)
        query = query.filter(EmailLog.created_by == self.user_id)
        if start_date:
            query = query.filter(EmailLog.created_at >= start_date)
        if end_date:
            query = query.filter(EmailLog.created_at <= end_date)
        return query

    def get_email_logs(
        self,
        status: Optional[str] = None,
        email_type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[EmailLog], int]:
        """Filtered, paginated logs plus the total count before pagination"""
        query = self._scoped_logs(start_date, end_date)

        if status:
            query = query.filter(EmailLog.status == status)
        if email_type:
            query = query.filter(EmailLog.email_type == email_type)

        total = query.count()
        logs = query.order_by(EmailLog.created_at.desc()).offset(offset).limit(limit).all()
        return logs, total

    def get_email_counts(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> dict:
        """Log counts grouped by status, by type and by creation day"""
        by_status = self._scoped_logs(
            start_date, end_date, self.db.query(EmailLog.status, func.count(EmailLog.id))
        ).group_by(EmailLog.status)

        by_type = self._scoped_logs(
            start_date, end_date, self.db.query(EmailLog.email_type, func.count(EmailLog.id))
        ).group_by(EmailLog.email_type)

        day = func.date(EmailLog.created_at)
        by_day = (
            self._scoped_logs(start_date, end_date, self.db.query(day, func.count(EmailLog.id)))
            .group_by(day)
            .order_by(day)
        )

        return {
            "by_status": dict(by_status.all()),
            "by_type": dict(by_type.all()),
            # SQLite returns DATE() as text, PostgreSQL as a date
            "by_day": [
                (value if isinstance(value, str) else value.isoformat(), count) for value, count in by_day.all()
            ],
        }

    def delete_logs_before(self, cutoff: datetime) -> int:
        deleted = (
            self.db.query(EmailLog)
            .filter(EmailLog.created_by == self.user_id, EmailLog.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    # Token operations

    def create_confirmation_token(self, appointment_id: str) -> ConfirmationToken:
        token = ConfirmationToken(
            token=secrets.token_hex(32),
            appointment_id=appointment_id,
            expires_at=self.clock() + timedelta(hours=CONFIRMATION_TOKEN_TTL_HOURS),
            created_at=self.clock(),
            created_by=self.user_id,
        )
        self.db.add(token)
        self.db.commit()
        self.db.refresh(token)
        return token

    def delete_confirmation_token(self, token: str) -> None:
        (
            self.db.query(ConfirmationToken)
            .filter(ConfirmationToken.token == token, ConfirmationToken.created_by == self.user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()

    def invalidate_unused_tokens_for_appointment(self, appointment_id: str) -> int:
        count = (
            self.db.query(ConfirmationToken)
            .filter(
                ConfirmationToken.appointment_id == appointment_id,
                ConfirmationToken.used_at.is_(None),
            )
            .update({"used_at": self.clock()}, synchronize_session=False)
        )
        self.db.commit()
        return count

    # User settings

    def get_user_email_settings(self) -> UserEmailSettings:
        """Owner settings, created with defaults on first read"""
        settings = (
            self.db.query(UserEmailSettings)
            .filter(UserEmailSettings.user_id == self.user_id)
            .first()
        )
        if settings:
            return settings

        settings = UserEmailSettings(
            user_id=self.user_id,
            receive_appointment_notifications=True,
            email_signature=None,
            reply_to_email=None,
        )
        self.db.add(settings)
        self.db.commit()
        self.db.refresh(settings)
        return settings

    def update_user_email_settings(self, **updates) -> UserEmailSettings:
        settings = self.get_user_email_settings()
        for key, value in updates.items():
            setattr(settings, key, value)
        self.db.commit()
        self.db.refresh(settings)
        return settings


class TokenRepository:
    """Token lookups for public confirm/decline links; not scoped to an owner"""

    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[ConfirmationToken]:
        return db.query(ConfirmationToken).filter(ConfirmationToken.token == token).first()

    @staticmethod
    def validate_token(db: Session, token: str, now: datetime) -> dict:
        record = TokenRepository.get_by_token(db, token)
        if not record:
            return {"valid": False, "reason": "not_found"}

        if record.used_at:
            return {"valid": False, "reason": "used", "appointment_id": record.appointment_id}

        if record.expires_at < now:
            return {"valid": False, "reason": "expired", "appointment_id": record.appointment_id}

        return {"valid": True, "appointment_id": record.appointment_id, "created_by": record.created_by}

    @staticmethod
    def use_token(db: Session, token: str, now: datetime) -> None:
        record = TokenRepository.get_by_token(db, token)
        if record:
            record.used_at = now
            db.commit()
