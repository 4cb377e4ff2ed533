"""Email monitoring - log browsing, delivery statistics and retention cleanup"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models_email import EmailLog
from ...shared.clock import utcnow
from .repository import EmailRepository

logger = logging.getLogger(__name__)


class EmailMonitoringService:
    def __init__(self, db: Session, user_id: int, clock: Callable[[], datetime] = utcnow):
        self.repository = EmailRepository(db, user_id, clock=clock)
        self.clock = clock
        self.user_id = user_id

    def get_logs(
        self,
        status: Optional[str] = None,
        email_type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[EmailLog], int]:
        return self.repository.get_email_logs(
            status=status,
            email_type=email_type,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )

    def get_log(self, log_id: str) -> EmailLog:
        log = self.repository.get_email_log(log_id)
        if not log:
            raise HTTPException(status_code=404, detail="Email log not found")
        return log

    def get_statistics(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> dict:
        """Counts by status and type, plus per-day totals, over the given range"""
        counts = self.repository.get_email_counts(start_date=start_date, end_date=end_date)
        by_status = counts["by_status"]

        return {
            "total": sum(by_status.values()),
            "sent": by_status.get("sent", 0),
            "failed": by_status.get("failed", 0),
            "pending": by_status.get("pending", 0),
            "by_type": counts["by_type"],
            "daily_counts": [{"date": day, "count": count} for day, count in counts["by_day"]],
        }

    def delete_old_logs(self, days_to_keep: int = 90) -> int:
        if days_to_keep < 1:
            raise HTTPException(status_code=400, detail="days_to_keep must be at least 1")

        cutoff = self.clock() - timedelta(days=days_to_keep)
        deleted = self.repository.delete_logs_before(cutoff)
        logger.info(f"🧹 Deleted {deleted} email log(s) older than {days_to_keep} days for user {self.user_id}")
        return deleted
