"""Naive-UTC clock shared by services, repositories and model defaults"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo, matching the naive DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
