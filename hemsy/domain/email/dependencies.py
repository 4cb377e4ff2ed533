"""FastAPI dependencies shared by routers that send email"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.clock import utcnow
from .client import ResendClient
from .service import EmailService


def get_delivery_client() -> ResendClient:
    return ResendClient()


def get_clock():
    """Naive-UTC clock; overridden in tests"""
    return utcnow


def get_email_service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    delivery_client: ResendClient = Depends(get_delivery_client),
    clock=Depends(get_clock),
) -> EmailService:
    """Dependency injection for EmailService"""
    return EmailService(db, current_user.id, delivery_client, clock=clock)
