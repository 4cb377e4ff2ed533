"""Client service - Business logic for client operations"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Client, Shop, User
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


def get_user_shop(user: User) -> Shop:
    """The shop owned by a user; created at sign-in, so absence is a 404"""
    if not user.shop:
        raise HTTPException(status_code=404, detail="Shop not found")
    return user.shop


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self, user: User, include_archived: bool = False) -> list[Client]:
        return self.repo.get_clients(self.db, user.id, include_archived)

    def get_client(self, client_id: str, user: User) -> Client:
        """Get a specific client"""
        client = self.repo.get_client_by_id(self.db, client_id, user.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, data: ClientCreate, user: User) -> Client:
        """Create a new client, one per email address within a shop"""
        shop = get_user_shop(user)
        logger.info(f"📥 Creating client for shop {shop.id}")

        if self.repo.get_client_by_email(self.db, shop.id, data.email):
            raise HTTPException(status_code=409, detail="A client with this email already exists")

        client_data = {
            "first_name": data.firstName,
            "last_name": data.lastName,
            "email": data.email,
            "phone_number": data.phone,
            "accept_email": data.acceptEmail,
            "accept_sms": data.acceptSms,
            "notes": data.notes,
        }

        return self.repo.create_client(self.db, shop.id, **client_data)

    def update_client(self, client_id: str, data: ClientUpdate, user: User) -> Client:
        client = self.get_client(client_id, user)

        if data.email is not None and data.email != client.email:
            existing = self.repo.get_client_by_email(self.db, client.shop_id, data.email)
            if existing and existing.id != client.id:
                raise HTTPException(status_code=409, detail="A client with this email already exists")

        updates = {
            "first_name": data.firstName,
            "last_name": data.lastName,
            "email": data.email,
            "phone_number": data.phone,
            "accept_email": data.acceptEmail,
            "accept_sms": data.acceptSms,
            "notes": data.notes,
            "is_archived": data.isArchived,
        }

        if data.acceptEmail is False and client.accept_email:
            logger.info(f"ℹ️ Client {client.id} opted out of email")

        return self.repo.update_client(self.db, client, **updates)

    def delete_client(self, client_id: str, user: User) -> dict:
        """Delete a client that has no appointments"""
        client = self.get_client(client_id, user)

        if client.appointments:
            raise HTTPException(
                status_code=409,
                detail="Client has appointments. Archive the client instead.",
            )

        self.repo.delete_client(self.db, client)
        return {"message": "Client deleted"}
