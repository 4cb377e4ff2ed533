"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Client, Shop


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, user_id: int, include_archived: bool = False) -> list[Client]:
        """Get all clients for a user's shop"""
        query = (
            db.query(Client)
            .join(Shop, Client.shop_id == Shop.id)
            .filter(Shop.owner_user_id == user_id)
        )

        if not include_archived:
            query = query.filter(Client.is_archived.is_(False))

        return query.order_by(Client.created_at.desc()).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: str, user_id: int) -> Optional[Client]:
        """Get a specific client by ID"""
        return (
            db.query(Client)
            .join(Shop, Client.shop_id == Shop.id)
            .filter(Client.id == client_id, Shop.owner_user_id == user_id)
            .first()
        )

    @staticmethod
    def get_client_by_email(db: Session, shop_id: str, email: str) -> Optional[Client]:
        return (
            db.query(Client)
            .filter(Client.shop_id == shop_id, Client.email == email)
            .first()
        )

    @staticmethod
    def create_client(db: Session, shop_id: str, **client_data) -> Client:
        """Create a new client"""
        client = Client(shop_id=shop_id, **client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        """Delete a client"""
        db.delete(client)
        db.commit()
