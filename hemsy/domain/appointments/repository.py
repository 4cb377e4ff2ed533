"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Shop


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointments(
        db: Session,
        user_id: int,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        client_id: Optional[str] = None,
    ) -> list[Appointment]:
        """Get appointments for the user's shop, earliest first"""
        query = (
            db.query(Appointment)
            .join(Shop, Appointment.shop_id == Shop.id)
            .options(joinedload(Appointment.client))
            .filter(Shop.owner_user_id == user_id)
        )

        if status:
            query = query.filter(Appointment.status == status)
        if start_date:
            query = query.filter(Appointment.date >= start_date)
        if end_date:
            query = query.filter(Appointment.date <= end_date)
        if client_id:
            query = query.filter(Appointment.client_id == client_id)

        return query.order_by(Appointment.date, Appointment.start_time).all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: str, user_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .join(Shop, Appointment.shop_id == Shop.id)
            .filter(Appointment.id == appointment_id, Shop.owner_user_id == user_id)
            .first()
        )

    @staticmethod
    def get_with_relations(db: Session, appointment_id: str, user_id: int) -> Optional[Appointment]:
        """Appointment with client, shop and shop owner loaded in one query"""
        return (
            db.query(Appointment)
            .join(Shop, Appointment.shop_id == Shop.id)
            .options(
                joinedload(Appointment.client),
                joinedload(Appointment.shop).joinedload(Shop.owner),
            )
            .filter(Appointment.id == appointment_id, Shop.owner_user_id == user_id)
            .first()
        )

    @staticmethod
    def get_public_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
        """Unscoped lookup for token-authorized public routes"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.client), joinedload(Appointment.shop))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def create_appointment(db: Session, shop_id: str, **appointment_data) -> Appointment:
        appointment = Appointment(shop_id=shop_id, **appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Update an appointment with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment
