import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a UUID string primary key"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    shop = relationship("Shop", back_populates="owner", uselist=False)
    email_settings = relationship("UserEmailSettings", back_populates="user", uselist=False)


class Shop(Base):
    """An alterations shop; one per owner"""

    __tablename__ = "shops"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    business_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)  # Where owner notifications go
    phone_number = Column(String(50), nullable=True)
    timezone = Column(String(64), default="UTC", nullable=False)  # IANA name, e.g. America/New_York
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="shop")
    clients = relationship("Client", back_populates="shop", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="shop", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return self.business_name or self.name or "Your Seamstress"


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    shop_id = Column(String(36), ForeignKey("shops.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=True)
    accept_email = Column(Boolean, default=True, nullable=False)  # Transactional email opt-in
    accept_sms = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    shop = relationship("Shop", back_populates="clients")
    appointments = relationship("Appointment", back_populates="client")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    shop_id = Column(String(36), ForeignKey("shops.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    # consultation, fitting, pickup, delivery, other
    type = Column(String(50), default="consultation", nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM, shop local time
    end_time = Column(String(5), nullable=False)
    # Lifecycle: pending → confirmed/declined/canceled/no_show/completed
    status = Column(String(20), default="pending", nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    shop = relationship("Shop", back_populates="appointments")
    client = relationship("Client", back_populates="appointments")
