"""Typed appointment context, built once when the appointment is fetched"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class ClientInfo:
    id: str
    first_name: str
    last_name: str
    email: str
    accept_email: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ShopInfo:
    id: str
    name: str
    owner_name: str
    email: Optional[str] = None
    timezone: str = "UTC"


@dataclass(frozen=True)
class AppointmentContext:
    appointment_id: str
    status: str
    date: date
    start_time: str
    end_time: str
    client: ClientInfo
    shop: ShopInfo
    title: str = ""

    @property
    def raw_time(self) -> str:
        """Date and start time as stored, e.g. '2026-01-15 10:00'"""
        return f"{self.date.isoformat()} {self.start_time}"

    @property
    def tzinfo(self):
        try:
            return ZoneInfo(self.shop.timezone or "UTC")
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo("UTC")

    @property
    def scheduled_at(self) -> datetime:
        """Timezone-aware start of the appointment in the shop's zone"""
        hour, minute = (int(part) for part in self.start_time.split(":")[:2])
        return datetime(
            self.date.year, self.date.month, self.date.day, hour, minute, tzinfo=self.tzinfo
        )

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentContext":
        """Build from an Appointment row with client and shop loaded"""
        client = appointment.client
        shop = appointment.shop
        if client is None:
            raise ValueError("Appointment has no client")

        owner = getattr(shop, "owner", None)
        owner_name = (owner.full_name if owner and owner.full_name else None) or shop.display_name

        return cls(
            appointment_id=appointment.id,
            status=appointment.status,
            date=appointment.date,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            title=appointment.title or "",
            client=ClientInfo(
                id=client.id,
                first_name=client.first_name,
                last_name=client.last_name,
                email=client.email,
                accept_email=bool(client.accept_email),
            ),
            shop=ShopInfo(
                id=shop.id,
                name=shop.display_name,
                owner_name=owner_name,
                email=shop.email or (owner.email if owner else None),
                timezone=shop.timezone or "UTC",
            ),
        )


def format_appointment_time(value: datetime) -> str:
    """Format like 'Monday, January 15 at 2:00 PM'"""
    hour = value.hour % 12 or 12
    return f"{value:%A, %B} {value.day} at {hour}:{value:%M %p}"


def parse_raw_time(raw: str) -> Optional[datetime]:
    """Parse 'YYYY-MM-DD HH:MM' (or ISO 'T'-separated) time strings; None if unparseable"""
    if not raw:
        return None
    text = raw.strip().replace("T", " ")
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M"):
        try:
            return datetime.strptime(text[:19] if fmt.endswith("%S") else text[:16], fmt)
        except ValueError:
            continue
    return None
