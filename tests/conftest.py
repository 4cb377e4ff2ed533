import os

# Configure before any hemsy module reads the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_ENABLED"] = "true"
os.environ["EMAIL_PREVIEW_MODE"] = "true"
os.environ["FIREBASE_PROJECT_ID"] = "hemsy-test"
os.environ["FRONTEND_URL"] = "https://app.hemsy.test"
os.environ.pop("CONFIRMATION_URL", None)
os.environ.pop("DECLINE_URL", None)
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from hemsy import models_email  # noqa: E402,F401
from hemsy.auth import get_current_user  # noqa: E402
from hemsy.database import Base, SessionLocal, engine, get_db  # noqa: E402
from hemsy.domain.email.client import DeliveryResult  # noqa: E402
from hemsy.domain.email.dependencies import get_clock, get_delivery_client  # noqa: E402
from hemsy.domain.email.service import EmailService  # noqa: E402
from hemsy.main import app  # noqa: E402
from hemsy.models import Appointment, Client, Shop, User  # noqa: E402

START = datetime(2026, 1, 10, 12, 0)


class MutableClock:
    """Naive-UTC clock that only moves when a test moves it"""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeDeliveryClient:
    """Records every send; addresses in ``fail_for`` get a provider error"""

    def __init__(self):
        self.sent = []
        self.fail_for = set()
        self.raise_for = set()

    async def send(self, to, subject, text, from_address=None, reply_to=None):
        if to in self.raise_for:
            raise ConnectionError("connection reset by peer")
        if to in self.fail_for:
            return DeliveryResult(success=False, error="Mailbox unavailable")
        self.sent.append(
            {
                "to": to,
                "subject": subject,
                "text": text,
                "from_address": from_address,
                "reply_to": reply_to,
            }
        )
        return DeliveryResult(success=True, message_id=f"msg-{len(self.sent)}")

    def sent_to(self, address):
        return [m for m in self.sent if m["to"] == address]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def delivery():
    return FakeDeliveryClient()


@pytest.fixture
def owner(db):
    user = User(firebase_uid="owner-uid", email="owner@example.com", full_name="Sarah Stitch")
    user.shop = Shop(name="Sarah's Alterations", email="sarah@example.com", timezone="UTC")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def client_record(db, owner):
    client = Client(
        shop_id=owner.shop.id,
        first_name="Jane",
        last_name="Smith",
        email="jane@example.com",
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@pytest.fixture
def make_appointment(db, owner, client_record):
    def _make(appointment_date=date(2026, 1, 15), start_time="10:00", end_time="11:00", status="pending", client=None):
        appointment = Appointment(
            shop_id=owner.shop.id,
            client_id=(client or client_record).id,
            title="Wedding dress fitting",
            type="fitting",
            date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            status=status,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make


@pytest.fixture
def appointment(make_appointment):
    return make_appointment()


@pytest.fixture
def email_service(db, owner, delivery, clock):
    return EmailService(db, owner.id, delivery, clock=clock)


@pytest.fixture
def api(db, owner, delivery, clock):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: owner
    app.dependency_overrides[get_delivery_client] = lambda: delivery
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
