"""
Pytest configuration and shared fixtures.

Tests run against a throwaway SQLite file. The environment is set before the
application modules are imported so the module-level engine points at it.
"""

import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

_DB_DIR = tempfile.mkdtemp(prefix="garagebook-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SMS_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["APPOINTMENT_LOCK_TIMEOUT"] = "5"

import pytest  # noqa: E402

from garagebook import models, models_sms  # noqa: E402, F401
from garagebook.database import Base, SessionLocal, engine  # noqa: E402
from garagebook.domain.appointments.service import AppointmentService  # noqa: E402
from garagebook.models import DetailService, Role, User  # noqa: E402
from garagebook.services.notification_scheduler import NotificationScheduler  # noqa: E402
from garagebook.unit_of_work import UnitOfWork  # noqa: E402

NOW = datetime(2030, 3, 4, 8, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Injectable clock; advance() moves time forward"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingDispatcher:
    """Collects dispatched events instead of sending them"""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def dispatch(self, event):
        with self._lock:
            self.events.append(event)

    def types(self):
        return [e.type.value for e in self.events]


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def scheduler(dispatcher):
    return NotificationScheduler(dispatcher)


@pytest.fixture
def make_uow():
    """Factory for units of work; all of them are closed after the test"""
    created = []

    def _make():
        uow = UnitOfWork(SessionLocal())
        created.append(uow)
        return uow

    yield _make

    for uow in created:
        uow.close()


@pytest.fixture
def make_service(make_uow, scheduler, clock):
    """A fresh AppointmentService (own session) per call"""

    def _make():
        return AppointmentService(make_uow(), scheduler, clock=clock)

    return _make


@pytest.fixture
def svc(make_service):
    return make_service()


def _add(obj):
    db = SessionLocal()
    try:
        db.add(obj)
        db.commit()
        return obj.id
    finally:
        db.close()


@pytest.fixture
def add_staff():
    def _add_staff(username="mike", role=Role.STAFF, active=True):
        return _add(User(username=username, role=role, active=active))

    return _add_staff


@pytest.fixture
def staff_id(add_staff):
    return add_staff("mike")


@pytest.fixture
def other_staff_id(add_staff):
    return add_staff("sara")


@pytest.fixture
def add_detail_service():
    def _add_detail_service(
        name="Full detail",
        min_minutes=60,
        default_minutes=120,
        max_minutes=240,
        base_price=Decimal("149.00"),
        active=True,
    ):
        return _add(
            DetailService(
                name=name,
                min_minutes=min_minutes,
                default_minutes=default_minutes,
                max_minutes=max_minutes,
                base_price=base_price,
                active=active,
            )
        )

    return _add_detail_service


@pytest.fixture
def service_id(add_detail_service):
    return add_detail_service()


def at(hour: int, minute: int = 0, days: int = 1) -> datetime:
    """Aware UTC datetime `days` after NOW's date at hour:minute"""
    base = NOW.replace(hour=0, minute=0) + timedelta(days=days)
    return base.replace(hour=hour, minute=minute)
