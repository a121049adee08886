"""Appointment repository - Database operations and write locking for appointments"""

import logging
import threading
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query, Session

from ...config import APPOINTMENT_LOCK_TIMEOUT
from ...models import Appointment, AppointmentStatus, User
from ...shared.errors import TransientStoreError
from ...unit_of_work import UnitOfWork, translate_store_error

logger = logging.getLogger(__name__)

# Backends without row locks serialize every appointment write on this mutex
_WRITE_MUTEX = threading.Lock()


def _supports_row_locks(db: Session) -> bool:
    return db.get_bind().dialect.name != "sqlite"


class AppointmentRepository:
    """Repository for appointment database operations"""

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @staticmethod
    def begin_write(uow: UnitOfWork) -> None:
        """Enter the write section; a no-op where the database provides row locks"""
        if _supports_row_locks(uow.session) or uow.holds(_WRITE_MUTEX):
            return
        if not _WRITE_MUTEX.acquire(timeout=APPOINTMENT_LOCK_TIMEOUT):
            logger.warning(f"⏱️ Appointment write lock timeout after {APPOINTMENT_LOCK_TIMEOUT}s")
            raise TransientStoreError("Timed out waiting for the appointment write lock")
        uow.hold(_WRITE_MUTEX)

    @staticmethod
    def _set_lock_timeout(db: Session) -> None:
        if db.get_bind().dialect.name == "postgresql":
            timeout_ms = int(APPOINTMENT_LOCK_TIMEOUT * 1000)
            db.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))

    @staticmethod
    def lock_staff_calendar(uow: UnitOfWork, staff_id: int) -> None:
        """
        Serialize writers targeting the same staff member.

        The staff row is the lock anchor: the hazard is between different
        appointment rows that overlap in time, so locking single appointment
        rows is not enough.
        """
        AppointmentRepository.begin_write(uow)
        if not _supports_row_locks(uow.session):
            return
        try:
            AppointmentRepository._set_lock_timeout(uow.session)
            uow.session.query(User.id).filter(User.id == staff_id).with_for_update().first()
        except OperationalError as e:
            raise translate_store_error(e) from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_for_update(uow: UnitOfWork, appointment_id: int) -> Optional[Appointment]:
        """Load an appointment for mutation, locking its row until commit"""
        AppointmentRepository.begin_write(uow)
        try:
            AppointmentRepository._set_lock_timeout(uow.session)
            return (
                uow.session.query(Appointment)
                .filter(Appointment.id == appointment_id)
                .with_for_update()
                .first()
            )
        except OperationalError as e:
            raise translate_store_error(e) from e

    @staticmethod
    def overlap_query(
        db: Session,
        staff_id: int,
        statuses: Iterable[AppointmentStatus],
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> Query:
        # Plain read. Lock order is own appointment row, then staff row; other
        # appointments are never locked
        query = db.query(Appointment).filter(
            Appointment.assigned_staff_id == staff_id,
            Appointment.status.in_(list(statuses)),
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.start_time.asc(), Appointment.id.asc())

    @staticmethod
    def find_conflicting(
        uow: UnitOfWork,
        staff_id: int,
        statuses: Iterable[AppointmentStatus],
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> list[Appointment]:
        """
        Appointments of staff_id in one of statuses whose window intersects
        [start_time, end_time), earliest first. Call after lock_staff_calendar.
        """
        query = AppointmentRepository.overlap_query(
            uow.session, staff_id, statuses, start_time, end_time, exclude_id
        )
        try:
            return query.all()
        except OperationalError as e:
            raise translate_store_error(e) from e

    @staticmethod
    def list_between(db: Session, start: datetime, end: datetime) -> list[Appointment]:
        """Appointments starting in [start, end)"""
        return (
            db.query(Appointment)
            .filter(Appointment.start_time >= start, Appointment.start_time < end)
            .order_by(Appointment.start_time.asc(), Appointment.id.asc())
            .all()
        )

    @staticmethod
    def list_by_status(db: Session, status: AppointmentStatus) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.status == status)
            .order_by(Appointment.created_at.asc(), Appointment.id.asc())
            .all()
        )

    @staticmethod
    def list_for_customer(db: Session, customer_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.customer_id == customer_id)
            .order_by(Appointment.start_time.desc())
            .all()
        )

    @staticmethod
    def list_for_reminder(db: Session, window_start: datetime, window_end: datetime) -> list[Appointment]:
        """Confirmed appointments starting in [window_start, window_end)"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.status == AppointmentStatus.CONFIRMED,
                Appointment.start_time >= window_start,
                Appointment.start_time < window_end,
            )
            .order_by(Appointment.start_time.asc())
            .all()
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def save(uow: UnitOfWork, appointment: Appointment) -> Appointment:
        """Stage the appointment and flush so ids and defaults are populated"""
        uow.session.add(appointment)
        uow.flush()
        return appointment
