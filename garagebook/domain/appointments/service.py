"""Appointment service - Booking lifecycle operations

Every mutating operation is one unit of work: the write lock is taken before
anything is read, the response snapshot is built before commit, and the
notification is only handed to the dispatcher once the commit succeeded.
"""

import logging
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ...config import GARAGE_TIMEZONE
from ...database import utcnow
from ...models import Appointment, AppointmentStatus, Customer
from ...models_sms import NotificationType
from ...services.notification_scheduler import NotificationScheduler
from ...shared.errors import (
    InvalidTransitionError,
    NotFoundError,
    PrematureNoShowError,
    ValidationError,
)
from ...shared.validators import (
    require_non_blank,
    trim_or_none,
    validate_duration,
    validate_future_start,
    validate_price,
    validate_window,
)
from ...unit_of_work import UnitOfWork
from ..catalog.repository import DetailServiceRepository
from ..customers.repository import CustomerRepository
from ..customers.resolver import CustomerResolver
from ..staff.service import StaffDirectory
from .conflicts import ConflictChecker, OverlapCandidate
from .lifecycle import ensure_modifiable, ensure_transition
from .mapper import to_response
from .repository import AppointmentRepository
from .schemas import AppointmentResponse

logger = logging.getLogger(__name__)


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(
        self,
        uow: UnitOfWork,
        scheduler: NotificationScheduler,
        clock: Callable[[], datetime] = utcnow,
        country: Optional[str] = None,
    ):
        self.uow = uow
        self.db = uow.session
        self.scheduler = scheduler
        self.clock = clock
        self.repo = AppointmentRepository()
        self.customers = CustomerRepository()
        self.services = DetailServiceRepository()
        self.conflicts = ConflictChecker(self.repo)
        self.staff = StaffDirectory(uow)
        self.resolver = CustomerResolver(uow, country)

    # ============================================================================
    # CREATE
    # ============================================================================

    def create_requested(
        self,
        phone: str,
        service_id: int,
        car_brand: str,
        start_time: datetime,
        customer_name: Optional[str] = None,
        car_model: Optional[str] = None,
        description: Optional[str] = None,
    ) -> AppointmentResponse:
        """
        Public booking request. No staff, no conflict check, no notification:
        the request waits for staff confirmation.
        """
        validate_future_start(start_time, self.clock())
        car_brand = require_non_blank(car_brand, "Car brand")

        with self.uow.transaction():
            self.repo.begin_write(self.uow)

            service = self.services.get(self.db, service_id)
            if not service:
                raise NotFoundError.of("Service", service_id)
            if not service.active:
                raise ValidationError(f"Service {service_id} is not available")

            customer = self.resolver.resolve_or_create(phone, customer_name)

            appointment = Appointment(
                customer_id=customer.id,
                service_id=service.id,
                car_brand=car_brand,
                car_model=trim_or_none(car_model),
                description=trim_or_none(description),
                start_time=start_time,
                end_time=start_time + timedelta(minutes=service.default_minutes),
                duration_minutes=service.default_minutes,
                price=service.base_price,
                status=AppointmentStatus.REQUESTED,
            )
            self.repo.save(self.uow, appointment)
            response = to_response(appointment, customer)

        logger.info(
            f"📥 Created REQUESTED appointment {response.id} at {response.startTime.isoformat()} "
            f"for customer {response.customer.id}"
        )
        return response

    def create_confirmed(
        self,
        phone: str,
        staff_id: int,
        car_brand: str,
        start_time: datetime,
        duration_minutes: int,
        customer_name: Optional[str] = None,
        service_id: Optional[int] = None,
        car_model: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[Decimal] = None,
    ) -> AppointmentResponse:
        """Staff-created booking, confirmed immediately"""
        validate_future_start(start_time, self.clock())
        validate_duration(duration_minutes)
        validate_price(price)
        car_brand = require_non_blank(car_brand, "Car brand")
        end_time = start_time + timedelta(minutes=duration_minutes)

        with self.uow.transaction():
            self.repo.lock_staff_calendar(self.uow, staff_id)
            self.staff.find_active_staff(staff_id)

            if service_id is not None:
                service = self.services.get(self.db, service_id)
                if not service:
                    raise NotFoundError.of("Service", service_id)

            self.conflicts.ensure_no_conflict(
                self.uow, OverlapCandidate(staff_id, start_time, end_time)
            )

            customer = self.resolver.resolve_or_create(phone, customer_name)

            appointment = Appointment(
                customer_id=customer.id,
                service_id=service_id,
                assigned_staff_id=staff_id,
                car_brand=car_brand,
                car_model=trim_or_none(car_model),
                description=trim_or_none(description),
                start_time=start_time,
                end_time=end_time,
                duration_minutes=duration_minutes,
                price=price,
                status=AppointmentStatus.CONFIRMED,
            )
            self.repo.save(self.uow, appointment)
            self.scheduler.schedule(self.uow, appointment, customer, NotificationType.CONFIRM)
            response = to_response(appointment, customer)

        logger.info(
            f"✅ Created CONFIRMED appointment {response.id} for staff {staff_id} "
            f"at {response.startTime.isoformat()}"
        )
        return response

    # ============================================================================
    # TRANSITIONS
    # ============================================================================

    def confirm(
        self,
        appointment_id: int,
        staff_id: int,
        duration_minutes: int,
        price: Optional[Decimal] = None,
    ) -> AppointmentResponse:
        """REQUESTED → CONFIRMED with a staff member, a duration and optionally a price"""
        validate_duration(duration_minutes)
        validate_price(price)

        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            if appointment.status != AppointmentStatus.REQUESTED:
                ensure_modifiable(appointment.status)
                raise InvalidTransitionError(
                    f"Only REQUESTED appointments can be confirmed (status: {appointment.status.value})",
                    appointment.status,
                    AppointmentStatus.CONFIRMED,
                )
            ensure_transition(appointment.status, AppointmentStatus.CONFIRMED)

            self.repo.lock_staff_calendar(self.uow, staff_id)
            self.staff.find_active_staff(staff_id)

            end_time = appointment.start_time + timedelta(minutes=duration_minutes)
            self.conflicts.ensure_no_conflict(
                self.uow,
                OverlapCandidate(staff_id, appointment.start_time, end_time, appointment.id),
            )

            appointment.assigned_staff_id = staff_id
            appointment.end_time = end_time
            appointment.duration_minutes = duration_minutes
            if price is not None:
                appointment.price = price
            appointment.status = AppointmentStatus.CONFIRMED
            self.repo.save(self.uow, appointment)

            customer = self._customer_of(appointment)
            self.scheduler.schedule(self.uow, appointment, customer, NotificationType.CONFIRM)
            response = to_response(appointment, customer)

        logger.info(f"✅ Confirmed appointment {appointment_id} for staff {staff_id}")
        return response

    def reassign(self, appointment_id: int, staff_id: int) -> AppointmentResponse:
        """Move a confirmed appointment to another staff member, same window"""
        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            if appointment.status != AppointmentStatus.CONFIRMED:
                ensure_modifiable(appointment.status)
                raise InvalidTransitionError(
                    f"Only CONFIRMED appointments can be reassigned (status: {appointment.status.value})",
                    appointment.status,
                )

            customer = self._customer_of(appointment)
            if appointment.assigned_staff_id == staff_id:
                return to_response(appointment, customer)

            self.repo.lock_staff_calendar(self.uow, staff_id)
            self.staff.find_active_staff(staff_id)
            self.conflicts.ensure_no_conflict(
                self.uow,
                OverlapCandidate(
                    staff_id, appointment.start_time, appointment.end_time, appointment.id
                ),
            )

            previous_staff_id = appointment.assigned_staff_id
            appointment.assigned_staff_id = staff_id
            self.repo.save(self.uow, appointment)
            self.scheduler.schedule(self.uow, appointment, customer, NotificationType.UPDATE)
            response = to_response(appointment, customer)

        logger.info(
            f"🔁 Reassigned appointment {appointment_id} from staff {previous_staff_id} to {staff_id}"
        )
        return response

    def reschedule(self, appointment_id: int, new_start_time: datetime) -> AppointmentResponse:
        """
        Move a confirmed appointment to a new start time, keeping its duration.

        The appointment passes through RESCHEDULED and is stored CONFIRMED again.
        """
        validate_future_start(new_start_time, self.clock())

        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            ensure_transition(appointment.status, AppointmentStatus.RESCHEDULED)
            ensure_transition(AppointmentStatus.RESCHEDULED, AppointmentStatus.CONFIRMED)

            duration = appointment.end_time - appointment.start_time
            new_end_time = new_start_time + duration

            staff_id = appointment.assigned_staff_id
            if staff_id is not None:
                self.repo.lock_staff_calendar(self.uow, staff_id)
                self.conflicts.ensure_no_conflict(
                    self.uow,
                    OverlapCandidate(staff_id, new_start_time, new_end_time, appointment.id),
                )

            appointment.start_time = new_start_time
            appointment.end_time = new_end_time
            appointment.duration_minutes = int(duration.total_seconds() // 60)
            appointment.status = AppointmentStatus.CONFIRMED
            self.repo.save(self.uow, appointment)

            customer = self._customer_of(appointment)
            self.scheduler.schedule(self.uow, appointment, customer, NotificationType.UPDATE)
            response = to_response(appointment, customer)

        logger.info(f"🔁 Rescheduled appointment {appointment_id} to {new_start_time.isoformat()}")
        return response

    def update_details(
        self,
        appointment_id: int,
        price: Optional[Decimal] = None,
        description: Optional[str] = None,
        car_brand: Optional[str] = None,
        car_model: Optional[str] = None,
    ) -> AppointmentResponse:
        """Price, description and car info only. Use reschedule to change the window."""
        validate_price(price)

        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            ensure_modifiable(appointment.status)

            if price is not None:
                appointment.price = price
            if description is not None:
                appointment.description = trim_or_none(description)
            if car_brand is not None:
                appointment.car_brand = require_non_blank(car_brand, "Car brand")
            if car_model is not None:
                appointment.car_model = trim_or_none(car_model)

            self.repo.save(self.uow, appointment)
            response = to_response(appointment, self._customer_of(appointment))

        logger.info(f"Updated appointment {appointment_id}")
        return response

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> AppointmentResponse:
        """Cancel an appointment. Cancelling twice is a no-op."""
        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            customer = self._customer_of(appointment)

            if appointment.status == AppointmentStatus.CANCELED:
                logger.info(f"Appointment {appointment_id} already canceled")
                return to_response(appointment, customer)

            ensure_transition(appointment.status, AppointmentStatus.CANCELED)

            appointment.status = AppointmentStatus.CANCELED
            appointment.cancel_reason = trim_or_none(reason)
            self.repo.save(self.uow, appointment)
            self.scheduler.schedule(self.uow, appointment, customer, NotificationType.CANCEL)
            response = to_response(appointment, customer)

        logger.info(f"❌ Canceled appointment {appointment_id}")
        return response

    def start(self, appointment_id: int) -> AppointmentResponse:
        """CONFIRMED → IN_PROGRESS"""
        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            ensure_transition(appointment.status, AppointmentStatus.IN_PROGRESS)

            if self.clock() < appointment.start_time:
                logger.warning(
                    f"⚠️ Starting appointment {appointment_id} before its start time "
                    f"{appointment.start_time.isoformat()}"
                )

            appointment.status = AppointmentStatus.IN_PROGRESS
            self.repo.save(self.uow, appointment)
            response = to_response(appointment, self._customer_of(appointment))

        logger.info(f"🔧 Started appointment {appointment_id}")
        return response

    def complete(self, appointment_id: int) -> AppointmentResponse:
        """IN_PROGRESS → COMPLETED. Completing twice is a no-op."""
        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            customer = self._customer_of(appointment)

            if appointment.status == AppointmentStatus.COMPLETED:
                return to_response(appointment, customer)

            ensure_transition(appointment.status, AppointmentStatus.COMPLETED)
            if appointment.price is None:
                logger.warning(f"⚠️ Completing appointment {appointment_id} without a price")

            appointment.status = AppointmentStatus.COMPLETED
            self.repo.save(self.uow, appointment)
            response = to_response(appointment, customer)

        logger.info(f"🏁 Completed appointment {appointment_id} (price: {response.price})")
        return response

    def mark_no_show(self, appointment_id: int) -> AppointmentResponse:
        """CONFIRMED → NOSHOW, only once the start time has passed"""
        with self.uow.transaction():
            appointment = self._load_for_update(appointment_id)
            customer = self._customer_of(appointment)

            if appointment.status == AppointmentStatus.NOSHOW:
                return to_response(appointment, customer)

            ensure_transition(appointment.status, AppointmentStatus.NOSHOW)
            if self.clock() <= appointment.start_time:
                raise PrematureNoShowError(
                    f"Appointment {appointment_id} has not started yet "
                    f"(start: {appointment.start_time.isoformat()})",
                    appointment.status,
                    AppointmentStatus.NOSHOW,
                )

            appointment.status = AppointmentStatus.NOSHOW
            self.repo.save(self.uow, appointment)
            response = to_response(appointment, customer)

        logger.info(f"🚷 Marked appointment {appointment_id} as no-show")
        return response

    # ============================================================================
    # QUERIES
    # ============================================================================

    # Reads run in their own short transaction so no snapshot is held afterwards

    def get_by_id(self, appointment_id: int) -> AppointmentResponse:
        with self.uow.transaction():
            appointment = self.repo.get(self.db, appointment_id)
            if not appointment:
                raise NotFoundError.of("Appointment", appointment_id)
            return to_response(appointment, self._customer_of(appointment))

    def list_between(self, start: datetime, end: datetime) -> list[AppointmentResponse]:
        """Appointments starting in [start, end), earliest first"""
        if start is None or end is None:
            raise ValidationError("Both start and end are required")
        if start.tzinfo is None or end.tzinfo is None:
            raise ValidationError("Range bounds must include a timezone")
        validate_window(start, end)
        with self.uow.transaction():
            return self._snapshots(self.repo.list_between(self.db, start, end))

    def list_today(self) -> list[AppointmentResponse]:
        """Appointments starting today in the garage's timezone"""
        zone = ZoneInfo(GARAGE_TIMEZONE)
        today = self.clock().astimezone(zone).date()
        day_start = datetime.combine(today, time.min, tzinfo=zone)
        day_end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=zone)
        with self.uow.transaction():
            return self._snapshots(self.repo.list_between(self.db, day_start, day_end))

    def list_pending_confirmation(self) -> list[AppointmentResponse]:
        """REQUESTED appointments, oldest request first"""
        with self.uow.transaction():
            return self._snapshots(
                self.repo.list_by_status(self.db, AppointmentStatus.REQUESTED)
            )

    def list_for_customer(self, customer_id: int) -> list[AppointmentResponse]:
        """A customer's appointments, newest first"""
        with self.uow.transaction():
            customer = self.customers.get(self.db, customer_id)
            if not customer:
                raise NotFoundError.of("Customer", customer_id)
            return [
                to_response(appointment, customer)
                for appointment in self.repo.list_for_customer(self.db, customer_id)
            ]

    # ============================================================================
    # HELPERS
    # ============================================================================

    def _load_for_update(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_for_update(self.uow, appointment_id)
        if not appointment:
            raise NotFoundError.of("Appointment", appointment_id)
        return appointment

    def _customer_of(self, appointment: Appointment) -> Customer:
        customer = self.customers.get(self.db, appointment.customer_id)
        if not customer:
            raise NotFoundError.of("Customer", appointment.customer_id)
        return customer

    def _snapshots(self, appointments: list[Appointment]) -> list[AppointmentResponse]:
        customers = self.customers.get_many(self.db, (a.customer_id for a in appointments))
        return [to_response(a, customers[a.customer_id]) for a in appointments]
