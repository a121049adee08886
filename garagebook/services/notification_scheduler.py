"""
Notification Scheduler
Defers appointment notifications until the transaction that caused them has
committed, then hands them to a dispatcher running outside the booking locks.
"""

import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel, Field

from ..config import SMS_DISPATCH_WORKERS
from ..models import Appointment, Customer
from ..models_sms import NotificationType
from ..unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class NotificationEvent(BaseModel):
    """Everything needed to format and send one notification, detached from the session"""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    appointment_id: int
    type: NotificationType
    phone: Optional[str] = None
    customer_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    car_brand: str
    car_model: Optional[str] = None

    @classmethod
    def for_appointment(
        cls, appointment: Appointment, customer: Customer, notification_type: NotificationType
    ) -> "NotificationEvent":
        return cls(
            appointment_id=appointment.id,
            type=notification_type,
            phone=customer.phone,
            customer_name=customer.display_name,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            car_brand=appointment.car_brand,
            car_model=appointment.car_model,
        )


EventHandler = Callable[[NotificationEvent], object]


class InlineDispatcher:
    """Runs the handler on the calling thread. Used by background jobs and tests."""

    def __init__(self, handler: EventHandler):
        self.handler = handler

    def dispatch(self, event: NotificationEvent) -> None:
        try:
            self.handler(event)
        except Exception as e:
            logger.error(
                f"❌ Notification {event.type.value} for appointment {event.appointment_id} failed: {e}",
                exc_info=True,
            )


class ThreadPoolDispatcher:
    """Runs the handler on a worker thread so slow providers never block a request"""

    def __init__(self, handler: EventHandler, max_workers: int = SMS_DISPATCH_WORKERS):
        self.handler = handler
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notification-dispatch"
        )

    def dispatch(self, event: NotificationEvent) -> Future:
        return self._executor.submit(self._run, event)

    def _run(self, event: NotificationEvent) -> None:
        try:
            self.handler(event)
        except Exception as e:
            logger.error(
                f"❌ Notification {event.type.value} for appointment {event.appointment_id} failed: {e}",
                exc_info=True,
            )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class NotificationScheduler:
    """Registers one notification per committed state transition"""

    def __init__(self, dispatcher):
        self.dispatcher = dispatcher

    def schedule(
        self,
        uow: Optional[UnitOfWork],
        appointment: Appointment,
        customer: Customer,
        notification_type: NotificationType,
    ) -> NotificationEvent:
        """
        Build the event now (while the session is open) and dispatch it after
        uow commits. Without a unit of work the event is dispatched immediately.
        """
        event = NotificationEvent.for_appointment(appointment, customer, notification_type)

        if uow is None:
            logger.debug(
                f"No transaction, dispatching {notification_type.value} for appointment {appointment.id}"
            )
            self.dispatcher.dispatch(event)
            return event

        uow.after_commit(lambda: self._dispatch_committed(event))
        logger.debug(
            f"📨 {notification_type.value} for appointment {appointment.id} queued until commit"
        )
        return event

    def _dispatch_committed(self, event: NotificationEvent) -> None:
        logger.info(
            f"📱 Dispatching {event.type.value} notification for appointment {event.appointment_id}"
        )
        self.dispatcher.dispatch(event)
