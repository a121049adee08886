"""Reminder SMS for confirmed appointments starting soon"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..config import REMINDER_HOURS_BEFORE, REMINDER_WINDOW_MINUTES
from ..database import utcnow
from ..domain.appointments.repository import AppointmentRepository
from ..domain.customers.repository import CustomerRepository
from ..models_sms import NotificationType, SmsLog
from .notification_scheduler import NotificationScheduler

logger = logging.getLogger(__name__)


def queue_due_reminders(
    db: Session,
    scheduler: NotificationScheduler,
    now: Optional[datetime] = None,
    hours_before: int = REMINDER_HOURS_BEFORE,
    window_minutes: int = REMINDER_WINDOW_MINUTES,
) -> int:
    """
    Schedule a REMINDER for each confirmed appointment starting in
    [now + hours_before, now + hours_before + window_minutes).

    Appointments that already have a reminder in the SMS log are skipped.
    Returns the number of reminders scheduled.
    """
    now = now or utcnow()
    window_start = now + timedelta(hours=hours_before)
    window_end = window_start + timedelta(minutes=window_minutes)

    appointments = AppointmentRepository.list_for_reminder(db, window_start, window_end)
    if not appointments:
        return 0

    reminded = {
        row.appointment_id
        for row in db.query(SmsLog.appointment_id).filter(
            SmsLog.type == NotificationType.REMINDER,
            SmsLog.appointment_id.in_([a.id for a in appointments]),
        )
    }

    due = []
    for appointment in appointments:
        if appointment.id in reminded:
            continue
        customer = CustomerRepository.get(db, appointment.customer_id)
        if not customer or not customer.active:
            continue
        due.append((appointment, customer))

    # Delivery writes the SMS log from its own session; end the read first
    db.expunge_all()
    db.commit()

    for appointment, customer in due:
        scheduler.schedule(None, appointment, customer, NotificationType.REMINDER)
    count = len(due)

    logger.info(
        f"⏰ Scheduled {count} reminder(s) for appointments starting "
        f"{window_start.isoformat()} - {window_end.isoformat()}"
    )
    return count
