"""
SMS Delivery
Turns notification events into SMS log rows and provider calls.

Each event is delivered at most once: the SmsLog row is keyed by event_id and
a second delivery of the same event is skipped. Failed sends stay in the log
and are retried by the background worker.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import SMS_ENABLED, SMS_LOG_RETENTION_DAYS, SMS_MAX_ATTEMPTS
from ..database import SessionLocal, utcnow
from ..models_sms import SmsLog, SmsStatus
from .notification_scheduler import NotificationEvent
from .sms_templates import SmsTemplateRenderer
from .twilio_service import TwilioTransport

logger = logging.getLogger(__name__)


class SmsDelivery:
    """Event handler used by the notification dispatchers"""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        transport: Optional[TwilioTransport] = None,
        renderer: Optional[SmsTemplateRenderer] = None,
        enabled: bool = SMS_ENABLED,
        retention_days: int = SMS_LOG_RETENTION_DAYS,
    ):
        self.session_factory = session_factory
        self.transport = transport or TwilioTransport()
        self.renderer = renderer or SmsTemplateRenderer()
        self.enabled = enabled
        self.retention_days = retention_days

    def __call__(self, event: NotificationEvent) -> Optional[SmsStatus]:
        return self.deliver(event)

    def deliver(self, event: NotificationEvent) -> Optional[SmsStatus]:
        """
        Send the SMS for one event.

        While SMS is disabled the event is still logged as SKIPPED, so reminder
        dedup holds once sending is switched on.

        Returns:
            Final log status, or None when nothing was sent (disabled,
            no phone number, or event already delivered)
        """
        if not event.phone:
            logger.warning(f"⚠️ No phone number for appointment {event.appointment_id}, SMS skipped")
            return None

        db = self.session_factory()
        try:
            already_logged = (
                db.query(SmsLog.id).filter(SmsLog.event_id == event.event_id).first()
            )
            if already_logged:
                logger.info(f"SMS for event {event.event_id} already handled, skipping")
                return None

            body = self.renderer.render(event)
            log = SmsLog(
                event_id=event.event_id,
                appointment_id=event.appointment_id,
                type=event.type,
                to_phone=event.phone,
                message_body=body,
                status=SmsStatus.QUEUED if self.enabled else SmsStatus.SKIPPED,
                attempts=0,
                expires_at=utcnow() + timedelta(days=self.retention_days),
            )
            db.add(log)
            try:
                db.flush()
                log_id = log.id
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info(f"SMS for event {event.event_id} logged concurrently, skipping")
                return None

            if not self.enabled:
                logger.info(
                    f"SMS disabled, logged {event.type.value} for appointment "
                    f"{event.appointment_id} as skipped"
                )
                return None

            return self._send(db, log_id, event.phone, body)
        finally:
            db.close()

    def _send(self, db: Session, log_id: int, to_phone: str, body: str) -> SmsStatus:
        # Provider call happens outside any open transaction
        provider_id = None
        error = None
        try:
            provider_id = self.transport.send(to_phone, body)
        except Exception as e:
            error = str(e) or type(e).__name__

        log = db.query(SmsLog).filter(SmsLog.id == log_id).first()
        log.attempts = (log.attempts or 0) + 1
        if error is None:
            log.status = SmsStatus.SENT
            log.provider_message_id = provider_id
            log.error_message = None
            log.sent_at = utcnow()
            logger.info(f"✅ SMS {log_id} sent to {to_phone} (SID: {provider_id})")
        else:
            log.status = SmsStatus.FAILED
            log.error_message = error
            logger.warning(f"❌ SMS {log_id} to {to_phone} failed (attempt {log.attempts}): {error}")
        status = log.status
        db.commit()
        return status

    def retry_failed(self, max_attempts: int = SMS_MAX_ATTEMPTS) -> int:
        """Resend FAILED logs that still have attempts left. Returns how many were retried."""
        if not self.enabled:
            return 0

        db = self.session_factory()
        try:
            pending = [
                (log.id, log.to_phone, log.message_body)
                for log in db.query(SmsLog)
                .filter(SmsLog.status == SmsStatus.FAILED, SmsLog.attempts < max_attempts)
                .order_by(SmsLog.created_at.asc(), SmsLog.id.asc())
                .all()
            ]
            db.commit()

            for log_id, to_phone, body in pending:
                self._send(db, log_id, to_phone, body)

            if pending:
                logger.info(f"🔁 Retried {len(pending)} failed SMS")
            return len(pending)
        finally:
            db.close()

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete logs past their retention date"""
        now = now or utcnow()
        db = self.session_factory()
        try:
            deleted = (
                db.query(SmsLog)
                .filter(SmsLog.expires_at.isnot(None), SmsLog.expires_at < now)
                .delete(synchronize_session=False)
            )
            db.commit()
            if deleted:
                logger.info(f"🧹 Purged {deleted} expired SMS log(s)")
            return deleted
        finally:
            db.close()
