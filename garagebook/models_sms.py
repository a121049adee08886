"""
SMS Models
Delivery log for appointment notifications
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Integer, String, Text

from .database import Base, UTCDateTime, utcnow


class NotificationType(str, enum.Enum):
    CONFIRM = "CONFIRM"
    UPDATE = "UPDATE"
    CANCEL = "CANCEL"
    REMINDER = "REMINDER"


class SmsStatus(str, enum.Enum):
    QUEUED = "QUEUED"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"  # SMS disabled when the event fired


class SmsLog(Base):
    """Track SMS messages sent for appointment notifications"""

    __tablename__ = "sms_logs"

    id = Column(Integer, primary_key=True, index=True)

    # One row per notification event; a second delivery of the same event is skipped
    event_id = Column(String(36), unique=True, nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    type = Column(Enum(NotificationType, native_enum=False, length=20), nullable=False)

    # Message details
    to_phone = Column(String(30), nullable=False)
    message_body = Column(Text, nullable=False)

    # Provider response
    status = Column(
        Enum(SmsStatus, native_enum=False, length=20),
        nullable=False,
        default=SmsStatus.QUEUED,
        index=True,
    )
    provider_message_id = Column(String(120), nullable=True)
    error_message = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False, index=True)
    sent_at = Column(UTCDateTime, nullable=True)
    expires_at = Column(UTCDateTime, nullable=True)  # Retention cut-off
