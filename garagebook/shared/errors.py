"""Booking error taxonomy shared by services and the HTTP layer"""

from datetime import datetime
from typing import Any, Optional


class BookingError(Exception):
    """Base class for all domain errors"""

    status_code = 400
    code = "booking_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"code": self.code, "detail": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(BookingError):
    """Malformed input. The caller must correct it; never retried automatically."""

    status_code = 400
    code = "validation_error"


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"

    @classmethod
    def of(cls, entity: str, entity_id) -> "NotFoundError":
        return cls(f"{entity} not found: {entity_id}", {"entity": entity, "id": entity_id})


class ConflictError(BookingError):
    """Overlapping booking for the target staff member and time window"""

    status_code = 409
    code = "appointment_overlap"

    def __init__(self, appointment_id: int, start_time: datetime):
        super().__init__(
            f"Time slot overlaps appointment {appointment_id} starting at {start_time.isoformat()}",
            {"conflictingAppointmentId": appointment_id, "conflictingStartTime": start_time.isoformat()},
        )
        self.appointment_id = appointment_id
        self.start_time = start_time


class InvalidTransitionError(BookingError):
    status_code = 409
    code = "invalid_transition"

    def __init__(self, message: str, current_status=None, target_status=None):
        details = {}
        if current_status is not None:
            details["currentStatus"] = getattr(current_status, "value", current_status)
        if target_status is not None:
            details["targetStatus"] = getattr(target_status, "value", target_status)
        super().__init__(message, details)
        self.current_status = current_status
        self.target_status = target_status


class PrematureNoShowError(InvalidTransitionError):
    code = "premature_noshow"


class TransientStoreError(BookingError):
    """Lock timeout, serialization failure or stale version. Retry the whole operation."""

    status_code = 503
    code = "transient_store_error"
