"""Customer domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..appointments.schemas import AppointmentResponse


class CustomerResponse(BaseModel):
    """Schema for customer response"""

    id: int
    phone: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None


class CustomerHistoryResponse(BaseModel):
    customer: CustomerResponse
    appointments: list[AppointmentResponse]
    completedCount: int
    noShowCount: int
