"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class CustomerSummary(BaseModel):
    id: int
    phone: str
    name: Optional[str] = None


class AppointmentResponse(BaseModel):
    """Snapshot of an appointment returned by every booking operation"""

    id: int
    customer: CustomerSummary
    staffId: Optional[int] = None
    serviceId: Optional[int] = None
    carBrand: str
    carModel: Optional[str] = None
    description: Optional[str] = None
    startTime: datetime
    endTime: datetime
    durationMinutes: int
    price: Optional[Decimal] = None
    status: str
    cancelReason: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class CreateRequestedAppointmentRequest(BaseModel):
    """Public self-service booking request"""

    customerPhone: str
    customerName: Optional[str] = None
    serviceId: int
    carBrand: str = Field(..., max_length=80)
    carModel: Optional[str] = Field(None, max_length=80)
    description: Optional[str] = None
    startTime: datetime


class CreateConfirmedAppointmentRequest(BaseModel):
    """Staff-created booking, confirmed immediately"""

    customerPhone: str
    customerName: Optional[str] = None
    assignedStaffId: int
    serviceId: Optional[int] = None
    carBrand: str = Field(..., max_length=80)
    carModel: Optional[str] = Field(None, max_length=80)
    description: Optional[str] = None
    startTime: datetime
    durationMinutes: int
    price: Optional[Decimal] = None


class ConfirmAppointmentRequest(BaseModel):
    assignedStaffId: int
    durationMinutes: int
    price: Optional[Decimal] = None


class ReassignAppointmentRequest(BaseModel):
    assignedStaffId: int


class RescheduleAppointmentRequest(BaseModel):
    newStartTime: datetime


class UpdateAppointmentRequest(BaseModel):
    price: Optional[Decimal] = None
    description: Optional[str] = None
    carBrand: Optional[str] = Field(None, max_length=80)
    carModel: Optional[str] = Field(None, max_length=80)


class CancelAppointmentRequest(BaseModel):
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v):
        if v is not None:
            v = v.strip()
        return v or None
