"""Appointment → response snapshot"""

from ...models import Appointment, Customer
from .schemas import AppointmentResponse, CustomerSummary


def to_response(appointment: Appointment, customer: Customer) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        customer=CustomerSummary(
            id=customer.id,
            phone=customer.phone,
            name=customer.display_name,
        ),
        staffId=appointment.assigned_staff_id,
        serviceId=appointment.service_id,
        carBrand=appointment.car_brand,
        carModel=appointment.car_model,
        description=appointment.description,
        startTime=appointment.start_time,
        endTime=appointment.end_time,
        durationMinutes=appointment.duration_minutes,
        price=appointment.price,
        status=appointment.status.value,
        cancelReason=appointment.cancel_reason,
        createdAt=appointment.created_at,
        updatedAt=appointment.updated_at,
    )
