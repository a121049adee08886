"""Appointment router - FastAPI endpoints for booking operations"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from ...services.notification_scheduler import NotificationScheduler
from ...unit_of_work import UnitOfWork, get_uow
from .schemas import (
    AppointmentResponse,
    CancelAppointmentRequest,
    ConfirmAppointmentRequest,
    CreateConfirmedAppointmentRequest,
    CreateRequestedAppointmentRequest,
    ReassignAppointmentRequest,
    RescheduleAppointmentRequest,
    UpdateAppointmentRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_notification_scheduler(request: Request) -> NotificationScheduler:
    """Scheduler created in the app lifespan"""
    return request.app.state.notification_scheduler


def get_appointment_service(
    uow: UnitOfWork = Depends(get_uow),
    scheduler: NotificationScheduler = Depends(get_notification_scheduler),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(uow, scheduler)


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("/requests", response_model=AppointmentResponse, status_code=201)
def request_appointment(
    data: CreateRequestedAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Self-service booking request, waits for staff confirmation"""
    return service.create_requested(
        phone=data.customerPhone,
        service_id=data.serviceId,
        car_brand=data.carBrand,
        start_time=data.startTime,
        customer_name=data.customerName,
        car_model=data.carModel,
        description=data.description,
    )


# ============================================================================
# STAFF
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=201)
def create_confirmed_appointment(
    data: CreateConfirmedAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.create_confirmed(
        phone=data.customerPhone,
        staff_id=data.assignedStaffId,
        car_brand=data.carBrand,
        start_time=data.startTime,
        duration_minutes=data.durationMinutes,
        customer_name=data.customerName,
        service_id=data.serviceId,
        car_model=data.carModel,
        description=data.description,
        price=data.price,
    )


@router.get("", response_model=list[AppointmentResponse])
def list_appointments(
    start: datetime = Query(...),
    end: datetime = Query(...),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments starting in [start, end)"""
    return service.list_between(start, end)


@router.get("/today", response_model=list[AppointmentResponse])
def list_todays_appointments(service: AppointmentService = Depends(get_appointment_service)):
    return service.list_today()


@router.get("/pending", response_model=list[AppointmentResponse])
def list_pending_appointments(
    service: AppointmentService = Depends(get_appointment_service),
):
    """REQUESTED appointments waiting for confirmation, oldest first"""
    return service.list_pending_confirmation()


@router.get("/customer/{customer_id}", response_model=list[AppointmentResponse])
def list_customer_appointments(
    customer_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.list_for_customer(customer_id)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_by_id(appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Update price, description or car info"""
    return service.update_details(
        appointment_id,
        price=data.price,
        description=data.description,
        car_brand=data.carBrand,
        car_model=data.carModel,
    )


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
def confirm_appointment(
    appointment_id: int,
    data: ConfirmAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.confirm(
        appointment_id,
        staff_id=data.assignedStaffId,
        duration_minutes=data.durationMinutes,
        price=data.price,
    )


@router.post("/{appointment_id}/reassign", response_model=AppointmentResponse)
def reassign_appointment(
    appointment_id: int,
    data: ReassignAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.reassign(appointment_id, data.assignedStaffId)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    data: RescheduleAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.reschedule(appointment_id, data.newStartTime)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    data: Optional[CancelAppointmentRequest] = None,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.cancel(appointment_id, data.reason if data else None)


@router.post("/{appointment_id}/start", response_model=AppointmentResponse)
def start_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.start(appointment_id)


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.complete(appointment_id)


@router.post("/{appointment_id}/no-show", response_model=AppointmentResponse)
def mark_appointment_no_show(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.mark_no_show(appointment_id)
