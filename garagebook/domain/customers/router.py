"""Customer router - FastAPI endpoints for customer operations"""

from fastapi import APIRouter, Depends

from ...unit_of_work import UnitOfWork, get_uow
from .schemas import CustomerHistoryResponse, CustomerResponse
from .service import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(uow: UnitOfWork = Depends(get_uow)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(uow)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    return service.get(customer_id)


@router.get("/{customer_id}/history", response_model=CustomerHistoryResponse)
def get_customer_history(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    """Appointments newest first with completed and no-show counts"""
    return service.history(customer_id)


@router.post("/{customer_id}/deactivate", response_model=CustomerResponse)
def deactivate_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    return service.deactivate(customer_id)


@router.post("/{customer_id}/reactivate", response_model=CustomerResponse)
def reactivate_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
):
    return service.reactivate(customer_id)
