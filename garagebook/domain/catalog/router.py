"""Catalog router - FastAPI endpoints for detail services"""

from fastapi import APIRouter, Depends

from ...unit_of_work import UnitOfWork, get_uow
from .schemas import DetailServiceCreate, DetailServiceResponse, DetailServiceUpdate
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(uow: UnitOfWork = Depends(get_uow)) -> CatalogService:
    return CatalogService(uow)


@router.get("", response_model=list[DetailServiceResponse])
def list_services(service: CatalogService = Depends(get_catalog_service)):
    """Active services, used by the public booking form"""
    return service.list_active()


@router.post("", response_model=DetailServiceResponse, status_code=201)
def create_service(
    data: DetailServiceCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create(data)


@router.patch("/{service_id}", response_model=DetailServiceResponse)
def update_service(
    service_id: int,
    data: DetailServiceUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update(service_id, data)
