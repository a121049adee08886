"""Catalog service - Detail services offered by the garage"""

import logging
from typing import Optional

from ...config import MAX_DURATION_MINUTES, MIN_DURATION_MINUTES
from ...models import DetailService
from ...shared.errors import NotFoundError, TransientStoreError, ValidationError
from ...shared.validators import require_non_blank, trim_or_none, validate_price
from ...unit_of_work import UnitOfWork
from .repository import DetailServiceRepository
from .schemas import DetailServiceCreate, DetailServiceResponse, DetailServiceUpdate

logger = logging.getLogger(__name__)


def validate_durations(min_minutes: int, default_minutes: int, max_minutes: int) -> None:
    """min <= default <= max, all within the bookable duration range"""
    for label, value in (
        ("Minimum", min_minutes),
        ("Default", default_minutes),
        ("Maximum", max_minutes),
    ):
        if value is None or value < MIN_DURATION_MINUTES or value > MAX_DURATION_MINUTES:
            raise ValidationError(
                f"{label} duration must be between {MIN_DURATION_MINUTES} and "
                f"{MAX_DURATION_MINUTES} minutes"
            )
    if not (min_minutes <= default_minutes <= max_minutes):
        raise ValidationError("Durations must satisfy minimum <= default <= maximum")


def to_response(service: DetailService) -> DetailServiceResponse:
    return DetailServiceResponse(
        id=service.id,
        name=service.name,
        description=service.description,
        minMinutes=service.min_minutes,
        defaultMinutes=service.default_minutes,
        maxMinutes=service.max_minutes,
        basePrice=service.base_price,
        active=service.active,
        version=service.version,
    )


class CatalogService:
    """Service layer for the detail service catalogue"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.repo = DetailServiceRepository()

    def get(self, service_id: int) -> DetailService:
        service = self.repo.get(self.uow.session, service_id)
        if not service:
            raise NotFoundError.of("Service", service_id)
        return service

    def list_active(self) -> list[DetailServiceResponse]:
        with self.uow.transaction():
            return [to_response(s) for s in self.repo.list_active(self.uow.session)]

    def create(self, data: DetailServiceCreate) -> DetailServiceResponse:
        name = require_non_blank(data.name, "Service name")
        validate_durations(data.minMinutes, data.defaultMinutes, data.maxMinutes)
        validate_price(data.basePrice)

        with self.uow.transaction():
            service = self.repo.create(
                self.uow.session,
                name=name,
                description=trim_or_none(data.description),
                min_minutes=data.minMinutes,
                default_minutes=data.defaultMinutes,
                max_minutes=data.maxMinutes,
                base_price=data.basePrice,
                active=True,
            )
            response = to_response(service)

        logger.info(f"✅ Created service {response.id} ({response.name})")
        return response

    def update(self, service_id: int, data: DetailServiceUpdate) -> DetailServiceResponse:
        with self.uow.transaction():
            service = self.get(service_id)
            if service.version != data.version:
                raise TransientStoreError(
                    f"Service {service_id} was modified concurrently "
                    f"(expected version {data.version}, found {service.version})"
                )

            min_minutes = _pick(data.minMinutes, service.min_minutes)
            default_minutes = _pick(data.defaultMinutes, service.default_minutes)
            max_minutes = _pick(data.maxMinutes, service.max_minutes)
            validate_durations(min_minutes, default_minutes, max_minutes)

            if data.name is not None:
                service.name = require_non_blank(data.name, "Service name")
            if data.description is not None:
                service.description = trim_or_none(data.description)
            if data.basePrice is not None:
                service.base_price = validate_price(data.basePrice)
            if data.active is not None:
                service.active = data.active
            service.min_minutes = min_minutes
            service.default_minutes = default_minutes
            service.max_minutes = max_minutes

            self.uow.flush()
            response = to_response(service)

        logger.info(f"Updated service {service_id} (version {response.version})")
        return response


def _pick(value: Optional[int], current: int) -> int:
    return current if value is None else value
