"""Catalog repository - Database operations for detail services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import DetailService


class DetailServiceRepository:
    """Repository for detail service database operations"""

    @staticmethod
    def get(db: Session, service_id: int) -> Optional[DetailService]:
        return db.query(DetailService).filter(DetailService.id == service_id).first()

    @staticmethod
    def list_active(db: Session) -> list[DetailService]:
        return (
            db.query(DetailService)
            .filter(DetailService.active.is_(True))
            .order_by(DetailService.name.asc(), DetailService.id.asc())
            .all()
        )

    @staticmethod
    def create(db: Session, **service_data) -> DetailService:
        service = DetailService(**service_data)
        db.add(service)
        db.flush()
        return service
