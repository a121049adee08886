"""Staff repository - Database operations for internal users"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User


class StaffRepository:
    """Repository for staff (internal user) database operations"""

    @staticmethod
    def get(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def list_active(db: Session) -> list[User]:
        return (
            db.query(User)
            .filter(User.active.is_(True))
            .order_by(User.username.asc())
            .all()
        )
