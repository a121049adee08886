"""Staff directory - Lookups used when assigning appointments"""

import logging

from ...models import Role, User
from ...shared.errors import NotFoundError, TransientStoreError, ValidationError
from ...unit_of_work import UnitOfWork
from .repository import StaffRepository
from .schemas import StaffResponse

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = frozenset({Role.ADMIN, Role.STAFF})


def to_response(user: User) -> StaffResponse:
    return StaffResponse(
        id=user.id,
        username=user.username,
        role=user.role.value,
        active=user.active,
        version=user.version,
    )


class StaffDirectory:
    """Resolves staff members and guards their assignability"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.repo = StaffRepository()

    def find_active_staff(self, staff_id: int) -> User:
        """Return the staff member or raise NotFoundError / ValidationError"""
        user = self.repo.get(self.uow.session, staff_id)
        if not user:
            raise NotFoundError.of("Staff", staff_id)
        if user.role not in ASSIGNABLE_ROLES:
            raise ValidationError(f"User {staff_id} cannot be assigned to appointments")
        if not user.active:
            raise ValidationError(f"Staff member {staff_id} is not active")
        return user

    def list_active(self) -> list[StaffResponse]:
        with self.uow.transaction():
            return [
                to_response(u)
                for u in self.repo.list_active(self.uow.session)
                if u.role in ASSIGNABLE_ROLES
            ]

    def set_active(self, staff_id: int, active: bool, expected_version: int) -> StaffResponse:
        """Activate or deactivate a staff member; expected_version must match the stored row"""
        with self.uow.transaction():
            user = self.repo.get(self.uow.session, staff_id)
            if not user:
                raise NotFoundError.of("Staff", staff_id)
            if user.version != expected_version:
                raise TransientStoreError(
                    f"Staff {staff_id} was modified concurrently "
                    f"(expected version {expected_version}, found {user.version})"
                )
            user.active = active
            self.uow.flush()
            response = to_response(user)

        logger.info(f"{'✅ Activated' if active else '🚫 Deactivated'} staff member {staff_id}")
        return response
