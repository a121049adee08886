"""Staff router - FastAPI endpoints for the staff directory"""

from fastapi import APIRouter, Depends

from ...unit_of_work import UnitOfWork, get_uow
from .schemas import StaffActiveUpdate, StaffResponse
from .service import StaffDirectory

router = APIRouter(prefix="/staff", tags=["Staff"])


def get_staff_directory(uow: UnitOfWork = Depends(get_uow)) -> StaffDirectory:
    return StaffDirectory(uow)


@router.get("", response_model=list[StaffResponse])
def list_active_staff(directory: StaffDirectory = Depends(get_staff_directory)):
    """Staff members that can be assigned to appointments"""
    return directory.list_active()


@router.patch("/{staff_id}/active", response_model=StaffResponse)
def set_staff_active(
    staff_id: int,
    data: StaffActiveUpdate,
    directory: StaffDirectory = Depends(get_staff_directory),
):
    return directory.set_active(staff_id, data.active, data.version)
