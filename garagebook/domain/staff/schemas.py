"""Staff domain schemas - Pydantic models for validation"""

from pydantic import BaseModel


class StaffResponse(BaseModel):
    id: int
    username: str
    role: str
    active: bool
    version: int


class StaffActiveUpdate(BaseModel):
    active: bool
    version: int
