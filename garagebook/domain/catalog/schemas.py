"""Catalog domain schemas - Pydantic models for validation"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class DetailServiceCreate(BaseModel):
    name: str = Field(..., max_length=120)
    description: Optional[str] = None
    minMinutes: int
    defaultMinutes: int
    maxMinutes: int
    basePrice: Optional[Decimal] = None


class DetailServiceUpdate(BaseModel):
    """Partial update; version must match the stored row"""

    version: int
    name: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = None
    minMinutes: Optional[int] = None
    defaultMinutes: Optional[int] = None
    maxMinutes: Optional[int] = None
    basePrice: Optional[Decimal] = None
    active: Optional[bool] = None


class DetailServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    minMinutes: int
    defaultMinutes: int
    maxMinutes: int
    basePrice: Optional[Decimal] = None
    active: bool
    version: int
