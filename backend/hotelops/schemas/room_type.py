"""
Room Type Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime
from decimal import Decimal


class RoomType(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    base_price: Decimal
    max_adults: int
    max_children: int
    amenities: Optional[Any] = None
    image_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


class RoomTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    base_price: Decimal = Field(..., ge=0)
    max_adults: int = Field(..., ge=1)
    max_children: int = Field(0, ge=0)
    amenities: Optional[Any] = None
    image_url: Optional[str] = None
    is_active: bool = True


class RoomTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, ge=0)
    max_adults: Optional[int] = Field(None, ge=1)
    max_children: Optional[int] = Field(None, ge=0)
    amenities: Optional[Any] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class RoomTypeWithAvailability(RoomType):
    available_count: Optional[int] = None


class RoomTypeImageResponse(BaseModel):
    room_type_id: str
    public_url: str
