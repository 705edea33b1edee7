"""
Room Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, Any, List
from datetime import datetime
from decimal import Decimal
import enum


class RoomStatus(str, enum.Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    OUT_OF_ORDER = "out_of_order"


class RoomTypeSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    base_price: Decimal
    max_adults: Optional[int] = None
    max_children: Optional[int] = None
    amenities: Optional[Any] = None
    image_url: Optional[str] = None


class Room(BaseModel):
    id: str
    room_type_id: str
    room_number: str
    floor: int
    status: RoomStatus
    features: Optional[Any] = None
    last_cleaned_at: Optional[datetime] = None
    notes: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    room_types: Optional[RoomTypeSummary] = None


class RoomCreate(BaseModel):
    room_type_id: str
    room_number: str = Field(..., min_length=1)
    floor: int
    status: RoomStatus = RoomStatus.AVAILABLE
    features: Optional[Any] = None
    notes: Optional[str] = None
    is_active: bool = True


class RoomUpdate(BaseModel):
    room_type_id: Optional[str] = None
    room_number: Optional[str] = Field(None, min_length=1)
    floor: Optional[int] = None
    status: Optional[RoomStatus] = None
    features: Optional[Any] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class RoomStatusUpdate(BaseModel):
    status: RoomStatus
    notes: Optional[str] = None


class BulkRoomStatusUpdate(BaseModel):
    room_ids: List[str] = Field(..., min_length=1)
    status: RoomStatus
