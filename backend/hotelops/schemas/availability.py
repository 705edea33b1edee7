"""
Availability Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal


class AvailableRoom(BaseModel):
    id: str
    room_number: str
    floor: int
    room_type_name: str
    base_price: Decimal
    max_adults: int
    max_children: int


class AvailabilitySearch(BaseModel):
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    num_adults: int = Field(1, ge=0)
    num_children: int = Field(0, ge=0)
    room_type_id: Optional[str] = None


class RoomAvailabilityResponse(BaseModel):
    room_id: str
    available: Optional[bool] = None


class OccupancyRate(BaseModel):
    occupancy_rate: int = 0
    booked_rooms: int = 0
    total_rooms: int = 0
