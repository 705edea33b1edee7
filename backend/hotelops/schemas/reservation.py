"""
Reservation Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
import enum


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that hold a room for their date range
ACTIVE_STATUSES = [
    ReservationStatus.PENDING.value,
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.CHECKED_IN.value,
]


class Reservation(BaseModel):
    id: str
    guest_id: str
    room_id: str
    check_in_date: date
    check_out_date: date
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    num_adults: int = 1
    num_children: int = 0
    status: ReservationStatus
    special_requests: Optional[str] = None
    total_amount: Decimal
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReservationGuest(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class ReservationRoomType(BaseModel):
    id: str
    name: str
    base_price: Optional[Decimal] = None


class ReservationRoom(BaseModel):
    id: str
    room_number: str
    floor: int
    room_type: Optional[ReservationRoomType] = None


class ReservationCreator(BaseModel):
    id: str
    full_name: Optional[str] = None


class ReservationWithDetails(Reservation):
    guest: Optional[ReservationGuest] = None
    room: Optional[ReservationRoom] = None
    created_by_profile: Optional[ReservationCreator] = None


class ReservationCreate(BaseModel):
    """Draft submitted by the booking form. Presence and date order are checked by the service."""
    guest_id: Optional[str] = None
    room_id: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    num_adults: int = Field(1, ge=1)
    num_children: int = Field(0, ge=0)
    status: ReservationStatus = ReservationStatus.CONFIRMED
    special_requests: Optional[str] = None


class ReservationUpdate(BaseModel):
    guest_id: Optional[str] = None
    room_id: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    num_adults: Optional[int] = Field(None, ge=1)
    num_children: Optional[int] = Field(None, ge=0)
    status: Optional[ReservationStatus] = None
    special_requests: Optional[str] = None


class ReservationFilters(BaseModel):
    status: Optional[str] = None  # a ReservationStatus value or "all"
    guest_name: Optional[str] = None
    room_number: Optional[str] = None
    check_in_from: Optional[date] = None
    check_in_to: Optional[date] = None
    check_out_from: Optional[date] = None
    check_out_to: Optional[date] = None


class ReservationListResponse(BaseModel):
    reservations: List[ReservationWithDetails]
    total: int


class RoomChangeRequest(BaseModel):
    new_room_id: str
    reason: str = Field(..., min_length=1)
