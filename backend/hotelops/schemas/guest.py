"""
Guest Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, Any, List
from datetime import date, datetime
from decimal import Decimal


class Guest(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    address: Optional[Any] = None
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None
    preferences: Optional[Any] = None
    emergency_contact: Optional[Any] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class GuestWithStats(Guest):
    total_stays: int = 0


class GuestStayRoomType(BaseModel):
    name: str


class GuestStayRoom(BaseModel):
    room_number: str
    room_type_id: Optional[str] = None
    room_types: Optional[GuestStayRoomType] = None


class GuestStay(BaseModel):
    id: str
    check_in_date: date
    check_out_date: date
    status: str
    total_amount: Decimal
    room_id: Optional[str] = None
    rooms: Optional[GuestStayRoom] = None


class GuestDocumentSummary(BaseModel):
    id: str
    document_type: str
    document_name: str
    file_size: Optional[int] = None
    created_at: Optional[datetime] = None


class GuestDetail(Guest):
    reservations: List[GuestStay] = []
    guest_documents: List[GuestDocumentSummary] = []


class GuestCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: str = Field(..., min_length=1)
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    address: Optional[Any] = None
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None
    preferences: Optional[Any] = None
    emergency_contact: Optional[Any] = None


class GuestUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    address: Optional[Any] = None
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None
    preferences: Optional[Any] = None
    emergency_contact: Optional[Any] = None


class GuestSearchFilters(BaseModel):
    search_term: Optional[str] = None
    nationality: Optional[str] = None
    is_active: Optional[bool] = None
    has_email: bool = False
    has_phone: bool = False


class GuestMergeRequest(BaseModel):
    keep_id: str
    remove_id: str
