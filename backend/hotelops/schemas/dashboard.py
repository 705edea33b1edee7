"""
Dashboard Schemas
"""
from pydantic import BaseModel
from typing import Optional, List, Dict

from hotelops.schemas.availability import OccupancyRate
from hotelops.schemas.reservation import ReservationWithDetails


class RoomStatusCounts(BaseModel):
    total: int
    by_status: Dict[str, int]


class FrontDeskSummary(BaseModel):
    arrivals: List[ReservationWithDetails]
    departures: List[ReservationWithDetails]


class DashboardResponse(BaseModel):
    role: str
    rooms: Optional[RoomStatusCounts] = None
    front_desk: Optional[FrontDeskSummary] = None
    occupancy: Optional[OccupancyRate] = None
    notices: List[str] = []
