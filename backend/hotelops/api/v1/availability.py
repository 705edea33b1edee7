"""
Availability API Endpoints
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from hotelops.dependencies import get_availability_service, require_permission
from hotelops.schemas.availability import (
    AvailabilitySearch,
    AvailableRoom,
    OccupancyRate,
    RoomAvailabilityResponse,
)
from hotelops.schemas.profile import Profile
from hotelops.services.availability_service import AvailabilityService

router = APIRouter()


@router.get("/rooms", response_model=List[AvailableRoom])
async def find_available_rooms(
    check_in_date: Optional[date] = Query(None),
    check_out_date: Optional[date] = Query(None),
    num_adults: int = Query(1, ge=0),
    num_children: int = Query(0, ge=0),
    room_type_id: Optional[str] = Query(None),
    actor: Profile = Depends(require_permission("reservations.view")),
    service: AvailabilityService = Depends(get_availability_service),
):
    """
    Rooms free for the whole stay that fit the party

    Empty unless both dates are given.
    """
    search = AvailabilitySearch(
        check_in_date=check_in_date,
        check_out_date=check_out_date,
        num_adults=num_adults,
        num_children=num_children,
        room_type_id=room_type_id,
    )
    return await service.find_available_rooms(search)


@router.get("/rooms/{room_id}", response_model=RoomAvailabilityResponse)
async def check_room_availability(
    room_id: str,
    check_in_date: Optional[date] = Query(None),
    check_out_date: Optional[date] = Query(None),
    exclude_reservation_id: Optional[str] = Query(None),
    actor: Profile = Depends(require_permission("reservations.view")),
    service: AvailabilityService = Depends(get_availability_service),
):
    """``available`` is null when either date is missing"""
    available = await service.check_room_availability(
        room_id, check_in_date, check_out_date, exclude_reservation_id,
    )
    return RoomAvailabilityResponse(room_id=room_id, available=available)


@router.get("/occupancy", response_model=OccupancyRate)
async def get_occupancy_rate(
    start_date: date = Query(...),
    end_date: date = Query(...),
    actor: Profile = Depends(require_permission("dashboard.view")),
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.occupancy_rate(start_date, end_date)
