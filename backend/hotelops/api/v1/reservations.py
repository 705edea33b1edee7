"""
Reservation API Endpoints
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from hotelops.dependencies import get_reservation_service, require_permission
from hotelops.schemas.profile import Profile
from hotelops.schemas.reservation import (
    Reservation,
    ReservationCreate,
    ReservationFilters,
    ReservationListResponse,
    ReservationUpdate,
    ReservationWithDetails,
    RoomChangeRequest,
)
from hotelops.schemas.room import Room
from hotelops.services.reservation_service import ReservationService

router = APIRouter()


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    status_filter: Optional[str] = Query(None, alias="status", description="Reservation status or 'all'"),
    guest_name: Optional[str] = Query(None),
    room_number: Optional[str] = Query(None),
    check_in_from: Optional[date] = Query(None),
    check_in_to: Optional[date] = Query(None),
    check_out_from: Optional[date] = Query(None),
    check_out_to: Optional[date] = Query(None),
    actor: Profile = Depends(require_permission("reservations.view")),
    service: ReservationService = Depends(get_reservation_service),
):
    """
    List reservations, latest check-in first

    Guest name matches the guest's full name, email or phone.
    """
    filters = ReservationFilters(
        status=status_filter,
        guest_name=guest_name,
        room_number=room_number,
        check_in_from=check_in_from,
        check_in_to=check_in_to,
        check_out_from=check_out_from,
        check_out_to=check_out_to,
    )
    reservations = await service.list_reservations(filters)
    return ReservationListResponse(reservations=reservations, total=len(reservations))


@router.post("", response_model=Reservation, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    draft: ReservationCreate,
    actor: Profile = Depends(require_permission("reservations.create")),
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Book a room

    Rejects incomplete drafts (422) and rooms already booked for part of the
    range (409). The total is priced from the room's nightly rate.
    """
    return await service.create_reservation(draft, actor)


@router.get("/arrivals", response_model=List[ReservationWithDetails])
async def upcoming_arrivals(
    actor: Profile = Depends(require_permission("reservations.view")),
    service: ReservationService = Depends(get_reservation_service),
):
    """Pending and confirmed check-ins for today and tomorrow"""
    return await service.upcoming_check_ins()


@router.get("/departures", response_model=List[ReservationWithDetails])
async def upcoming_departures(
    actor: Profile = Depends(require_permission("reservations.view")),
    service: ReservationService = Depends(get_reservation_service),
):
    """Checked-in guests leaving today or tomorrow"""
    return await service.upcoming_check_outs()


@router.get("/{reservation_id}", response_model=ReservationWithDetails)
async def get_reservation(
    reservation_id: str,
    actor: Profile = Depends(require_permission("reservations.view")),
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.get_reservation(reservation_id)


@router.patch("/{reservation_id}", response_model=Reservation)
async def update_reservation(
    reservation_id: str,
    data: ReservationUpdate,
    actor: Profile = Depends(require_permission("reservations.update")),
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.update_reservation(reservation_id, data)


@router.post("/{reservation_id}/cancel", response_model=Reservation)
async def cancel_reservation(
    reservation_id: str,
    actor: Profile = Depends(require_permission("reservations.cancel")),
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.cancel_reservation(reservation_id)


@router.post("/{reservation_id}/check-in")
async def check_in(
    reservation_id: str,
    actor: Profile = Depends(require_permission("frontdesk.checkin")),
    service: ReservationService = Depends(get_reservation_service),
):
    """Mark the guest arrived and the room occupied"""
    room_id = await service.check_in(reservation_id)
    return {"reservation_id": reservation_id, "room_id": room_id, "status": "checked_in"}


@router.post("/{reservation_id}/check-out")
async def check_out(
    reservation_id: str,
    actor: Profile = Depends(require_permission("frontdesk.checkout")),
    service: ReservationService = Depends(get_reservation_service),
):
    """Mark the guest departed and the room due for cleaning"""
    room_id = await service.check_out(reservation_id)
    return {"reservation_id": reservation_id, "room_id": room_id, "status": "checked_out"}


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: str,
    actor: Profile = Depends(require_permission("reservations.delete")),
    service: ReservationService = Depends(get_reservation_service),
):
    """Remove a booking outright (422 while the guest is checked in)"""
    await service.delete_reservation(reservation_id)


@router.get("/{reservation_id}/room-change-options", response_model=List[Room])
async def room_change_options(
    reservation_id: str,
    actor: Profile = Depends(require_permission("frontdesk.room_change")),
    service: ReservationService = Depends(get_reservation_service),
):
    """Available rooms whose type fits the party"""
    return await service.room_change_options(reservation_id)


@router.post("/{reservation_id}/room-change", response_model=Reservation)
async def change_room(
    reservation_id: str,
    data: RoomChangeRequest,
    actor: Profile = Depends(require_permission("frontdesk.room_change")),
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Move the booking to another room for the same dates

    Rejected (409) when the new room is booked for part of the stay. A
    checked-in guest's rooms are swapped: old room available, new room occupied.
    """
    return await service.change_room(reservation_id, data.new_room_id, data.reason, actor)
