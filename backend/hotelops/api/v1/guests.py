"""
Guest API Endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from hotelops.dependencies import get_guest_service, get_reservation_service, require_permission
from hotelops.schemas.guest import (
    Guest,
    GuestCreate,
    GuestDetail,
    GuestMergeRequest,
    GuestSearchFilters,
    GuestUpdate,
    GuestWithStats,
)
from hotelops.schemas.profile import Profile
from hotelops.schemas.reservation import ReservationWithDetails
from hotelops.services.guest_service import GuestService
from hotelops.services.reservation_service import ReservationService

router = APIRouter()


@router.get("", response_model=List[GuestWithStats])
async def list_guests(
    search: Optional[str] = Query(None, description="Matches first/last name, email or phone"),
    nationality: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    has_email: bool = Query(False),
    has_phone: bool = Query(False),
    actor: Profile = Depends(require_permission("guests.view")),
    service: GuestService = Depends(get_guest_service),
):
    """
    Search guests, newest first, with their number of stays
    """
    filters = GuestSearchFilters(
        search_term=search,
        nationality=nationality,
        is_active=is_active,
        has_email=has_email,
        has_phone=has_phone,
    )
    return await service.list_guests(filters)


@router.post("", response_model=Guest, status_code=status.HTTP_201_CREATED)
async def create_guest(
    guest: GuestCreate,
    actor: Profile = Depends(require_permission("guests.create")),
    service: GuestService = Depends(get_guest_service),
):
    return await service.create_guest(guest, actor)


@router.post("/merge", status_code=status.HTTP_204_NO_CONTENT)
async def merge_guests(
    data: GuestMergeRequest,
    actor: Profile = Depends(require_permission("guests.update", "guests.delete", require_all=True)),
    service: GuestService = Depends(get_guest_service),
):
    """
    Merge a duplicate guest into another

    Moves the duplicate's reservations and documents to the kept guest, then
    deletes the duplicate.
    """
    try:
        await service.merge_guests(data.keep_id, data.remove_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/duplicates", response_model=List[Guest])
async def find_duplicates(
    email: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    id_number: Optional[str] = Query(None),
    exclude_id: Optional[str] = Query(None, description="Guest being edited"),
    actor: Profile = Depends(require_permission("guests.view")),
    service: GuestService = Depends(get_guest_service),
):
    """
    Guests sharing an email, phone or ID number with the given values

    Empty when none is given.
    """
    return await service.find_duplicates(email, phone, id_number, exclude_id)


@router.get("/{guest_id}", response_model=GuestDetail)
async def get_guest(
    guest_id: str,
    actor: Profile = Depends(require_permission("guests.view")),
    service: GuestService = Depends(get_guest_service),
):
    """Guest with reservation history and document list"""
    return await service.get_guest(guest_id)


@router.get("/{guest_id}/reservations", response_model=List[ReservationWithDetails])
async def get_guest_reservations(
    guest_id: str,
    actor: Profile = Depends(require_permission("reservations.view")),
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.guest_reservations(guest_id)


@router.patch("/{guest_id}", response_model=Guest)
async def update_guest(
    guest_id: str,
    guest: GuestUpdate,
    actor: Profile = Depends(require_permission("guests.update")),
    service: GuestService = Depends(get_guest_service),
):
    return await service.update_guest(guest_id, guest)


@router.delete("/{guest_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_guest(
    guest_id: str,
    actor: Profile = Depends(require_permission("guests.delete")),
    service: GuestService = Depends(get_guest_service),
):
    """Soft delete; the guest is kept for reservation history"""
    await service.deactivate_guest(guest_id)


@router.post("/{guest_id}/restore", status_code=status.HTTP_204_NO_CONTENT)
async def restore_guest(
    guest_id: str,
    actor: Profile = Depends(require_permission("guests.update")),
    service: GuestService = Depends(get_guest_service),
):
    await service.restore_guest(guest_id)
