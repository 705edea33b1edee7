"""
Room Type API Endpoints
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from hotelops.dependencies import (
    get_availability_service, get_room_type_service, require_permission,
)
from hotelops.schemas.profile import Profile
from hotelops.schemas.room_type import (
    RoomType,
    RoomTypeCreate,
    RoomTypeImageResponse,
    RoomTypeUpdate,
    RoomTypeWithAvailability,
)
from hotelops.services.availability_service import AvailabilityService
from hotelops.services.room_service import RoomTypeService

router = APIRouter()


@router.get("", response_model=List[RoomType])
async def list_room_types(
    active_only: bool = Query(False),
    actor: Profile = Depends(require_permission("rooms.view")),
    service: RoomTypeService = Depends(get_room_type_service),
):
    return await service.list_room_types(active_only=active_only)


@router.get("/availability", response_model=List[RoomTypeWithAvailability])
async def list_room_types_with_availability(
    check_in_date: Optional[date] = Query(None),
    check_out_date: Optional[date] = Query(None),
    actor: Profile = Depends(require_permission("rooms.view")),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Active room types, cheapest first, with free-room counts when dates are given"""
    return await service.room_types_with_availability(check_in_date, check_out_date)


@router.post("", response_model=RoomType, status_code=status.HTTP_201_CREATED)
async def create_room_type(
    room_type: RoomTypeCreate,
    actor: Profile = Depends(require_permission("rooms.create")),
    service: RoomTypeService = Depends(get_room_type_service),
):
    return await service.create_room_type(room_type, actor)


@router.get("/{room_type_id}", response_model=RoomType)
async def get_room_type(
    room_type_id: str,
    actor: Profile = Depends(require_permission("rooms.view")),
    service: RoomTypeService = Depends(get_room_type_service),
):
    return await service.get_room_type(room_type_id)


@router.patch("/{room_type_id}", response_model=RoomType)
async def update_room_type(
    room_type_id: str,
    room_type: RoomTypeUpdate,
    actor: Profile = Depends(require_permission("rooms.update")),
    service: RoomTypeService = Depends(get_room_type_service),
):
    return await service.update_room_type(room_type_id, room_type)


@router.delete("/{room_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room_type(
    room_type_id: str,
    actor: Profile = Depends(require_permission("rooms.delete")),
    service: RoomTypeService = Depends(get_room_type_service),
):
    await service.delete_room_type(room_type_id)


@router.post("/{room_type_id}/image", response_model=RoomTypeImageResponse)
async def upload_room_type_image(
    room_type_id: str,
    file: UploadFile = File(...),
    actor: Profile = Depends(require_permission("rooms.update")),
    service: RoomTypeService = Depends(get_room_type_service),
):
    """
    Upload a room type image

    Returns the image's public URL; save it on the room type to display it.
    """
    content = await file.read()
    public_url = await service.upload_image(room_type_id, file.filename or "image", content, file.content_type)
    return RoomTypeImageResponse(room_type_id=room_type_id, public_url=public_url)
