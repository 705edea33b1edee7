"""
Room API Endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, status

from hotelops.dependencies import get_room_service, require_permission
from hotelops.schemas.profile import Profile
from hotelops.schemas.room import (
    BulkRoomStatusUpdate,
    Room,
    RoomCreate,
    RoomStatusUpdate,
    RoomUpdate,
)
from hotelops.services.room_service import RoomService

router = APIRouter()


@router.get("", response_model=List[Room])
async def list_rooms(
    actor: Profile = Depends(require_permission("rooms.view")),
    service: RoomService = Depends(get_room_service),
):
    """
    All rooms with their room type, ordered by room number
    """
    return await service.list_rooms()


@router.post("", response_model=Room, status_code=status.HTTP_201_CREATED)
async def create_room(
    room: RoomCreate,
    actor: Profile = Depends(require_permission("rooms.create")),
    service: RoomService = Depends(get_room_service),
):
    return await service.create_room(room, actor)


@router.post("/bulk-status", response_model=List[Room])
async def bulk_update_room_status(
    data: BulkRoomStatusUpdate,
    actor: Profile = Depends(require_permission("rooms.update_status")),
    service: RoomService = Depends(get_room_service),
):
    """Set the same status on several rooms at once."""
    return await service.bulk_update_status(data.room_ids, data.status)


@router.get("/{room_id}", response_model=Room)
async def get_room(
    room_id: str,
    actor: Profile = Depends(require_permission("rooms.view")),
    service: RoomService = Depends(get_room_service),
):
    return await service.get_room(room_id)


@router.patch("/{room_id}", response_model=Room)
async def update_room(
    room_id: str,
    room: RoomUpdate,
    actor: Profile = Depends(require_permission("rooms.update")),
    service: RoomService = Depends(get_room_service),
):
    return await service.update_room(room_id, room)


@router.patch("/{room_id}/status", response_model=Room)
async def update_room_status(
    room_id: str,
    data: RoomStatusUpdate,
    actor: Profile = Depends(require_permission("rooms.update_status")),
    service: RoomService = Depends(get_room_service),
):
    """
    Change a room's status

    Setting a room available also stamps its last cleaning time.
    """
    return await service.update_status(room_id, data.status, data.notes)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: str,
    actor: Profile = Depends(require_permission("rooms.delete")),
    service: RoomService = Depends(get_room_service),
):
    await service.delete_room(room_id)
