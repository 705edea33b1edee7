"""
Room Service
Room and room type reads and writes against the ``rooms``/``room_types`` tables.
"""
from datetime import datetime, timezone
from typing import List, Optional
import logging
import time

from hotelops.config import settings
from hotelops.errors import GatewayError
from hotelops.schemas.profile import Profile
from hotelops.schemas.room import (
    Room, RoomCreate, RoomUpdate, RoomStatus,
)
from hotelops.schemas.room_type import RoomType, RoomTypeCreate, RoomTypeUpdate
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import SupabaseGateway, eq, in_, parse_row, parse_rows

logger = logging.getLogger(__name__)

ROOM_WITH_TYPE = (
    "*,room_types(id,name,description,base_price,max_adults,max_children,amenities,image_url)"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def status_changes(status: RoomStatus, notes: Optional[str] = None) -> dict:
    """Column updates for a status change. Becoming available stamps the cleaning time."""
    now = _now()
    updates = {"status": status, "updated_at": now}
    if notes is not None:
        updates["notes"] = notes
    if status == RoomStatus.AVAILABLE:
        updates["last_cleaned_at"] = now
    return updates


class RoomService:
    """Rooms with their embedded room type."""

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def list_rooms(self) -> List[Room]:
        async def load():
            data = await self.gateway.select("rooms", columns=ROOM_WITH_TYPE, order="room_number")
            return parse_rows(Room, data)

        return await self.cache.get_or_load(("rooms",), load)

    async def get_room(self, room_id: str) -> Room:
        async def load():
            data = await self.gateway.select(
                "rooms", columns=ROOM_WITH_TYPE, filters=[eq("id", room_id)], single=True,
            )
            return parse_row(Room, data)

        return await self.cache.get_or_load(("rooms", room_id), load)

    async def create_room(self, data: RoomCreate, actor: Profile) -> Room:
        values = data.model_dump()
        values["created_by"] = actor.id
        row = await self.gateway.insert("rooms", values)
        self.cache.invalidate_for("room.create")
        return parse_row(Room, row)

    async def update_room(self, room_id: str, data: RoomUpdate) -> Room:
        values = data.model_dump(exclude_unset=True)
        if "status" in values:
            values.update(status_changes(values["status"]))
        values["updated_at"] = _now()
        row = await self.gateway.update("rooms", values, filters=[eq("id", room_id)], single=True)
        self.cache.invalidate_for("room.update", room_id=room_id)
        return parse_row(Room, row)

    async def update_status(self, room_id: str, status: RoomStatus, notes: Optional[str] = None) -> Room:
        row = await self.gateway.update(
            "rooms", status_changes(status, notes), filters=[eq("id", room_id)], single=True,
        )
        self.cache.invalidate_for("room.update_status", room_id=room_id)
        return parse_row(Room, row)

    async def bulk_update_status(self, room_ids: List[str], status: RoomStatus) -> List[Room]:
        rows = await self.gateway.update("rooms", status_changes(status), filters=[in_("id", room_ids)])
        self.cache.invalidate_for("room.bulk_update_status")
        return parse_rows(Room, rows)

    async def delete_room(self, room_id: str) -> None:
        await self.gateway.delete("rooms", filters=[eq("id", room_id)])
        self.cache.invalidate_for("room.delete", room_id=room_id)


class RoomTypeService:
    """Room type catalogue and its images."""

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def list_room_types(self, active_only: bool = False) -> List[RoomType]:
        filters = [eq("is_active", True)] if active_only else []
        key = ("room-types", "active") if active_only else ("room-types",)

        async def load():
            data = await self.gateway.select("room_types", filters=filters, order="name")
            return parse_rows(RoomType, data)

        return await self.cache.get_or_load(key, load)

    async def get_room_type(self, room_type_id: str) -> RoomType:
        async def load():
            data = await self.gateway.select("room_types", filters=[eq("id", room_type_id)], single=True)
            return parse_row(RoomType, data)

        return await self.cache.get_or_load(("room-types", room_type_id), load)

    async def create_room_type(self, data: RoomTypeCreate, actor: Profile) -> RoomType:
        values = data.model_dump()
        values["created_by"] = actor.id
        row = await self.gateway.insert("room_types", values)
        self.cache.invalidate_for("room_type.create")
        return parse_row(RoomType, row)

    async def update_room_type(self, room_type_id: str, data: RoomTypeUpdate) -> RoomType:
        values = data.model_dump(exclude_unset=True)
        values["updated_at"] = _now()
        row = await self.gateway.update(
            "room_types", values, filters=[eq("id", room_type_id)], single=True,
        )
        self.cache.invalidate_for("room_type.update", room_type_id=room_type_id)
        return parse_row(RoomType, row)

    async def delete_room_type(self, room_type_id: str) -> None:
        await self.gateway.delete("room_types", filters=[eq("id", room_type_id)])
        self.cache.invalidate_for("room_type.delete", room_type_id=room_type_id)

    async def upload_image(
        self, room_type_id: str, filename: str, content: bytes, content_type: Optional[str],
    ) -> str:
        """Store a room type image and return its public URL."""
        extension = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
        path = f"room-types/{room_type_id}-{int(time.time() * 1000)}.{extension}"
        try:
            await self.gateway.upload(settings.ROOM_IMAGES_BUCKET, path, content, content_type)
        except GatewayError:
            logger.error("Room type image upload failed for %s", room_type_id)
            raise
        return self.gateway.public_url(settings.ROOM_IMAGES_BUCKET, path)
