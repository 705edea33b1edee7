"""
Rooms and room types
"""
import asyncio

import pytest

from hotelops.errors import RecordNotFound
from hotelops.schemas.room import RoomCreate, RoomStatus, RoomUpdate
from hotelops.schemas.room_type import RoomTypeCreate
from hotelops.services.room_service import RoomService, RoomTypeService, status_changes


@pytest.fixture
def rooms(gateway, cache):
    return RoomService(gateway, cache)


@pytest.fixture
def room_types(gateway, cache):
    return RoomTypeService(gateway, cache)


class TestStatusChanges:

    def test_available_stamps_cleaning_time(self):
        updates = status_changes(RoomStatus.AVAILABLE)
        assert updates["last_cleaned_at"] == updates["updated_at"]
        assert "notes" not in updates

    @pytest.mark.parametrize("status", [s for s in RoomStatus if s != RoomStatus.AVAILABLE])
    def test_other_statuses_leave_cleaning_time(self, status):
        assert "last_cleaned_at" not in status_changes(status, notes="leaking tap")
        assert status_changes(status, notes="leaking tap")["notes"] == "leaking tap"


class TestRoomService:

    def test_list_is_ordered_and_cached(self, rooms, gateway, room_row):
        gateway.seed("rooms", {**room_row, "id": "room-201", "room_number": "201"}, room_row)

        listed = asyncio.run(rooms.list_rooms())
        asyncio.run(rooms.list_rooms())

        assert [room.room_number for room in listed] == ["101", "201"]
        assert listed[0].room_types.base_price == 150
        assert len(gateway.calls_to("select")) == 1

    def test_get_missing_room(self, rooms):
        with pytest.raises(RecordNotFound):
            asyncio.run(rooms.get_room("nope"))

    def test_create_stamps_creator_and_invalidates(self, rooms, gateway, admin, room_row):
        gateway.seed("rooms", room_row)
        asyncio.run(rooms.list_rooms())

        created = asyncio.run(rooms.create_room(
            RoomCreate(room_type_id="rt-deluxe", room_number="102", floor=1), admin,
        ))

        assert created.created_by == admin.id
        assert len(asyncio.run(rooms.list_rooms())) == 2

    def test_update_status(self, rooms, gateway, room_row, housekeeping):
        gateway.seed("rooms", {**room_row, "status": "cleaning"})

        room = asyncio.run(rooms.update_status("room-101", RoomStatus.AVAILABLE, notes="ready"))

        assert room.status == RoomStatus.AVAILABLE
        assert room.notes == "ready"
        assert room.last_cleaned_at is not None

    def test_update_to_maintenance_keeps_cleaning_time(self, rooms, gateway, room_row):
        gateway.seed("rooms", {**room_row, "last_cleaned_at": "2024-01-01T10:00:00+00:00"})

        room = asyncio.run(rooms.update_room("room-101", RoomUpdate(status=RoomStatus.MAINTENANCE)))

        assert room.status == RoomStatus.MAINTENANCE
        assert room.last_cleaned_at.year == 2024

    def test_bulk_status(self, rooms, gateway, room_row):
        gateway.seed("rooms", room_row, {**room_row, "id": "room-102", "room_number": "102"})

        updated = asyncio.run(rooms.bulk_update_status(["room-101", "room-102"], RoomStatus.CLEANING))

        assert {room.status for room in updated} == {RoomStatus.CLEANING}

    def test_delete(self, rooms, gateway, room_row):
        gateway.seed("rooms", room_row)
        asyncio.run(rooms.delete_room("room-101"))
        assert gateway.tables["rooms"] == []


class TestRoomTypeService:

    def test_active_only(self, room_types, gateway, room_type_row):
        gateway.seed("room_types", room_type_row, {**room_type_row, "id": "rt-old", "name": "Old", "is_active": False})

        assert len(asyncio.run(room_types.list_room_types())) == 2
        assert [t.name for t in asyncio.run(room_types.list_room_types(active_only=True))] == ["Deluxe"]

    def test_create(self, room_types, admin):
        created = asyncio.run(room_types.create_room_type(
            RoomTypeCreate(name="Suite", base_price="320.50", max_adults=4), admin,
        ))
        assert created.name == "Suite"
        assert created.created_by == admin.id

    def test_upload_image_returns_public_url(self, room_types, gateway):
        url = asyncio.run(room_types.upload_image("rt-deluxe", "front.jpg", b"jpg", "image/jpeg"))

        bucket, path = gateway.calls_to("upload")[0][1:]
        assert bucket == "room-images"
        assert path.startswith("room-types/rt-deluxe-") and path.endswith(".jpg")
        assert url == f"http://fake.local/storage/v1/object/public/room-images/{path}"
