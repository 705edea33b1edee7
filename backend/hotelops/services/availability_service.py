"""
Availability Service
Room availability through the backend's conflict-detection procedures, plus
occupancy figures for a date range.
"""
from datetime import date
from typing import Dict, List, Optional
import logging

from hotelops.errors import GatewayError, GatewayResponseError
from hotelops.schemas.availability import AvailabilitySearch, AvailableRoom, OccupancyRate
from hotelops.schemas.reservation import ACTIVE_STATUSES
from hotelops.schemas.room_type import RoomTypeWithAvailability
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import SupabaseGateway, eq, gte, in_, lte, parse_rows

logger = logging.getLogger(__name__)

AVAILABLE_ROOMS_TTL = 60.0
ROOM_AVAILABILITY_TTL = 30.0
OCCUPANCY_TTL = 300.0


class AvailabilityService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def _find_available_rooms(
        self,
        check_in: date,
        check_out: date,
        min_occupancy: int,
        room_type_id: Optional[str] = None,
    ) -> List[AvailableRoom]:
        try:
            data = await self.gateway.rpc("find_available_rooms", {
                "p_check_in": check_in,
                "p_check_out": check_out,
                "p_room_type_id": room_type_id,
                "p_min_occupancy": min_occupancy,
            })
        except GatewayError as e:
            logger.error(f"Error finding available rooms: {e.message}")
            raise
        return parse_rows(AvailableRoom, data)

    async def find_available_rooms(self, search: AvailabilitySearch) -> List[AvailableRoom]:
        """Rooms free over [check_in, check_out) that fit the party. Empty without both dates."""
        if not search.check_in_date or not search.check_out_date:
            return []

        min_occupancy = search.num_adults + search.num_children
        key = ("available-rooms", search.model_dump_json())
        return await self.cache.get_or_load(
            key,
            lambda: self._find_available_rooms(
                search.check_in_date, search.check_out_date, min_occupancy, search.room_type_id,
            ),
            ttl=AVAILABLE_ROOMS_TTL,
        )

    async def is_room_available(
        self,
        room_id: Optional[str],
        check_in: Optional[date],
        check_out: Optional[date],
        exclude_reservation_id: Optional[str] = None,
    ) -> Optional[bool]:
        """
        Ask the backend whether one room is free for a date range.

        Returns None when any input is missing. Always goes to the backend;
        booking decisions must not be made on a cached answer.
        """
        if not room_id or not check_in or not check_out:
            return None

        try:
            data = await self.gateway.rpc("check_room_availability", {
                "p_room_id": room_id,
                "p_check_in": check_in,
                "p_check_out": check_out,
                "p_exclude_reservation_id": exclude_reservation_id,
            })
        except GatewayError as e:
            logger.error(f"Error checking room availability: {e.message}")
            raise

        if not isinstance(data, bool):
            raise GatewayResponseError("check_room_availability did not return a boolean", code="invalid_response")
        return data

    async def check_room_availability(
        self,
        room_id: Optional[str],
        check_in: Optional[date],
        check_out: Optional[date],
        exclude_reservation_id: Optional[str] = None,
    ) -> Optional[bool]:
        """Cached variant of ``is_room_available`` for display."""
        key = ("room-availability", room_id, str(check_in), str(check_out), exclude_reservation_id)
        return await self.cache.get_or_load(
            key,
            lambda: self.is_room_available(room_id, check_in, check_out, exclude_reservation_id),
            ttl=ROOM_AVAILABILITY_TTL,
        )

    async def occupancy_rate(self, start_date: Optional[date], end_date: Optional[date]) -> OccupancyRate:
        """Share of rooms with an active reservation overlapping the range, as a whole percentage."""
        if not start_date or not end_date:
            return OccupancyRate()

        async def load():
            total_rooms = await self.gateway.count("rooms")
            data = await self.gateway.select(
                "reservations",
                columns="room_id",
                filters=[
                    lte("check_in_date", end_date),
                    gte("check_out_date", start_date),
                    in_("status", ACTIVE_STATUSES),
                ],
            )
            if not isinstance(data, list):
                raise GatewayResponseError("Expected a list of reservations", code="invalid_response")
            booked_rooms = len({row.get("room_id") for row in data})
            rate = round(booked_rooms / total_rooms * 100) if total_rooms > 0 else 0
            return OccupancyRate(occupancy_rate=rate, booked_rooms=booked_rooms, total_rooms=total_rooms)

        return await self.cache.get_or_load(
            ("occupancy-rate", str(start_date), str(end_date)), load, ttl=OCCUPANCY_TTL,
        )

    async def room_types_with_availability(
        self, check_in: Optional[date] = None, check_out: Optional[date] = None,
    ) -> List[RoomTypeWithAvailability]:
        """Active room types, cheapest first, with a free-room count when dates are given."""
        data = await self.gateway.select(
            "room_types", filters=[eq("is_active", True)], order="base_price",
        )
        room_types = parse_rows(RoomTypeWithAvailability, data)

        if not check_in or not check_out:
            return room_types

        available = await self._find_available_rooms(check_in, check_out, min_occupancy=1)
        counts: Dict[str, int] = {}
        for room in available:
            counts[room.room_type_name] = counts.get(room.room_type_name, 0) + 1

        for room_type in room_types:
            room_type.available_count = counts.get(room_type.name, 0)
        return room_types
