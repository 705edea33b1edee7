"""
Reservation Service
Bookings with their guest, room and creator; check-in, check-out and room changes.
"""
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional
import logging

from hotelops.errors import BookingValidationError, GatewayError, RoomUnavailableError
from hotelops.schemas.pricing import PriceBreakdown
from hotelops.schemas.profile import Profile
from hotelops.schemas.reservation import (
    Reservation, ReservationCreate, ReservationFilters, ReservationStatus,
    ReservationUpdate, ReservationWithDetails,
)
from hotelops.schemas.room import Room, RoomStatus
from hotelops.services.availability_service import AvailabilityService
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import SupabaseGateway, eq, gte, in_, lte, parse_row, parse_rows
from hotelops.services.pricing import calculate_reservation_total
from hotelops.services.room_service import ROOM_WITH_TYPE

logger = logging.getLogger(__name__)

RESERVATION_DETAILS = (
    "*,"
    "guest:guests!guest_id(id,first_name,last_name,email,phone),"
    "room:rooms!room_id(id,room_number,floor,room_type:room_types!room_type_id(id,name,base_price)),"
    "created_by_profile:profiles!created_by(id,full_name)"
)

GUEST_HISTORY = (
    "*,"
    "room:rooms!room_id(id,room_number,floor,room_type:room_types!room_type_id(id,name,base_price))"
)

UPCOMING_TTL = 60.0


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _matches_guest(reservation: ReservationWithDetails, term: str) -> bool:
    guest = reservation.guest
    if guest is None:
        return False
    full_name = f"{guest.first_name} {guest.last_name}".lower()
    return (
        term in full_name
        or term in (guest.email or "").lower()
        or term in (guest.phone or "").lower()
    )


def _matches_room(reservation: ReservationWithDetails, term: str) -> bool:
    return reservation.room is not None and term in reservation.room.room_number.lower()


def validate_draft(draft: ReservationCreate) -> None:
    """Reject an incomplete or inverted booking before anything is sent to the backend."""
    if not draft.guest_id:
        raise BookingValidationError("A guest is required")
    if not draft.room_id:
        raise BookingValidationError("A room is required")
    if not draft.check_in_date or not draft.check_out_date:
        raise BookingValidationError("Check-in and check-out dates are required")
    if draft.check_out_date <= draft.check_in_date:
        raise BookingValidationError("Check-out date must be after check-in date")


class ReservationService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache, availability: AvailabilityService = None):
        self.gateway = gateway
        self.cache = cache
        self.availability = availability or AvailabilityService(gateway, cache)

    async def list_reservations(self, filters: ReservationFilters = None) -> List[ReservationWithDetails]:
        """
        List reservations, latest check-in first.

        Status and date ranges are filtered by the backend. Guest name (matched
        against full name, email and phone) and room number are matched here,
        case-insensitively, against the embedded rows.
        """
        filters = filters or ReservationFilters()
        predicates = []
        if filters.status and filters.status != "all":
            predicates.append(eq("status", filters.status))
        if filters.check_in_from:
            predicates.append(gte("check_in_date", filters.check_in_from))
        if filters.check_in_to:
            predicates.append(lte("check_in_date", filters.check_in_to))
        if filters.check_out_from:
            predicates.append(gte("check_out_date", filters.check_out_from))
        if filters.check_out_to:
            predicates.append(lte("check_out_date", filters.check_out_to))

        async def load():
            data = await self.gateway.select(
                "reservations", columns=RESERVATION_DETAILS, filters=predicates,
                order="check_in_date", ascending=False,
            )
            results = parse_rows(ReservationWithDetails, data)

            if filters.guest_name:
                term = filters.guest_name.lower()
                results = [r for r in results if _matches_guest(r, term)]
            if filters.room_number:
                term = filters.room_number.lower()
                results = [r for r in results if _matches_room(r, term)]
            return results

        return await self.cache.get_or_load(("reservations", filters.model_dump_json()), load)

    async def get_reservation(self, reservation_id: str) -> ReservationWithDetails:
        async def load():
            data = await self.gateway.select(
                "reservations", columns=RESERVATION_DETAILS, filters=[eq("id", reservation_id)], single=True,
            )
            return parse_row(ReservationWithDetails, data)

        return await self.cache.get_or_load(("reservation", reservation_id), load)

    async def _ensure_available(
        self, room_id: str, check_in: date, check_out: date, exclude_reservation_id: Optional[str] = None,
    ) -> None:
        try:
            available = await self.availability.is_room_available(
                room_id, check_in, check_out, exclude_reservation_id,
            )
        except GatewayError as e:
            logger.error(f"Error checking availability for room {room_id}: {e.message}")
            raise GatewayError(
                "Failed to check room availability",
                status_code=e.status_code, code=e.code, details=e.details,
            ) from e

        if not available:
            raise RoomUnavailableError("Room is not available for the selected dates")

    async def _quote(self, room_id: str, check_in: date, check_out: date) -> PriceBreakdown:
        """Price a stay from the room type's nightly rate."""
        room_row = await self.gateway.select(
            "rooms", columns=ROOM_WITH_TYPE, filters=[eq("id", room_id)], single=True,
        )
        room = parse_row(Room, room_row)
        base_price = room.room_types.base_price if room.room_types else None
        return calculate_reservation_total(check_in, check_out, base_price)

    async def create_reservation(self, draft: ReservationCreate, actor: Profile) -> Reservation:
        """
        Book a room.

        Args:
            draft: Booking form values
            actor: Staff member making the booking

        Returns:
            The created reservation

        Raises:
            BookingValidationError: missing guest, room or dates, or check-out not after check-in
            RoomUnavailableError: the room already has an overlapping booking
            GatewayError: any backend failure
        """
        validate_draft(draft)
        await self._ensure_available(draft.room_id, draft.check_in_date, draft.check_out_date)

        quote = await self._quote(draft.room_id, draft.check_in_date, draft.check_out_date)

        values = draft.model_dump()
        values["created_by"] = actor.id
        values["total_amount"] = quote.total

        try:
            row = await self.gateway.insert("reservations", values)
        except GatewayError as e:
            logger.error(f"Error creating reservation: {e.message}")
            raise

        self.cache.invalidate_for("reservation.create")
        reservation = parse_row(Reservation, row)
        logger.info(
            "Reservation %s created for room %s (%s to %s) by %s",
            reservation.id, reservation.room_id, reservation.check_in_date, reservation.check_out_date, actor.id,
        )
        return reservation

    async def update_reservation(self, reservation_id: str, data: ReservationUpdate) -> Reservation:
        """
        Apply changes. Moving the room or dates re-runs the conflict check
        excluding this booking and re-prices the stay.
        """
        values = data.model_dump(exclude_unset=True)

        if any(values.get(k) for k in ("room_id", "check_in_date", "check_out_date")):
            current = await self.gateway.select(
                "reservations", columns="room_id,check_in_date,check_out_date",
                filters=[eq("id", reservation_id)], single=True,
            )
            room_id = values.get("room_id") or current["room_id"]
            check_in = values.get("check_in_date") or date.fromisoformat(current["check_in_date"])
            check_out = values.get("check_out_date") or date.fromisoformat(current["check_out_date"])
            if check_out <= check_in:
                raise BookingValidationError("Check-out date must be after check-in date")
            await self._ensure_available(room_id, check_in, check_out, exclude_reservation_id=reservation_id)
            values["total_amount"] = (await self._quote(room_id, check_in, check_out)).total

        values["updated_at"] = _now()
        try:
            row = await self.gateway.update(
                "reservations", values, filters=[eq("id", reservation_id)], single=True,
            )
        except GatewayError as e:
            logger.error(f"Error updating reservation {reservation_id}: {e.message}")
            raise

        self.cache.invalidate_for("reservation.update", reservation_id=reservation_id)
        return parse_row(Reservation, row)

    async def cancel_reservation(self, reservation_id: str) -> Reservation:
        row = await self.gateway.update(
            "reservations",
            {"status": ReservationStatus.CANCELLED, "updated_at": _now()},
            filters=[eq("id", reservation_id)],
            single=True,
        )
        self.cache.invalidate_for("reservation.cancel", reservation_id=reservation_id)
        return parse_row(Reservation, row)

    async def _move_guest(
        self,
        reservation_id: str,
        status: ReservationStatus,
        stamp_column: str,
        room_status: RoomStatus,
        mutation: str,
    ) -> str:
        now = _now()
        try:
            reservation = await self.gateway.update(
                "reservations",
                {"status": status, stamp_column: now, "updated_at": now},
                filters=[eq("id", reservation_id)],
                columns="room_id",
                single=True,
            )
        except GatewayError as e:
            logger.error(f"Error setting reservation {reservation_id} to {status.value}: {e.message}")
            raise

        room_id = reservation["room_id"]
        try:
            await self.gateway.update(
                "rooms", {"status": room_status, "updated_at": now}, filters=[eq("id", room_id)],
            )
        except GatewayError as e:
            logger.error(f"Error updating room {room_id} status to {room_status.value}: {e.message}")
            raise
        finally:
            self.cache.invalidate_for(mutation, reservation_id=reservation_id)
        return room_id

    async def check_in(self, reservation_id: str) -> str:
        """Mark the guest arrived and the room occupied. Returns the room id."""
        return await self._move_guest(
            reservation_id, ReservationStatus.CHECKED_IN, "actual_check_in",
            RoomStatus.OCCUPIED, "reservation.check_in",
        )

    async def check_out(self, reservation_id: str) -> str:
        """Mark the guest departed and the room due for cleaning. Returns the room id."""
        return await self._move_guest(
            reservation_id, ReservationStatus.CHECKED_OUT, "actual_check_out",
            RoomStatus.CLEANING, "reservation.check_out",
        )

    async def upcoming_check_ins(self, today: Optional[date] = None) -> List[ReservationWithDetails]:
        """Pending and confirmed arrivals for today and tomorrow."""
        today = today or date.today()
        tomorrow = today + timedelta(days=1)

        async def load():
            data = await self.gateway.select(
                "reservations",
                columns=RESERVATION_DETAILS,
                filters=[
                    in_("status", [ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value]),
                    gte("check_in_date", today),
                    lte("check_in_date", tomorrow),
                ],
                order="check_in_date",
            )
            return parse_rows(ReservationWithDetails, data)

        return await self.cache.get_or_load(("upcoming-checkins", today.isoformat()), load, ttl=UPCOMING_TTL)

    async def upcoming_check_outs(self, today: Optional[date] = None) -> List[ReservationWithDetails]:
        """Checked-in guests due out today or tomorrow."""
        today = today or date.today()
        tomorrow = today + timedelta(days=1)

        async def load():
            data = await self.gateway.select(
                "reservations",
                columns=RESERVATION_DETAILS,
                filters=[
                    eq("status", ReservationStatus.CHECKED_IN.value),
                    gte("check_out_date", today),
                    lte("check_out_date", tomorrow),
                ],
                order="check_out_date",
            )
            return parse_rows(ReservationWithDetails, data)

        return await self.cache.get_or_load(("upcoming-checkouts", today.isoformat()), load, ttl=UPCOMING_TTL)

    async def guest_reservations(self, guest_id: str) -> List[ReservationWithDetails]:
        async def load():
            data = await self.gateway.select(
                "reservations", columns=GUEST_HISTORY, filters=[eq("guest_id", guest_id)],
                order="check_in_date", ascending=False,
            )
            return parse_rows(ReservationWithDetails, data)

        return await self.cache.get_or_load(("guest-reservations", guest_id), load)

    async def _stay(self, reservation_id: str) -> dict:
        return await self.gateway.select(
            "reservations",
            columns="room_id,status,check_in_date,check_out_date,num_adults,num_children",
            filters=[eq("id", reservation_id)],
            single=True,
        )

    async def room_change_options(self, reservation_id: str) -> List[Room]:
        """Available rooms, other than the current one, whose type fits the party."""
        stay = await self._stay(reservation_id)
        data = await self.gateway.select(
            "rooms", columns=ROOM_WITH_TYPE,
            filters=[eq("status", RoomStatus.AVAILABLE.value), eq("is_active", True)],
            order="room_number",
        )
        return [
            room for room in parse_rows(Room, data)
            if room.id != stay["room_id"]
            and room.room_types is not None
            and (room.room_types.max_adults or 0) >= stay["num_adults"]
            and (room.room_types.max_children or 0) >= stay["num_children"]
        ]

    async def change_room(self, reservation_id: str, new_room_id: str, reason: str, actor: Profile) -> Reservation:
        """
        Move a booking to another room for the same dates. The total is kept.

        A checked-in guest's old room is freed and the new room marked occupied.

        Raises:
            BookingValidationError: no reason given, or the new room is the current one
            RoomUnavailableError: the new room is booked for part of the stay
        """
        if not reason or not reason.strip():
            raise BookingValidationError("A reason is required to change rooms")
        stay = await self._stay(reservation_id)
        old_room_id = stay["room_id"]
        if new_room_id == old_room_id:
            raise BookingValidationError("The guest is already in this room")

        await self._ensure_available(
            new_room_id,
            date.fromisoformat(stay["check_in_date"]),
            date.fromisoformat(stay["check_out_date"]),
            exclude_reservation_id=reservation_id,
        )

        now = _now()
        try:
            row = await self.gateway.update(
                "reservations", {"room_id": new_room_id, "updated_at": now},
                filters=[eq("id", reservation_id)], single=True,
            )
            if stay["status"] == ReservationStatus.CHECKED_IN.value:
                await self.gateway.update(
                    "rooms", {"status": RoomStatus.AVAILABLE, "updated_at": now}, filters=[eq("id", old_room_id)],
                )
                await self.gateway.update(
                    "rooms", {"status": RoomStatus.OCCUPIED, "updated_at": now}, filters=[eq("id", new_room_id)],
                )
        except GatewayError as e:
            logger.error(f"Error moving reservation {reservation_id} to room {new_room_id}: {e.message}")
            raise
        finally:
            self.cache.invalidate_for("reservation.change_room", reservation_id=reservation_id)

        logger.info(
            "Reservation %s moved from room %s to %s by %s: %s",
            reservation_id, old_room_id, new_room_id, actor.id, reason.strip(),
        )
        return parse_row(Reservation, row)

    async def delete_reservation(self, reservation_id: str) -> None:
        """Remove a booking outright. A guest in house must be checked out first."""
        stay = await self._stay(reservation_id)
        if stay["status"] == ReservationStatus.CHECKED_IN.value:
            raise BookingValidationError("Check the guest out before deleting the reservation")
        try:
            await self.gateway.delete("reservations", filters=[eq("id", reservation_id)])
        except GatewayError as e:
            logger.error(f"Error deleting reservation {reservation_id}: {e.message}")
            raise
        self.cache.invalidate_for("reservation.delete", reservation_id=reservation_id)
        logger.info("Reservation %s deleted", reservation_id)
