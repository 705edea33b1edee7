"""
Guest Service
Guest records: search, create/update, soft delete, duplicate detection and merging.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional
import logging

from hotelops.errors import GatewayError, GatewayResponseError
from hotelops.schemas.guest import (
    Guest, GuestCreate, GuestDetail, GuestSearchFilters, GuestUpdate, GuestWithStats,
)
from hotelops.schemas.profile import Profile
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import (
    SupabaseGateway, any_eq, any_ilike, eq, not_is, parse_row, parse_rows,
)

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = ("first_name", "last_name", "email", "phone")

GUEST_DETAIL = (
    "*,"
    "reservations(id,check_in_date,check_out_date,status,total_amount,room_id,"
    "rooms(room_number,room_type_id,room_types(name))),"
    "guest_documents(id,document_type,document_name,file_size,created_at)"
)


def _stay_count(row: Any) -> int:
    """Read the ``reservations(count)`` aggregate from a guest row."""
    aggregate = row.pop("reservations", None) if isinstance(row, dict) else None
    if isinstance(aggregate, list) and aggregate and isinstance(aggregate[0], dict):
        return int(aggregate[0].get("count", 0))
    return 0


class GuestService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def list_guests(self, filters: GuestSearchFilters = None) -> List[GuestWithStats]:
        filters = filters or GuestSearchFilters()
        predicates = []
        if filters.search_term:
            predicates.append(any_ilike(SEARCH_COLUMNS, filters.search_term))
        if filters.nationality:
            predicates.append(eq("nationality", filters.nationality))
        if filters.is_active is not None:
            predicates.append(eq("is_active", filters.is_active))
        if filters.has_email:
            predicates.append(not_is("email", None))
        if filters.has_phone:
            predicates.append(not_is("phone", None))

        async def load():
            data = await self.gateway.select(
                "guests", columns="*,reservations(count)", filters=predicates,
                order="created_at", ascending=False,
            )
            if not isinstance(data, list):
                raise GatewayResponseError("Expected a list of guest rows", code="invalid_response")
            guests = []
            for row in data:
                row = dict(row)
                total_stays = _stay_count(row)
                guest = parse_row(GuestWithStats, row)
                guest.total_stays = total_stays
                guests.append(guest)
            return guests

        key = ("guests", filters.model_dump_json())
        return await self.cache.get_or_load(key, load)

    async def get_guest(self, guest_id: str) -> GuestDetail:
        async def load():
            data = await self.gateway.select(
                "guests", columns=GUEST_DETAIL, filters=[eq("id", guest_id)], single=True,
            )
            return parse_row(GuestDetail, data)

        return await self.cache.get_or_load(("guest", guest_id), load)

    async def find_duplicates(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        id_number: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> List[Guest]:
        """
        Guests sharing an email, phone or ID number with the given values.

        Empty when none is given. Always read fresh from the backend.
        """
        conditions = {
            column: value.strip()
            for column, value in (("email", email), ("phone", phone), ("id_number", id_number))
            if value and value.strip()
        }
        if not conditions:
            return []

        data = await self.gateway.select("guests", filters=[any_eq(conditions)], order="created_at")
        return [guest for guest in parse_rows(Guest, data) if guest.id != exclude_id]

    async def create_guest(self, data: GuestCreate, actor: Profile) -> Guest:
        values = data.model_dump()
        values["created_by"] = actor.id
        row = await self.gateway.insert("guests", values)
        self.cache.invalidate_for("guest.create")
        return parse_row(Guest, row)

    async def update_guest(self, guest_id: str, data: GuestUpdate) -> Guest:
        values = data.model_dump(exclude_unset=True)
        values["updated_at"] = datetime.now(timezone.utc)
        row = await self.gateway.update("guests", values, filters=[eq("id", guest_id)], single=True)
        self.cache.invalidate_for("guest.update", guest_id=guest_id)
        return parse_row(Guest, row)

    async def _set_active(self, guest_id: str, is_active: bool) -> None:
        await self.gateway.update(
            "guests",
            {"is_active": is_active, "updated_at": datetime.now(timezone.utc)},
            filters=[eq("id", guest_id)],
        )

    async def deactivate_guest(self, guest_id: str) -> None:
        """Soft delete: the guest stays on file for reservation history."""
        await self._set_active(guest_id, False)
        self.cache.invalidate_for("guest.deactivate", guest_id=guest_id)

    async def restore_guest(self, guest_id: str) -> None:
        await self._set_active(guest_id, True)
        self.cache.invalidate_for("guest.restore", guest_id=guest_id)

    async def merge_guests(self, keep_id: str, remove_id: str) -> None:
        """
        Fold a duplicate guest into another.

        Reservations move first, then documents, then the duplicate row is
        deleted. A failure stops the sequence; earlier steps are not undone.
        """
        if keep_id == remove_id:
            raise ValueError("Cannot merge a guest into itself")

        try:
            await self.gateway.update("reservations", {"guest_id": keep_id}, filters=[eq("guest_id", remove_id)])
            await self.gateway.update("guest_documents", {"guest_id": keep_id}, filters=[eq("guest_id", remove_id)])
            await self.gateway.delete("guests", filters=[eq("id", remove_id)])
        except GatewayError as e:
            logger.error(f"Merging guest {remove_id} into {keep_id} failed: {e.message}")
            raise
        finally:
            self.cache.invalidate_for("guest.merge")
