"""
Dashboard API Endpoints
One summary endpoint whose sections depend on what the caller's role may see.
"""
from datetime import date
from typing import Awaitable, Callable, Dict, List, Sequence, Tuple, Union
from fastapi import APIRouter, Depends
import logging

from hotelops.dependencies import (
    get_availability_service, get_reservation_service, get_room_service, require_permission,
)
from hotelops.schemas.dashboard import DashboardResponse, FrontDeskSummary, RoomStatusCounts
from hotelops.schemas.profile import Profile
from hotelops.schemas.room import RoomStatus
from hotelops.services.authorization import Authorizer, guard
from hotelops.services.availability_service import AvailabilityService
from hotelops.services.reservation_service import ReservationService
from hotelops.services.room_service import RoomService

logger = logging.getLogger(__name__)

router = APIRouter()

# section -> permission(s) that reveal it (any of a list)
DASHBOARD_SECTIONS: List[Tuple[str, Union[str, Sequence[str]]]] = [
    ("rooms", "rooms.view"),
    ("front_desk", ["frontdesk.access", "frontdesk.checkin", "frontdesk.checkout"]),
    ("occupancy", ["analytics.view", "analytics.operational"]),
]


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    actor: Profile = Depends(require_permission("dashboard.view")),
    rooms: RoomService = Depends(get_room_service),
    reservations: ReservationService = Depends(get_reservation_service),
    availability: AvailabilityService = Depends(get_availability_service),
):
    """
    Role-shaped dashboard

    Housekeeping sees room status counts, the front desk also sees today's
    arrivals and departures, accounts sees occupancy. Sections the caller may
    not see are left out and listed in ``notices``.
    """
    authorizer = Authorizer(actor)
    today = date.today()

    async def room_counts():
        all_rooms = await rooms.list_rooms()
        by_status = {s.value: 0 for s in RoomStatus}
        for room in all_rooms:
            by_status[room.status.value] += 1
        return RoomStatusCounts(total=len(all_rooms), by_status=by_status)

    async def front_desk():
        return FrontDeskSummary(
            arrivals=await reservations.upcoming_check_ins(today),
            departures=await reservations.upcoming_check_outs(today),
        )

    async def occupancy():
        return await availability.occupancy_rate(today, today)

    loaders: Dict[str, Callable[[], Awaitable]] = {
        "rooms": room_counts,
        "front_desk": front_desk,
        "occupancy": occupancy,
    }

    response = DashboardResponse(role=actor.role)
    for section, permissions in DASHBOARD_SECTIONS:
        allowed = guard(authorizer, loaders[section], permissions, show_unauthorized=True)
        if callable(allowed):
            setattr(response, section, await allowed())
        else:
            response.notices.append(f"{section}: {allowed}")

    logger.debug("Dashboard for %s (%s) with %d hidden sections", actor.id, actor.role, len(response.notices))
    return response
