"""
Common Dependencies for FastAPI Routes
"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Callable
import logging

import httpx

from hotelops.config import settings
from hotelops.errors import RecordNotFound
from hotelops.schemas.profile import Profile
from hotelops.services.authorization import Authorizer
from hotelops.services.availability_service import AvailabilityService
from hotelops.services.cache import QueryCache
from hotelops.services.financial_report_service import FinancialReportService
from hotelops.services.gateway import SupabaseGateway, eq, parse_row
from hotelops.services.guest_document_service import GuestDocumentService
from hotelops.services.guest_service import GuestService
from hotelops.services.invoice_service import InvoiceService
from hotelops.services.payment_service import PaymentService
from hotelops.services.pricing_rule_service import PricingRuleService
from hotelops.services.reservation_service import ReservationService
from hotelops.services.room_service import RoomService, RoomTypeService
from hotelops.utils.security import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_cache(request: Request) -> QueryCache:
    return request.app.state.query_cache


def get_gateway(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> SupabaseGateway:
    """Gateway acting with the caller's token, so row-level security applies to them."""
    return SupabaseGateway(
        client,
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY,
        access_token=credentials.credentials,
    )


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    gateway: SupabaseGateway = Depends(get_gateway),
) -> Profile:
    """
    Dependency to get the profile of the authenticated staff member
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: str = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    try:
        row = await gateway.select("profiles", filters=[eq("id", user_id)], single=True)
    except RecordNotFound:
        logger.warning(f"Token for {user_id} has no profile")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found",
        )

    profile = parse_row(Profile, row)
    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    return profile


async def get_authorizer(actor: Profile = Depends(get_current_actor)) -> Authorizer:
    return Authorizer(actor)


def require_permission(*keys: str, require_all: bool = False) -> Callable:
    """
    Dependency factory to require permission(s).
    Admin/manager roles always pass. With several keys any one suffices
    unless ``require_all`` is set.

    Usage:
        actor: Profile = Depends(require_permission("rooms.update"))
        or
        @router.get("/", dependencies=[Depends(require_permission("billing.view", "analytics.financial"))])
    """
    async def permission_checker(actor: Profile = Depends(get_current_actor)) -> Profile:
        authorizer = Authorizer(actor)
        granted = (
            authorizer.has_all_permissions(keys) if require_all
            else authorizer.has_any_permission(keys)
        )
        if not granted:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission required: {', '.join(keys)}",
            )
        return actor

    return permission_checker


# ============== Services ==============

def get_room_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> RoomService:
    return RoomService(gateway, cache)


def get_room_type_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> RoomTypeService:
    return RoomTypeService(gateway, cache)


def get_guest_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> GuestService:
    return GuestService(gateway, cache)


def get_guest_document_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> GuestDocumentService:
    return GuestDocumentService(gateway, cache)


def get_availability_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> AvailabilityService:
    return AvailabilityService(gateway, cache)


def get_reservation_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> ReservationService:
    return ReservationService(gateway, cache)


def get_invoice_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> InvoiceService:
    return InvoiceService(gateway, cache)


def get_payment_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> PaymentService:
    return PaymentService(gateway, cache)


def get_pricing_rule_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> PricingRuleService:
    return PricingRuleService(gateway, cache)


def get_financial_report_service(
    gateway: SupabaseGateway = Depends(get_gateway), cache: QueryCache = Depends(get_cache),
) -> FinancialReportService:
    return FinancialReportService(gateway, cache)
