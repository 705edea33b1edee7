"""
Authentication and Access API Routes
Sign-in itself happens against the auth backend; these routes describe what
the signed-in staff member may do.
"""
from fastapi import APIRouter, Depends, Query

from hotelops.config.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS
from hotelops.dependencies import get_authorizer, get_current_actor
from hotelops.schemas.profile import (
    MeResponse,
    PermissionKeyInfo,
    PermissionRegistryResponse,
    Profile,
    RouteCheckResponse,
)
from hotelops.services.authorization import Authorizer

router = APIRouter()


@router.get("/me", response_model=MeResponse)
async def get_me(
    actor: Profile = Depends(get_current_actor),
    authorizer: Authorizer = Depends(get_authorizer),
):
    """
    Current profile with its role flags, granted permissions and reachable routes
    """
    return MeResponse(
        profile=actor,
        role=actor.role,
        permissions=authorizer.granted_permissions(),
        routes=authorizer.accessible_routes(),
        is_admin=authorizer.is_admin,
        is_manager=authorizer.is_manager,
        is_receptionist=authorizer.is_receptionist,
        is_accounts=authorizer.is_accounts,
        is_housekeeping=authorizer.is_housekeeping,
    )


@router.get("/permissions", response_model=PermissionRegistryResponse)
async def get_permission_registry(actor: Profile = Depends(get_current_actor)):
    """Permission registry and the fixed per-role grants."""
    permissions = [
        PermissionKeyInfo(key=key, label=info["label"], category=info["category"])
        for key, info in ALL_PERMISSIONS.items()
    ]
    roles = {
        role: [key for key in ALL_PERMISSIONS if key in granted]
        for role, granted in ROLE_PERMISSIONS.items()
    }
    return PermissionRegistryResponse(permissions=permissions, roles=roles)


@router.get("/routes/check", response_model=RouteCheckResponse)
async def check_route(
    route: str = Query(..., description="UI route, e.g. /front-desk"),
    authorizer: Authorizer = Depends(get_authorizer),
):
    return RouteCheckResponse(route=route, allowed=authorizer.can_access_route(route))
