"""
Profile and access schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class Profile(BaseModel):
    """Row of the ``profiles`` table; ``role`` is kept as the raw string."""
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MeResponse(BaseModel):
    profile: Profile
    role: str
    permissions: List[str]
    routes: List[str]
    is_admin: bool
    is_manager: bool
    is_receptionist: bool
    is_accounts: bool
    is_housekeeping: bool


class PermissionKeyInfo(BaseModel):
    key: str
    label: str
    category: str


class PermissionRegistryResponse(BaseModel):
    permissions: List[PermissionKeyInfo]
    roles: dict


class RouteCheckResponse(BaseModel):
    route: str
    allowed: bool
