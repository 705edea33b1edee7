"""Schemas for guest identity documents."""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class GuestDocument(BaseModel):
    id: str
    guest_id: str
    document_type: str
    document_name: str
    file_path: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SignedUrlResponse(BaseModel):
    signed_url: str
    expires_in: int
