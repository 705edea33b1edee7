"""
Change feed schemas
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any


class ChangeEvent(BaseModel):
    table: str
    type: str  # INSERT, UPDATE or DELETE
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None
    commit_timestamp: Optional[str] = None
