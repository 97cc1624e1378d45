# marketplace/schemas/admin.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from marketplace.schemas.provider import ProviderResponse


class UserListItem(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminStatusUpdate(BaseModel):
    status: str
    cancellation_reason: Optional[str] = None


class ProviderListItem(ProviderResponse):
    email: Optional[str] = None
    display_name: Optional[str] = None
