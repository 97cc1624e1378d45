# marketplace/schemas/provider.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class ProviderUpdate(BaseModel):
    business_name: Optional[str] = None
    description: Optional[str] = None
    services: Optional[List[str]] = None
    is_available: Optional[bool] = None


class ProviderResponse(BaseModel):
    id: str
    user_id: str
    business_name: Optional[str] = None
    description: Optional[str] = None
    services: List[str] = []
    rating: Optional[float] = None
    review_count: int = 0
    total_jobs: int = 0
    is_available: bool = True
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
