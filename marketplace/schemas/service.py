# marketplace/schemas/service.py

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from marketplace.schemas.provider import ProviderResponse


# Shared fields
class ServiceBase(BaseModel):
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    price: float = Field(..., ge=0)
    duration: Optional[int] = Field(None, ge=1, description="Minutes")
    is_active: bool = True


# Admin creates service
class ServiceCreate(ServiceBase):
    pass


# Admin updates service
class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


# What API returns
class ServiceResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    price: float
    duration: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceDetailResponse(ServiceResponse):
    providers: List[ProviderResponse] = []


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    service_count: int = 0

    class Config:
        from_attributes = True
