from pydantic import BaseModel, Field, conint
from datetime import date, time, datetime
from typing import List, Optional

# --- CREATE (Customer) ---
class BookingCreate(BaseModel):
    service_id: str
    provider_id: str
    scheduled_date: date
    scheduled_time: time
    address: str = Field(..., min_length=1)
    notes: Optional[str] = None


# --- STATUS CHANGE (any role, checked by the lifecycle) ---
class TransitionRequest(BaseModel):
    status: str = Field(
        ...,
        description="Target status: accepted, rejected, in_progress, completed, cancelled"
    )
    cancellation_reason: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


# --- RATING (Customer, completed bookings only) ---
class RatingCreate(BaseModel):
    rating: conint(ge=1, le=5) = Field(..., description="Rating 1-5")
    review: Optional[str] = None


# --- RESPONSE ---
class BookingResponse(BaseModel):
    id: str
    customer_id: str
    provider_id: str
    service_id: str
    scheduled_date: date
    scheduled_time: time
    address: str
    notes: Optional[str] = None
    total_amount: float
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    rating: Optional[int] = None
    review: Optional[str] = None

    class Config:
        from_attributes = True


class BookingDetailResponse(BookingResponse):
    service_name: Optional[str] = None
    provider_name: Optional[str] = None
    customer_name: Optional[str] = None
    allowed_actions: List[str] = []
