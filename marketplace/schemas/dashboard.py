# marketplace/schemas/dashboard.py
from pydantic import BaseModel
from typing import Dict, List, Optional

from marketplace.schemas.booking import BookingResponse


class ProviderDashboardResponse(BaseModel):
    pending_requests: int
    active_jobs: int
    today_bookings: int
    completed: int
    total_earnings: float
    completion_rate: float
    average_rating: Optional[float] = None
    review_count: int = 0
    recent_bookings: List[BookingResponse]


class EarningsResponse(BaseModel):
    today: float
    week: float
    month: float
    total: float
    period: str
    period_jobs: int
    period_earnings: float
    jobs: List[BookingResponse]


class TopServiceItem(BaseModel):
    service_id: str
    service_name: str
    total_bookings: int


class AdminDashboardResponse(BaseModel):
    total_users: int
    total_providers: int
    total_bookings: int
    total_revenue: float
    pending_providers: int
    bookings_by_status: Dict[str, int]


class AnalyticsResponse(BaseModel):
    range: str
    total_revenue: float
    total_bookings: int
    active_users: int
    avg_order_value: float
    bookings_by_status: Dict[str, int]
    top_services: List[TopServiceItem]
