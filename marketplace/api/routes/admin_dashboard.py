# marketplace/api/routes/admin_dashboard.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from marketplace.core.security import require_admin
from marketplace.db.base import get_store
from marketplace.schemas.dashboard import AdminDashboardResponse, AnalyticsResponse, TopServiceItem
from marketplace.services import analytics
from marketplace.store.base import RecordStore

router = APIRouter(prefix="/admin", tags=["admin-dashboard"])

RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}


@router.get("/dashboard", response_model=AdminDashboardResponse)
def admin_dashboard(store: RecordStore = Depends(get_store), admin: dict = Depends(require_admin)):
    users = store.list("users")
    providers = store.list("providers")
    bookings = store.list("bookings")

    return AdminDashboardResponse(
        total_users=len(users),
        total_providers=len(providers),
        total_bookings=len(bookings),
        total_revenue=float(analytics.revenue(bookings)),
        pending_providers=sum(1 for p in providers if p.get("status") == "pending"),
        bookings_by_status=analytics.count_by_status(bookings),
    )


@router.get("/analytics", response_model=AnalyticsResponse)
def admin_analytics(
    range: str = Query("30d", pattern="^(7d|30d|90d|1y|all)$"),
    limit: int = Query(5, ge=1, le=50),
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    bookings = store.list("bookings")
    services = store.list("services", order_by="created_at")

    if range != "all":
        bookings = analytics.created_within(bookings, RANGE_DAYS[range], datetime.now(timezone.utc))

    counts = analytics.booking_counts_by_service(bookings)
    top = [
        TopServiceItem(service_id=s["id"], service_name=s["name"], total_bookings=counts.get(s["id"], 0))
        for s in analytics.top_services(bookings, services, limit)
    ]

    return AnalyticsResponse(
        range=range,
        total_revenue=float(analytics.revenue(bookings)),
        total_bookings=len(bookings),
        active_users=analytics.active_customers(bookings),
        avg_order_value=float(analytics.average_order_value(bookings)),
        bookings_by_status=analytics.count_by_status(bookings),
        top_services=top,
    )
