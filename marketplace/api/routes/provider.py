# marketplace/api/routes/provider.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from marketplace.core.errors import NotFound
from marketplace.core.security import get_current_user, require_role
from marketplace.db.base import get_store
from marketplace.schemas.dashboard import EarningsResponse, ProviderDashboardResponse
from marketplace.schemas.provider import ProviderResponse, ProviderUpdate
from marketplace.services import analytics
from marketplace.services.lifecycle import BookingStatus, status_where
from marketplace.store.base import RecordStore

router = APIRouter(prefix="/provider", tags=["provider"])


def _own_profile(store: RecordStore, current_user: dict) -> dict:
    profiles = store.list("providers", where={"user_id": current_user["id"]}, limit=1)
    if not profiles:
        raise NotFound("Provider profile not found")
    return profiles[0]


# --------------------------
# 1) /provider/profile
# --------------------------
@router.get("/profile", response_model=ProviderResponse)
def get_profile(store: RecordStore = Depends(get_store), current_user: dict = Depends(get_current_user)):
    require_role(current_user, "provider")
    return _own_profile(store, current_user)


@router.put("/profile", response_model=ProviderResponse)
def update_profile(
    data: ProviderUpdate,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "provider")
    profile = _own_profile(store, current_user)

    changes = data.model_dump(exclude_unset=True)
    for service_id in changes.get("services") or []:
        if store.get("services", service_id) is None:
            raise HTTPException(status_code=404, detail=f"Service {service_id} not found")

    return store.update("providers", profile["id"], changes)


# --------------------------
# 2) /provider/dashboard
# --------------------------
@router.get("/dashboard", response_model=ProviderDashboardResponse)
def provider_dashboard(store: RecordStore = Depends(get_store), current_user: dict = Depends(get_current_user)):
    require_role(current_user, "provider")

    bookings = store.list(
        "bookings",
        where={"provider_id": current_user["id"]},
        order_by={"created_at": "desc"},
    )
    counts = analytics.count_by_status(bookings)
    now = datetime.now(timezone.utc)
    average_rating, review_count = analytics.rating_summary(bookings)

    return ProviderDashboardResponse(
        pending_requests=counts[BookingStatus.PENDING.value],
        active_jobs=counts[BookingStatus.ACCEPTED.value] + counts[BookingStatus.IN_PROGRESS.value],
        today_bookings=len(analytics.created_since(bookings, analytics.period_start("today", now))),
        completed=counts[BookingStatus.COMPLETED.value],
        total_earnings=float(analytics.revenue(bookings)),
        completion_rate=analytics.completion_rate(bookings),
        average_rating=average_rating,
        review_count=review_count,
        recent_bookings=bookings[:5],
    )


# --------------------------
# 3) /provider/earnings?period=
# --------------------------
@router.get("/earnings", response_model=EarningsResponse)
def provider_earnings(
    period: str = Query("all", pattern="^(today|week|month|all)$"),
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "provider")

    completed = store.list(
        "bookings",
        where={"AND": [{"provider_id": current_user["id"]}, status_where(BookingStatus.COMPLETED)]},
        order_by={"completed_at": "desc"},
    )
    now = datetime.now(timezone.utc)
    earnings = analytics.earnings_by_period(completed, now)
    jobs = analytics.completed_since(completed, analytics.period_start(period, now))

    return EarningsResponse(
        today=float(earnings["today"]),
        week=float(earnings["week"]),
        month=float(earnings["month"]),
        total=float(earnings["total"]),
        period=period,
        period_jobs=len(jobs),
        period_earnings=float(analytics.revenue(jobs)),
        jobs=jobs,
    )
