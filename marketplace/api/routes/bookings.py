import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from marketplace.api.deps import display_name, get_lifecycle
from marketplace.core.security import get_current_user, require_role
from marketplace.db.base import get_store
from marketplace.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingResponse,
    CancelRequest,
    RatingCreate,
    TransitionRequest,
)
from marketplace.services.analytics import rating_summary
from marketplace.services.lifecycle import (
    ACTIVE_STATUSES,
    BookingLifecycle,
    BookingStatus,
    allowed_targets,
    has_status,
    status_where,
)
from marketplace.store.base import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])

CUSTOMER_TABS = {
    "active": ACTIVE_STATUSES,
    "completed": frozenset({BookingStatus.COMPLETED}),
    "cancelled": frozenset({BookingStatus.CANCELLED, BookingStatus.REJECTED}),
}



def _refresh_provider_stats(store: RecordStore, provider_id: str) -> None:
    """Recompute rating and job count on the provider profile from its bookings."""
    profiles = store.list("providers", where={"user_id": provider_id}, limit=1)
    if not profiles:
        return
    completed = store.list(
        "bookings",
        where={"AND": [{"provider_id": provider_id}, status_where(BookingStatus.COMPLETED)]},
    )
    average, count = rating_summary(completed)
    store.update(
        "providers",
        profiles[0]["id"],
        {"rating": average, "review_count": count, "total_jobs": len(completed)},
    )


def _load_visible_booking(lifecycle: BookingLifecycle, booking_id: str, current_user: dict) -> dict:
    booking = lifecycle.get(booking_id)
    role = current_user.get("role")
    if role == "customer" and booking["customer_id"] != current_user["id"]:
        raise HTTPException(status_code=403, detail="Not your booking")
    if role == "provider" and booking["provider_id"] != current_user["id"]:
        raise HTTPException(status_code=403, detail="Not your booking")
    return booking


def _change_status(
    lifecycle: BookingLifecycle,
    booking_id: str,
    target: str,
    current_user: dict,
    reason: Optional[str] = None,
) -> dict:
    booking = lifecycle.get(booking_id)
    updated = lifecycle.transition(
        booking,
        current_user["role"],
        target,
        {"cancellation_reason": reason},
        actor_id=current_user["id"],
    )
    if updated["status"] == BookingStatus.COMPLETED.value:
        _refresh_provider_stats(lifecycle.store, updated["provider_id"])
    return updated


# Customer creates booking

@router.post("/customer", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking: BookingCreate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")
    return lifecycle.create(customer_id=current_user["id"], **booking.model_dump())


# Customer views their bookings, optionally by tab

@router.get("/customer/me", response_model=List[BookingResponse])
def customer_my_bookings(
    tab: str = Query("all", pattern="^(all|active|completed|cancelled)$"),
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")

    bookings = store.list(
        "bookings",
        where={"customer_id": current_user["id"]},
        order_by={"created_at": "desc"},
    )
    if tab != "all":
        bookings = [b for b in bookings if has_status(b, CUSTOMER_TABS[tab])]
    return bookings


# Provider: incoming requests (pending)

@router.get("/provider/requests", response_model=List[BookingResponse])
def provider_requests(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "provider")

    return store.list(
        "bookings",
        where={"AND": [{"provider_id": current_user["id"]}, status_where(BookingStatus.PENDING)]},
        order_by={"created_at": "desc"},
    )


# Provider: active jobs (accepted / in progress)

@router.get("/provider/jobs", response_model=List[BookingResponse])
def provider_jobs(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "provider")

    return store.list(
        "bookings",
        where={
            "AND": [
                {"provider_id": current_user["id"]},
                status_where(BookingStatus.ACCEPTED, BookingStatus.IN_PROGRESS),
            ]
        },
        order_by={"scheduled_date": "asc", "scheduled_time": "asc"},
    )


# Booking tracking: details plus what the caller may do next

@router.get("/{booking_id}", response_model=BookingDetailResponse)
def get_booking(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    booking = _load_visible_booking(lifecycle, booking_id, current_user)
    store = lifecycle.store

    service = store.get("services", booking["service_id"])
    provider = store.get("users", booking["provider_id"])
    customer = store.get("users", booking["customer_id"])
    actions = [s.value for s in allowed_targets(booking["status"], current_user["role"])]

    return BookingDetailResponse(
        **booking,
        service_name=service["name"] if service else None,
        provider_name=display_name(provider),
        customer_name=display_name(customer),
        allowed_actions=actions,
    )


@router.post("/{booking_id}/transition", response_model=BookingResponse)
def transition_booking(
    booking_id: str,
    body: TransitionRequest,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    return _change_status(lifecycle, booking_id, body.status, current_user, body.cancellation_reason)


@router.post("/{booking_id}/accept", response_model=BookingResponse)
def accept_booking(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    return _change_status(lifecycle, booking_id, BookingStatus.ACCEPTED.value, current_user)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
def reject_booking(
    booking_id: str,
    body: Optional[CancelRequest] = None,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    reason = body.reason if body else None
    return _change_status(lifecycle, booking_id, BookingStatus.REJECTED.value, current_user, reason)


@router.post("/{booking_id}/start", response_model=BookingResponse)
def start_booking(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    return _change_status(lifecycle, booking_id, BookingStatus.IN_PROGRESS.value, current_user)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    return _change_status(lifecycle, booking_id, BookingStatus.COMPLETED.value, current_user)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    body: Optional[CancelRequest] = None,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    reason = body.reason if body else None
    return _change_status(lifecycle, booking_id, BookingStatus.CANCELLED.value, current_user, reason)


# Customer rates a completed booking (once)

@router.post("/{booking_id}/rating", response_model=BookingResponse)
def rate_booking(
    booking_id: str,
    body: RatingCreate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")

    booking = lifecycle.get(booking_id)
    updated = lifecycle.attach_rating(booking, body.rating, body.review, actor_id=current_user["id"])

    _refresh_provider_stats(lifecycle.store, updated["provider_id"])
    return updated
