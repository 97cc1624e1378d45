# marketplace/api/routes/admin.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from marketplace.api.deps import display_name, get_lifecycle, lookup
from marketplace.core.errors import NotFound
from marketplace.core.security import require_admin
from marketplace.db.base import get_store
from marketplace.schemas.admin import AdminStatusUpdate, ProviderListItem, UserListItem
from marketplace.schemas.booking import BookingDetailResponse, BookingResponse
from marketplace.schemas.provider import ProviderResponse
from marketplace.schemas.service import (
    CategoryCreate,
    CategoryResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from marketplace.services.filtering import filter_records
from marketplace.services.lifecycle import BookingLifecycle, allowed_targets, has_status, normalize_status
from marketplace.store.base import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# -------------------------
# 1. Users: search, role filter, delete
# -------------------------
@router.get("/users", response_model=List[UserListItem])
def list_users(
    q: Optional[str] = Query(None, description="Matches display name and email"),
    role: Optional[str] = Query(None, description="customer/provider/admin or all"),
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    users = store.list("users", order_by={"created_at": "desc"})
    return filter_records(users, q, ("display_name", "email"), role=role)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    if user_id == admin["id"]:
        raise HTTPException(status_code=400, detail="Admins cannot delete themselves")
    if store.get("users", user_id) is None:
        raise NotFound("User not found")

    # bookings are kept, so their customer and provider must stay resolvable
    has_bookings = store.list(
        "bookings",
        where={"OR": [{"customer_id": user_id}, {"provider_id": user_id}]},
        limit=1,
    )
    if has_bookings:
        raise HTTPException(status_code=400, detail="User has bookings and cannot be deleted")

    for profile in store.list("providers", where={"user_id": user_id}):
        store.delete("providers", profile["id"])
    store.delete("users", user_id)
    logger.info("User deleted", extra={"user_id": user_id})


# --------------------------------------------------
# 2. Providers: search, approval status filter, approve / reject
# --------------------------------------------------
@router.get("/providers", response_model=List[ProviderListItem])
def list_providers(
    q: Optional[str] = Query(None, description="Matches business name, name and email"),
    status: Optional[str] = Query(None, description="approved/pending/rejected or all"),
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    users = lookup(store, "users")
    providers = []
    for profile in store.list("providers", order_by={"created_at": "desc"}):
        user = users.get(profile["user_id"]) or {}
        providers.append({**profile, "email": user.get("email"), "display_name": user.get("display_name")})

    return filter_records(providers, q, ("business_name", "display_name", "email"), status=status)


def _set_provider_status(store: RecordStore, provider_id: str, new_status: str) -> dict:
    if store.get("providers", provider_id) is None:
        raise NotFound("Provider not found")
    profile = store.update("providers", provider_id, {"status": new_status})
    logger.info("Provider %s", new_status, extra={"user_id": profile["user_id"]})
    return profile


@router.put("/providers/{provider_id}/approve", response_model=ProviderResponse)
def approve_provider(
    provider_id: str,
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    return _set_provider_status(store, provider_id, "approved")


@router.put("/providers/{provider_id}/reject", response_model=ProviderResponse)
def reject_provider(
    provider_id: str,
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    return _set_provider_status(store, provider_id, "rejected")


# --------------------------------------------------
# 3. Bookings: search, status filter, status change
# --------------------------------------------------
@router.get("/bookings", response_model=List[BookingDetailResponse])
def admin_list_bookings(
    q: Optional[str] = Query(None, description="Matches service name, customer name and booking id"),
    status: Optional[str] = Query(None, description="Booking status or all"),
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    users = lookup(store, "users")
    services = lookup(store, "services")

    rows = []
    for booking in store.list("bookings", order_by={"created_at": "desc"}):
        service = services.get(booking["service_id"])
        rows.append({
            **booking,
            "service_name": service["name"] if service else None,
            "customer_name": display_name(users.get(booking["customer_id"])),
            "provider_name": display_name(users.get(booking["provider_id"])),
            "allowed_actions": [s.value for s in allowed_targets(booking["status"], "admin")],
        })

    rows = filter_records(rows, q, ("service_name", "customer_name", "id"))
    if status and status != "all":
        try:
            wanted = {normalize_status(status)}
        except ValueError:
            return []
        rows = [r for r in rows if has_status(r, wanted)]
    return rows


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
def admin_update_booking_status(
    booking_id: str,
    body: AdminStatusUpdate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    admin: dict = Depends(require_admin),
):
    booking = lifecycle.get(booking_id)
    return lifecycle.transition(
        booking,
        "admin",
        body.status,
        {"cancellation_reason": body.cancellation_reason},
        actor_id=admin["id"],
    )


# --------------------------------------------------
# 4. Service catalog and categories
# --------------------------------------------------
@router.get("/services", response_model=List[ServiceResponse])
def admin_list_services(
    q: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    services = store.list("services", order_by={"created_at": "desc"})
    return filter_records(services, q, ("name", "description"), category_id=category_id)


def _check_category(store: RecordStore, category_id: Optional[str]) -> None:
    if category_id and store.get("service_categories", category_id) is None:
        raise HTTPException(status_code=404, detail="Category not found")


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    service_data: ServiceCreate,
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    _check_category(store, service_data.category_id)
    return store.create("services", service_data.model_dump())


@router.put("/services/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: str,
    service_data: ServiceUpdate,
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    changes = service_data.model_dump(exclude_unset=True)
    for field in ("name", "price", "is_active"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
    _check_category(store, changes.get("category_id"))
    return store.update("services", service_id, changes)


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: str,
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    # booked services are only deactivated, bookings keep their reference
    if store.list("bookings", where={"service_id": service_id}, limit=1):
        store.update("services", service_id, {"is_active": False})
    else:
        store.delete("services", service_id)


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category: CategoryCreate,
    store: RecordStore = Depends(get_store),
    admin: dict = Depends(require_admin),
):
    if store.list("service_categories", where={"name": category.name}, limit=1):
        raise HTTPException(status_code=400, detail="Category already exists")
    return store.create("service_categories", category.model_dump())
