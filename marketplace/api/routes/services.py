# marketplace/api/routes/services.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from marketplace.core.errors import NotFound
from marketplace.db.base import get_store
from marketplace.schemas.service import CategoryResponse, ServiceDetailResponse, ServiceResponse
from marketplace.services.filtering import filter_records
from marketplace.store.base import RecordStore

router = APIRouter(prefix="/services", tags=["services"])


# Public catalog with search and category filter

@router.get("", response_model=List[ServiceResponse])
def list_services(
    q: Optional[str] = Query(None, description="Matches name and description"),
    category_id: Optional[str] = Query(None, description="Category id or 'all'"),
    store: RecordStore = Depends(get_store),
):
    services = store.list("services", where={"is_active": True}, order_by="name")
    return filter_records(services, q, ("name", "description"), category_id=category_id)


@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(store: RecordStore = Depends(get_store)):
    categories = store.list("service_categories", order_by="name")
    services = store.list("services", where={"is_active": True})

    result = []
    for category in categories:
        count = sum(1 for s in services if s.get("category_id") == category["id"])
        result.append(CategoryResponse(**category, service_count=count))
    return result


# Service details with the approved providers who offer it

@router.get("/{service_id}", response_model=ServiceDetailResponse)
def get_service(service_id: str, store: RecordStore = Depends(get_store)):
    service = store.get("services", service_id)
    if not service:
        raise NotFound("Service not found")

    providers = store.list(
        "providers",
        where={"AND": [{"status": "approved"}, {"is_available": True}]},
        order_by={"rating": "desc"},
    )
    offering = [p for p in providers if not p.get("services") or service_id in p["services"]]
    return ServiceDetailResponse(**service, providers=offering)
