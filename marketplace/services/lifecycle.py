"""
Booking lifecycle.

Every status change goes through ``BookingLifecycle.transition``, which checks
the edge against ``TRANSITIONS``, checks the caller's role (and ownership when
an actor id is supplied), stamps the matching timestamp and writes the record
with a conditional update so a concurrent writer cannot be silently
overwritten.

    pending --accept--> accepted --start--> in_progress --complete--> completed
       |  \\                |                   |
       |   reject           cancel              cancel (admin)
       v                    v                   v
    rejected            cancelled           cancelled
"""
import enum
import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

from marketplace.core.errors import (
    AlreadyRated,
    Forbidden,
    InvalidState,
    InvalidTransition,
    NotFound,
)
from marketplace.store.base import Record, RecordStore

logger = logging.getLogger(__name__)


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class Role(str, enum.Enum):
    CUSTOMER = "customer"
    PROVIDER = "provider"
    ADMIN = "admin"


# legacy spellings still found in older records and clients
STATUS_ALIASES = {
    "confirmed": BookingStatus.ACCEPTED,
    "canceled": BookingStatus.CANCELLED,
    "declined": BookingStatus.REJECTED,
}

TRANSITIONS = {
    (BookingStatus.PENDING, BookingStatus.ACCEPTED): frozenset({Role.PROVIDER, Role.ADMIN}),
    (BookingStatus.PENDING, BookingStatus.REJECTED): frozenset({Role.PROVIDER, Role.ADMIN}),
    (BookingStatus.PENDING, BookingStatus.CANCELLED): frozenset({Role.CUSTOMER, Role.ADMIN}),
    (BookingStatus.ACCEPTED, BookingStatus.IN_PROGRESS): frozenset({Role.PROVIDER}),
    (BookingStatus.ACCEPTED, BookingStatus.CANCELLED): frozenset({Role.CUSTOMER, Role.ADMIN, Role.PROVIDER}),
    (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED): frozenset({Role.PROVIDER}),
    (BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED): frozenset({Role.ADMIN}),
}

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.REJECTED})
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.ACCEPTED, BookingStatus.IN_PROGRESS})

TIMESTAMP_FIELDS = {
    BookingStatus.ACCEPTED: "accepted_at",
    BookingStatus.IN_PROGRESS: "started_at",
    BookingStatus.COMPLETED: "completed_at",
    BookingStatus.CANCELLED: "cancelled_at",
    BookingStatus.REJECTED: "cancelled_at",
}

PROVIDER_DECLINE_REASON = "Declined by provider"


def normalize_status(value: Any) -> BookingStatus:
    """Map a stored or requested status string onto the canonical set."""
    if isinstance(value, BookingStatus):
        return value
    text = str(value or "").strip().lower()
    if text in STATUS_ALIASES:
        return STATUS_ALIASES[text]
    try:
        return BookingStatus(text)
    except ValueError:
        raise ValueError(f"Unknown booking status: {value!r}") from None


def status_spellings(status: Any) -> List[str]:
    """Canonical value of ``status`` followed by its legacy spellings."""
    status = normalize_status(status)
    return [status.value] + [alias for alias, canonical in STATUS_ALIASES.items() if canonical == status]


def status_where(*statuses: Any) -> Dict[str, Any]:
    """Record store clause matching any spelling of any of ``statuses``."""
    return {"OR": [{"status": s} for status in statuses for s in status_spellings(status)]}


def has_status(booking: Mapping[str, Any], statuses) -> bool:
    try:
        return normalize_status(booking.get("status")) in statuses
    except ValueError:
        return False


def normalize_role(value: Any) -> Role:
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        raise Forbidden(f"Unknown role: {value!r}") from None


def allowed_targets(status: Any, role: Any) -> List[BookingStatus]:
    """Statuses ``role`` may move a booking in ``status`` to, in table order."""
    try:
        current = normalize_status(status)
        role = normalize_role(role)
    except (ValueError, Forbidden):
        return []
    return [to for (frm, to), roles in TRANSITIONS.items() if frm == current and role in roles]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingLifecycle:
    """Creates bookings and advances their status through the record store."""

    collection = "bookings"

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    def get(self, booking_id: str) -> Record:
        booking = self.store.get(self.collection, booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")
        return booking

    def create(
        self,
        customer_id: str,
        service_id: str,
        provider_id: str,
        scheduled_date: date,
        scheduled_time: time,
        address: str,
        notes: Optional[str] = None,
    ) -> Record:
        service = self.store.get("services", service_id)
        if service is None:
            raise NotFound("Service not found")
        if not service.get("is_active", True):
            raise InvalidState("Service is not available for booking")

        profiles = self.store.list("providers", where={"user_id": provider_id}, limit=1)
        if not profiles:
            raise NotFound("Provider not found")
        profile = profiles[0]
        if profile.get("status") != "approved":
            raise InvalidState("Provider is not approved")
        offered = profile.get("services") or []
        if offered and service_id not in offered:
            raise InvalidState("Provider does not offer this service")

        booking = self.store.create(
            self.collection,
            {
                "customer_id": customer_id,
                "provider_id": provider_id,
                "service_id": service_id,
                "scheduled_date": scheduled_date,
                "scheduled_time": scheduled_time,
                "address": address,
                "notes": notes,
                "total_amount": Decimal(str(service.get("price") or 0)),
                "status": BookingStatus.PENDING.value,
                "created_at": self.clock(),
            },
        )
        logger.info("Booking created", extra={"booking_id": booking["id"], "user_id": customer_id})
        return booking

    def _check_owner(self, booking: Mapping[str, Any], role: Role, actor_id: Optional[str]) -> None:
        if actor_id is None or role == Role.ADMIN:
            return
        owner_field = "customer_id" if role == Role.CUSTOMER else "provider_id"
        if booking.get(owner_field) != actor_id:
            raise Forbidden("Not your booking")

    def transition(
        self,
        booking: Mapping[str, Any],
        actor_role: Any,
        target_status: Any,
        metadata: Optional[Mapping[str, Any]] = None,
        actor_id: Optional[str] = None,
    ) -> Record:
        """
        Move ``booking`` to ``target_status`` on behalf of ``actor_role``.

        Raises InvalidTransition when the edge is not in TRANSITIONS (all
        terminal statuses have no outgoing edges) or when the stored status
        changed since ``booking`` was read; Forbidden when the role may not
        take the edge or the actor does not own the booking.
        """
        metadata = metadata or {}
        role = normalize_role(actor_role)
        stored_status = booking.get("status")
        try:
            current = normalize_status(stored_status)
            target = normalize_status(target_status)
        except ValueError as exc:
            raise InvalidTransition(str(exc)) from None

        roles = TRANSITIONS.get((current, target))
        if roles is None:
            raise InvalidTransition(f"Cannot move booking from {current.value} to {target.value}")
        if role not in roles:
            raise Forbidden(f"{role.value} may not move booking from {current.value} to {target.value}")
        self._check_owner(booking, role, actor_id)

        now = self.clock()
        changes: Dict[str, Any] = {
            "status": target.value,
            TIMESTAMP_FIELDS[target]: now,
            "updated_at": now,
        }
        if target in (BookingStatus.CANCELLED, BookingStatus.REJECTED):
            reason = metadata.get("cancellation_reason")
            if not reason and target == BookingStatus.REJECTED and role == Role.PROVIDER:
                reason = PROVIDER_DECLINE_REASON
            changes["cancellation_reason"] = reason

        updated = self.store.update(
            self.collection, booking["id"], changes, expected={"status": stored_status}
        )
        if updated is None:
            latest = self.get(booking["id"])
            raise InvalidTransition(
                f"Booking status changed to {latest.get('status')} before this update was applied"
            )

        logger.info(
            "Booking %s -> %s by %s",
            current.value,
            target.value,
            role.value,
            extra={"booking_id": booking["id"], "user_id": actor_id},
        )
        return updated

    def attach_rating(
        self,
        booking: Mapping[str, Any],
        rating: int,
        review: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> Record:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValueError("rating must be an integer between 1 and 5")
        try:
            status = normalize_status(booking.get("status"))
        except ValueError:
            status = None
        if status != BookingStatus.COMPLETED:
            raise InvalidState("Can only rate completed bookings")
        if booking.get("rating") is not None:
            raise AlreadyRated("Booking has already been rated")
        if actor_id is not None and booking.get("customer_id") != actor_id:
            raise Forbidden("Booking does not belong to you")

        updated = self.store.update(
            self.collection,
            booking["id"],
            {"rating": rating, "review": review, "updated_at": self.clock()},
            expected={"status": booking.get("status"), "rating": None},
        )
        if updated is None:
            raise AlreadyRated("Booking has already been rated")

        logger.info("Booking rated %s", rating, extra={"booking_id": booking["id"], "user_id": actor_id})
        return updated
