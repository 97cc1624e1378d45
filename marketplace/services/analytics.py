"""
Aggregations shared by the dashboards.

All functions are pure: they take sequences of already-fetched records
(dicts or objects) and return derived numbers without touching the store.
Money is summed as Decimal.
"""
from collections import Counter
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from marketplace.services.filtering import field_value
from marketplace.services.lifecycle import BookingStatus, normalize_status

ZERO = Decimal("0")


def _status(booking: Any) -> str:
    raw = field_value(booking, "status")
    if not raw:
        return BookingStatus.PENDING.value
    try:
        return normalize_status(raw).value
    except ValueError:
        return str(raw)


def _amount(booking: Any) -> Decimal:
    value = field_value(booking, "total_amount")
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO
    return amount if amount.is_finite() else ZERO


def _as_utc(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def count_by_status(bookings: Iterable[Any]) -> Dict[str, int]:
    counts = {status.value: 0 for status in BookingStatus}
    for booking in bookings:
        status = _status(booking)
        counts[status] = counts.get(status, 0) + 1
    return counts


def revenue(bookings: Iterable[Any], status_filter: Optional[str] = BookingStatus.COMPLETED.value) -> Decimal:
    """Sum of total_amount over bookings in ``status_filter`` (None sums all)."""
    wanted = normalize_status(status_filter).value if status_filter else None
    total = ZERO
    for booking in bookings:
        if wanted is None or _status(booking) == wanted:
            total += _amount(booking)
    return total


def average_order_value(bookings: Iterable[Any]) -> Decimal:
    bookings = list(bookings)
    completed = sum(1 for b in bookings if _status(b) == BookingStatus.COMPLETED.value)
    if completed == 0:
        return ZERO
    return revenue(bookings) / completed


def booking_counts_by_service(bookings: Iterable[Any]) -> Dict[Any, int]:
    return dict(Counter(field_value(b, "service_id") for b in bookings))


def top_services(bookings: Iterable[Any], services: Iterable[Any], n: Optional[int] = None) -> List[Any]:
    """
    Services ordered by descending booking count.

    Services with equal counts keep their order in ``services`` (sorted() is
    stable); services nobody booked are included with a count of zero.
    """
    counts = booking_counts_by_service(bookings)
    ranked = sorted(services, key=lambda s: counts.get(field_value(s, "id"), 0), reverse=True)
    return ranked if n is None else ranked[:n]


def active_customers(bookings: Iterable[Any]) -> int:
    return len({field_value(b, "customer_id") for b in bookings if field_value(b, "customer_id")})


def completion_rate(bookings: Iterable[Any]) -> float:
    bookings = list(bookings)
    if not bookings:
        return 0.0
    completed = sum(1 for b in bookings if _status(b) == BookingStatus.COMPLETED.value)
    return round(completed / len(bookings) * 100, 1)


def completed_since(bookings: Iterable[Any], since: Optional[datetime]) -> List[Any]:
    """Completed bookings whose completed_at is at or after ``since`` (None: all)."""
    since = _as_utc(since)
    result = []
    for booking in bookings:
        if _status(booking) != BookingStatus.COMPLETED.value:
            continue
        if since is None:
            result.append(booking)
            continue
        completed_at = _as_utc(field_value(booking, "completed_at"))
        if completed_at is not None and completed_at >= since:
            result.append(booking)
    return result


def period_start(period: str, now: datetime) -> Optional[datetime]:
    """Start of the earnings period containing ``now``; None for "all"."""
    now = _as_utc(now)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "today":
        return today
    if period == "week":
        # weeks start on Sunday; weekday() has Monday == 0
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if period == "month":
        return today.replace(day=1)
    if period == "all":
        return None
    raise ValueError(f"Unknown period: {period}")


def earnings_by_period(bookings: Iterable[Any], now: datetime) -> Dict[str, Decimal]:
    bookings = list(bookings)
    earnings = {
        period: revenue(completed_since(bookings, period_start(period, now)))
        for period in ("today", "week", "month")
    }
    earnings["total"] = revenue(bookings)
    return earnings


def created_since(bookings: Iterable[Any], since: datetime) -> List[Any]:
    """Bookings whose created_at is at or after ``since``."""
    since = _as_utc(since)
    result = []
    for booking in bookings:
        created_at = _as_utc(field_value(booking, "created_at"))
        if created_at is not None and created_at >= since:
            result.append(booking)
    return result


def created_within(bookings: Iterable[Any], days: int, now: datetime) -> List[Any]:
    return created_since(bookings, _as_utc(now) - timedelta(days=days))


def rating_summary(bookings: Iterable[Any]) -> Tuple[Optional[float], int]:
    ratings = [field_value(b, "rating") for b in bookings if field_value(b, "rating") is not None]
    if not ratings:
        return None, 0
    return round(sum(ratings) / len(ratings), 2), len(ratings)
