"""Unit tests for the dashboard aggregations."""

import copy
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from marketplace.services import analytics

NOW = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)  # a Wednesday


def _booking(status="completed", amount="50", **fields):
    return {"status": status, "total_amount": amount, **fields}


class TestRevenue:

    def test_sums_completed_only(self):
        bookings = [
            _booking("completed", Decimal("80.00")),
            _booking("completed", 20.5),
            _booking("pending", 1000),
            _booking("cancelled", 300),
        ]
        assert analytics.revenue(bookings) == Decimal("100.50")

    def test_empty(self):
        assert analytics.revenue([]) == 0

    def test_missing_and_non_numeric_amounts_count_as_zero(self):
        bookings = [
            _booking(amount=None),
            _booking(amount="n/a"),
            _booking(amount="NaN"),
            {"status": "completed"},
            _booking(amount="12.25"),
        ]
        assert analytics.revenue(bookings) == Decimal("12.25")

    def test_other_status_filter_and_all(self):
        bookings = [_booking("completed", 10), _booking("accepted", 5), _booking("confirmed", 7)]
        assert analytics.revenue(bookings, status_filter="accepted") == Decimal("12")
        assert analytics.revenue(bookings, status_filter=None) == Decimal("22")

    def test_accepts_objects(self):
        bookings = [SimpleNamespace(status="completed", total_amount=Decimal("15"))]
        assert analytics.revenue(bookings) == Decimal("15")


class TestAverageOrderValue:

    def test_no_completed_bookings(self):
        assert analytics.average_order_value([]) == 0
        assert analytics.average_order_value([_booking("pending", 40)]) == 0

    def test_average_over_completed(self):
        bookings = [_booking("completed", 100), _booking("completed", 50), _booking("pending", 999)]
        assert analytics.average_order_value(bookings) == Decimal("75")


class TestTopServices:

    def test_orders_by_booking_count(self):
        services = [{"id": "A", "name": "A"}, {"id": "B", "name": "B"}]
        bookings = [{"service_id": "A"}] * 3 + [{"service_id": "B"}] * 5

        assert [s["id"] for s in analytics.top_services(bookings, services)] == ["B", "A"]

    def test_ties_keep_service_order(self):
        services = [{"id": s} for s in ("C", "A", "B", "D")]
        bookings = [{"service_id": "A"}, {"service_id": "B"}, {"service_id": "C"}]

        assert [s["id"] for s in analytics.top_services(bookings, services)] == ["C", "A", "B", "D"]

    def test_limit_and_input_untouched(self):
        services = [{"id": "A"}, {"id": "B"}, {"id": "C"}]
        bookings = [{"service_id": "C"}, {"service_id": "C"}, {"service_id": "B"}]
        before = copy.deepcopy((services, bookings))

        assert [s["id"] for s in analytics.top_services(bookings, services, 2)] == ["C", "B"]
        assert (services, bookings) == before


class TestCounts:

    def test_count_by_status_includes_every_status(self):
        counts = analytics.count_by_status([
            _booking("pending"),
            _booking("confirmed"),
            _booking("accepted"),
            {"total_amount": 1},
            _booking("completed"),
        ])
        assert counts == {
            "pending": 2,
            "accepted": 2,
            "in_progress": 0,
            "completed": 1,
            "cancelled": 0,
            "rejected": 0,
        }

    def test_unknown_status_kept_verbatim(self):
        assert analytics.count_by_status([_booking("archived")])["archived"] == 1

    def test_active_customers(self):
        bookings = [{"customer_id": "a"}, {"customer_id": "b"}, {"customer_id": "a"}, {}]
        assert analytics.active_customers(bookings) == 2

    def test_completion_rate(self):
        assert analytics.completion_rate([]) == 0.0
        bookings = [_booking("completed"), _booking("pending"), _booking("cancelled")]
        assert analytics.completion_rate(bookings) == 33.3

    def test_rating_summary(self):
        assert analytics.rating_summary([_booking()]) == (None, 0)
        bookings = [_booking(rating=5), _booking(rating=4), _booking(rating=4), _booking()]
        assert analytics.rating_summary(bookings) == (4.33, 3)


class TestPeriods:

    @pytest.fixture
    def jobs(self):
        return [
            _booking(amount=100, completed_at=NOW - timedelta(hours=2)),             # today
            _booking(amount=50, completed_at=datetime(2026, 3, 16, 12, 0)),          # Monday, naive
            _booking(amount=20, completed_at="2026-03-03T08:00:00Z"),                 # this month
            _booking(amount=10, completed_at=datetime(2026, 2, 20, tzinfo=timezone.utc)),
            _booking("in_progress", amount=999, completed_at=NOW),
        ]

    def test_period_starts(self):
        assert analytics.period_start("today", NOW) == datetime(2026, 3, 18, tzinfo=timezone.utc)
        assert analytics.period_start("week", NOW) == datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert analytics.period_start("month", NOW) == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert analytics.period_start("all", NOW) is None

    def test_week_starts_on_sunday(self):
        sunday = datetime(2026, 3, 15, 10, 0, tzinfo=timezone.utc)
        assert analytics.period_start("week", sunday) == datetime(2026, 3, 15, tzinfo=timezone.utc)

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            analytics.period_start("decade", NOW)

    def test_earnings_by_period(self, jobs):
        assert analytics.earnings_by_period(jobs, NOW) == {
            "today": Decimal("100"),
            "week": Decimal("150"),
            "month": Decimal("170"),
            "total": Decimal("180"),
        }

    def test_completed_since_all(self, jobs):
        assert len(analytics.completed_since(jobs, None)) == 4

    def test_created_within(self):
        bookings = [
            {"created_at": NOW - timedelta(days=1)},
            {"created_at": NOW - timedelta(days=10)},
            {"created_at": None},
        ]
        assert len(analytics.created_within(bookings, 7, NOW)) == 1
        assert len(analytics.created_within(bookings, 30, NOW)) == 2

    def test_created_since_is_inclusive(self):
        midnight = datetime(2026, 3, 18, tzinfo=timezone.utc)
        bookings = [
            {"id": "late", "created_at": midnight - timedelta(minutes=1)},
            {"id": "edge", "created_at": midnight},
            {"id": "naive", "created_at": datetime(2026, 3, 18, 8, 0)},
        ]
        result = analytics.created_since(bookings, analytics.period_start("today", NOW))
        assert [b["id"] for b in result] == ["edge", "naive"]
