from datetime import datetime, timedelta, timezone

from app.services import analytics
from ..utils import make_issue


def _at(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_monthly_totals_first_seen_order_without_gaps():
    issues = [
        make_issue(created_at=_at(2023, 12, 30)),
        make_issue(created_at=_at(2024, 2, 1), status="resolved", resolved_at=_at(2024, 2, 2)),
        make_issue(created_at=_at(2024, 2, 9)),
    ]

    assert analytics.monthly_totals(issues) == [
        {"month": "Dec 23", "total": 1, "resolved": 0},
        {"month": "Feb 24", "total": 2, "resolved": 1},
    ]


def test_month_buckets_use_utc():
    # 23:30 at UTC-5 on Jan 31 is already February in UTC
    local = datetime(2024, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

    assert analytics.month_label(local) == "Feb 24"


def test_ranked_categories_cycle_colors():
    issues = [make_issue(category=f"Cat {i}") for i in range(7)]

    ranked = analytics.ranked_category_distribution(issues)

    assert ranked[6]["color"] == analytics.CATEGORY_COLORS[0]


def test_day_of_week_always_seven_buckets():
    out = analytics.day_of_week_distribution([make_issue(created_at=_at(2024, 1, 13))])

    assert [d["day"] for d in out] == analytics.WEEKDAYS
    assert out[6] == {"day": "Sat", "count": 1}
    assert sum(d["count"] for d in out) == 1


def test_resolution_time_skips_unresolved_and_missing_timestamps():
    created = _at(2024, 1, 1)
    issues = [
        make_issue(category="Pothole", status="resolved", created_at=created, resolved_at=created + timedelta(hours=3)),
        make_issue(category="Pothole", status="resolved", created_at=created, resolved_at=None),
        make_issue(category="Graffiti", status="new", created_at=created, resolved_at=created + timedelta(hours=1)),
    ]

    assert analytics.resolution_time_by_category(issues) == [{"category": "Pothole", "avg_time_hours": 3.0}]


def test_hotspots_sorted_and_truncated():
    issues = [make_issue(location_name=name) for name in ["A", "B", "B", None, "C", "C", "C"]]

    out = analytics.location_hotspots(issues, limit=2)

    assert out == [{"location": "C", "count": 3}, {"location": "B", "count": 2}]


def test_overview_of_empty_snapshot():
    out = analytics.build_overview([])

    assert out["summary"]["total"] == 0
    assert out["monthly"] == []
    assert len(out["weekdays"]) == 7


def test_two_pothole_scenario():
    issues = [
        make_issue(category="Pothole", status="new", created_at=_at(2024, 1, 5)),
        make_issue(category="Pothole", status="resolved", created_at=_at(2024, 1, 10), resolved_at=_at(2024, 1, 12)),
    ]

    assert analytics.monthly_totals(issues) == [{"month": "Jan 24", "total": 2, "resolved": 1}]
    assert analytics.category_distribution(issues) == [{"category": "Pothole", "count": 2}]
    assert analytics.resolution_time_by_category(issues) == [{"category": "Pothole", "avg_time_hours": 48.0}]


def test_hotspot_counts_cover_every_issue_before_truncation():
    issues = [make_issue(location_name=f"Place {i % 13}") for i in range(40)]

    assert sum(row["count"] for row in analytics.location_counts(issues)) == 40
    assert len(analytics.location_hotspots(issues)) == analytics.HOTSPOT_LIMIT
