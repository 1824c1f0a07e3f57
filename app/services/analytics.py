# app/services/analytics.py
"""
Aggregate summaries for the analytics dashboards.

Each function is a single pass over one snapshot of the issues table. The
snapshot is expected in created_at ascending order so that monthly buckets
come out chronologically; nothing is zero-filled except the weekday buckets.
"""
from datetime import datetime, timezone
from typing import Sequence

from app.schemas.issue import IssueOut

CATEGORY_COLORS = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#AF19FF", "#FF1943"]
WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
UNKNOWN_LOCATION = "Unknown"
HOTSPOT_LIMIT = 10


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_label(value: datetime) -> str:
    return _utc(value).strftime("%b %y")


def weekday_label(value: datetime) -> str:
    # isoweekday: Mon=1 .. Sun=7
    return WEEKDAYS[_utc(value).isoweekday() % 7]


def monthly_totals(issues: Sequence[IssueOut]) -> list[dict]:
    buckets: dict[str, dict] = {}
    for issue in issues:
        month = month_label(issue.created_at)
        bucket = buckets.setdefault(month, {"month": month, "total": 0, "resolved": 0})
        bucket["total"] += 1
        if issue.status == "resolved":
            bucket["resolved"] += 1
    return list(buckets.values())


def category_distribution(issues: Sequence[IssueOut]) -> list[dict]:
    counts: dict[str, int] = {}
    for issue in issues:
        counts[issue.category] = counts.get(issue.category, 0) + 1
    return [{"category": c, "count": n} for c, n in counts.items()]


def ranked_category_distribution(issues: Sequence[IssueOut]) -> list[dict]:
    ranked = sorted(category_distribution(issues), key=lambda x: x["count"], reverse=True)
    return [
        {**row, "color": CATEGORY_COLORS[i % len(CATEGORY_COLORS)]}
        for i, row in enumerate(ranked)
    ]


def day_of_week_distribution(issues: Sequence[IssueOut]) -> list[dict]:
    counts = {day: 0 for day in WEEKDAYS}
    for issue in issues:
        counts[weekday_label(issue.created_at)] += 1
    return [{"day": day, "count": counts[day]} for day in WEEKDAYS]


def location_counts(issues: Sequence[IssueOut]) -> list[dict]:
    counts: dict[str, int] = {}
    for issue in issues:
        location = issue.location_name or UNKNOWN_LOCATION
        counts[location] = counts.get(location, 0) + 1
    return sorted(
        ({"location": loc, "count": n} for loc, n in counts.items()),
        key=lambda x: x["count"],
        reverse=True,
    )


def location_hotspots(issues: Sequence[IssueOut], limit: int = HOTSPOT_LIMIT) -> list[dict]:
    return location_counts(issues)[:limit]


def resolution_time_by_category(issues: Sequence[IssueOut]) -> list[dict]:
    totals: dict[str, list[float]] = {}
    for issue in issues:
        if issue.status != "resolved" or issue.resolved_at is None:
            continue
        hours = (_utc(issue.resolved_at) - _utc(issue.created_at)).total_seconds() / 3600
        acc = totals.setdefault(issue.category, [0.0, 0])
        acc[0] += hours
        acc[1] += 1
    return [
        {"category": cat, "avg_time_hours": total / count}
        for cat, (total, count) in totals.items()
    ]


def status_summary(issues: Sequence[IssueOut]) -> dict:
    out = {"total": len(issues), "new": 0, "in_progress": 0, "resolved": 0}
    for issue in issues:
        if issue.status in out:
            out[issue.status] += 1
    return out


def build_overview(issues: Sequence[IssueOut]) -> dict:
    return {
        "summary": status_summary(issues),
        "monthly": monthly_totals(issues),
        "categories": ranked_category_distribution(issues),
        "weekdays": day_of_week_distribution(issues),
        "hotspots": location_hotspots(issues),
        "resolution_time": resolution_time_by_category(issues),
    }
