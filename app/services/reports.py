# app/services/reports.py
"""
Public reports feed: local issue state, the filtered/sorted projection shown
to citizens, and the spreadsheet export of that projection.
"""
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from io import BytesIO
from typing import Iterable, Optional, Sequence

from openpyxl import Workbook

from app.schemas.issue import IssueOut
from app.services.changefeed import Deleted, Inserted, IssueEvent, Updated

logger = logging.getLogger(__name__)

ALL = "all"
SORT_KEYS = ("newest", "oldest", "popular", "priority")

EXPORT_COLUMNS = [
    "ID",
    "Title",
    "Description",
    "Category",
    "Status",
    "Created At",
    "Location",
    "Address",
    "Landmark",
    "Upvotes",
    "Priority Score",
    "Image URL",
    "Public Notes",
    "Assigned To",
    "Response Time",
]
EXPORT_SHEET = "Reports"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ReportFilters:
    search: str = ""
    status: str = ALL
    category: str = ALL
    sort: str = "newest"

    @classmethod
    def from_mapping(cls, data: dict, base: Optional["ReportFilters"] = None) -> "ReportFilters":
        """Overlay the known keys of ``data`` onto ``base``; other keys are ignored."""
        base = base or cls()
        changes = {}
        for key in ("search", "status", "category", "sort"):
            value = data.get(key)
            if value is not None:
                changes[key] = str(value)
        return replace(base, **changes)

    def as_dict(self) -> dict:
        return {"search": self.search, "status": self.status, "category": self.category, "sort": self.sort}


def _contains(field: Optional[str], needle: str) -> bool:
    if field is None:
        return False
    return needle in field.lower()


def matches_search(issue: IssueOut, search: str) -> bool:
    needle = (search or "").lower()
    return (
        _contains(issue.title, needle)
        or _contains(issue.description, needle)
        or _contains(issue.location_name, needle)
    )


def matches_filters(issue: IssueOut, filters: ReportFilters) -> bool:
    if not matches_search(issue, filters.search):
        return False
    if filters.status != ALL and issue.status != filters.status:
        return False
    if filters.category != ALL and issue.category != filters.category:
        return False
    return True


def sort_issues(issues: Iterable[IssueOut], sort: str) -> list[IssueOut]:
    # sorted() is stable, also with reverse=True, so ties keep input order
    if sort == "popular":
        return sorted(issues, key=lambda i: i.upvotes_count or 0, reverse=True)
    if sort == "priority":
        return sorted(issues, key=lambda i: i.priority_score or 0, reverse=True)
    if sort == "oldest":
        return sorted(issues, key=lambda i: i.created_at)
    return sorted(issues, key=lambda i: i.created_at, reverse=True)


def filter_reports(issues: Sequence[IssueOut], filters: ReportFilters) -> list[IssueOut]:
    return sort_issues((i for i in issues if matches_filters(i, filters)), filters.sort)


def unique_categories(issues: Iterable[IssueOut]) -> list[str]:
    return list(dict.fromkeys(i.category for i in issues))


def insert_notification(issue: IssueOut) -> dict:
    return {
        "title": "New Issue Reported",
        "description": f"{issue.title} in {issue.category}",
    }


class IssueCollection:
    """Local copy of the public issue set, kept current from the change feed."""

    def __init__(self, issues: Optional[Iterable[IssueOut]] = None):
        self._issues: list[IssueOut] = list(issues or [])

    def load(self, issues: Iterable[IssueOut]) -> None:
        self._issues = list(issues)

    @property
    def issues(self) -> list[IssueOut]:
        return list(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

    def apply(self, event: IssueEvent) -> Optional[dict]:
        """Merge one feed event; returns a notification for visible inserts."""
        if isinstance(event, Inserted):
            if event.issue.is_spam:
                return None
            self._issues.insert(0, event.issue)
            return insert_notification(event.issue)
        if isinstance(event, Updated):
            if event.issue.is_spam:
                # flagged after the fact; drop it from the public set
                self._issues = [i for i in self._issues if i.id != event.issue.id]
                return None
            if any(i.id == event.issue.id for i in self._issues):
                self._issues = [
                    event.issue if i.id == event.issue.id else i for i in self._issues
                ]
            else:
                # cleared spam flag: the issue was never in the public set
                self._insert_by_created_at(event.issue)
            return None
        if isinstance(event, Deleted):
            logger.debug("ignoring delete event for issue %s", event.issue_id)
            return None
        logger.warning("unknown change feed event %r", event)
        return None

    def _insert_by_created_at(self, issue: IssueOut) -> None:
        # local state is kept in fetch order, created_at descending
        for index, current in enumerate(self._issues):
            if current.created_at < issue.created_at:
                self._issues.insert(index, issue)
                return
        self._issues.append(issue)

    def project(self, filters: ReportFilters) -> list[IssueOut]:
        return filter_reports(self._issues, filters)

    def categories(self) -> list[str]:
        return unique_categories(self._issues)


def format_created_at(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{value.month}/{value.day}/{value.year}, {hour}:{value.minute:02d}:{value.second:02d} {suffix}"


def export_row(issue: IssueOut) -> list:
    return [
        issue.id,
        issue.title,
        issue.description,
        issue.category,
        issue.status,
        format_created_at(issue.created_at),
        issue.location_name,
        issue.street_address,
        issue.landmark,
        issue.upvotes_count or 0,
        issue.priority_score or 0,
        issue.image_url,
        issue.public_notes,
        issue.assigned_to,
        issue.response_time,
    ]


def build_export_workbook(issues: Sequence[IssueOut]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = EXPORT_SHEET
    ws.append(EXPORT_COLUMNS)
    for issue in issues:
        ws.append(export_row(issue))
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"community_reports_{today.isoformat()}.xlsx"
