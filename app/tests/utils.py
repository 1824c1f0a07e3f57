from datetime import datetime, timezone
from typing import Final

from sqlalchemy.orm import Session

from app.models.issue import Issue
from app.schemas.issue import IssueOut

JPEG_BYTES: Final[bytes] = b"\xff\xd8\xff\xe0" + b"0" * 64

BASE_TIME: Final[datetime] = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


def issue_values(**overrides) -> dict:
    values = {
        "title": "Pothole on Main St",
        "description": "Large pothole near the crossing",
        "category": "Pothole",
        "status": "new",
        "latitude": 40.7128,
        "longitude": -74.006,
        "location_name": "Springfield",
        "street_address": "12 Main St",
        "landmark": "Post office",
        "image_url": "https://cdn.example.com/issues/1.jpg",
        "created_at": BASE_TIME,
    }
    values.update(overrides)
    return values


def create_test_issue(session: Session, **overrides) -> Issue:
    issue = Issue(**issue_values(**overrides))

    session.add(issue)
    session.commit()
    session.refresh(issue)

    return issue


def make_issue(**overrides) -> IssueOut:
    values = {"id": overrides.pop("id", "issue-1"), **issue_values(**overrides)}
    return IssueOut.model_validate(values)


def report_form_data(**overrides) -> dict:
    data = {
        "title": "Broken light",
        "category": "Broken Streetlight",
        "description": "Streetlight out since Monday",
        "street_address": "4 Elm Rd",
        "landmark": "Bus stop",
        "latitude": "40.7128",
        "longitude": "-74.0060",
        "location_name": "Springfield",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}
