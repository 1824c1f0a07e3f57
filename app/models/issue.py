# File: app/models/issue.py
from __future__ import annotations
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import String, Float, Integer, Boolean, DateTime, func, Index, false
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base

class IssueStatus(PyEnum):
    new = "new"
    in_progress = "in_progress"
    resolved = "resolved"

ISSUE_CATEGORIES = [
    "Pothole",
    "Broken Streetlight",
    "Overflowing Trash Bin",
    "Graffiti",
    "Damaged Public Property",
    "Water Leak",
    "Sidewalk Damage",
    "Traffic Signal Issue",
    "Other",
]

def _new_id() -> str:
    return str(uuid.uuid4())

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(String(4000))
    # stored as free text; the fixed set is enforced at submission
    category: Mapped[str] = mapped_column(String(120), index=True)
    status: Mapped[str] = mapped_column(String(20), default=IssueStatus.new.value, index=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    street_address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    landmark: Mapped[str | None] = mapped_column(String(300), nullable=True)

    image_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    priority_score: Mapped[float] = mapped_column(Float, default=0, server_default="0")
    upvotes_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_spam: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), index=True)
    assigned_to: Mapped[str | None] = mapped_column(String(200), nullable=True)
    public_notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    response_time: Mapped[str | None] = mapped_column(String(120), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

Index("ix_issues_lat_lng", Issue.latitude, Issue.longitude)
