from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal, List
from datetime import datetime, timezone

Status = Literal["new", "in_progress", "resolved"]
SortKey = Literal["newest", "oldest", "popular", "priority"]


class IssueOut(BaseModel):
    """Validated shape of one row of the issues table.

    Every row leaving the data gateway goes through this model, so the
    filtering and aggregation code never sees untyped data.
    """
    id: str
    title: str
    description: str
    category: str
    status: Status

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None
    street_address: Optional[str] = None
    landmark: Optional[str] = None

    image_url: Optional[str] = None

    priority_score: float = 0
    upvotes_count: int = 0
    is_spam: bool = False
    assigned_to: Optional[str] = None
    public_notes: Optional[str] = None
    response_time: Optional[str] = None

    created_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("priority_score", "upvotes_count", mode="before")
    @classmethod
    def _missing_number_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator("is_spam", mode="before")
    @classmethod
    def _missing_flag_is_false(cls, v):
        return False if v is None else v

    @field_validator("created_at", "resolved_at")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # sqlite and some drivers hand back naive timestamps
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class IssueListOut(BaseModel):
    items: List[IssueOut]
    active_count: int
    categories: List[str]


class IssueAdminUpdate(BaseModel):
    status: Optional[Status] = None
    priority_score: Optional[float] = None
    is_spam: Optional[bool] = None
    assigned_to: Optional[str] = Field(default=None, max_length=200)
    public_notes: Optional[str] = Field(default=None, max_length=4000)
    response_time: Optional[str] = Field(default=None, max_length=120)


class SubmissionOut(BaseModel):
    title: str
    description: str
    issue: IssueOut
