# app/services/gateway.py
"""Query interface over the issues table.

All rows are validated into IssueOut on the way out. A row that does not fit
the schema is logged and skipped so aggregation never sees it.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.issue import Issue, IssueStatus
from app.schemas.issue import IssueOut
from app.services.changefeed import ChangeFeed, Inserted, Updated, feed as default_feed

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"status", "priority_score", "is_spam", "assigned_to", "public_notes", "response_time"}


class GatewayError(Exception):
    pass


def validate_rows(rows: Iterable) -> list[IssueOut]:
    out: list[IssueOut] = []
    for row in rows:
        try:
            out.append(IssueOut.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Quarantined malformed issue row %s: %s",
                getattr(row, "id", None) if not isinstance(row, dict) else row.get("id"),
                e.errors(include_url=False),
            )
    return out


class IssueGateway:
    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or default_feed

    def fetch_public(self) -> list[IssueOut]:
        try:
            rows = (
                self.db.query(Issue)
                .filter(Issue.is_spam.is_(False))
                .order_by(Issue.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching public issues: {e}", exc_info=True)
            raise GatewayError("Failed to load reports") from e
        return validate_rows(rows)

    def fetch_all(self, ascending: bool = True) -> list[IssueOut]:
        order = Issue.created_at.asc() if ascending else Issue.created_at.desc()
        try:
            rows = self.db.query(Issue).order_by(order).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching issues: {e}", exc_info=True)
            raise GatewayError("Failed to load reports") from e
        return validate_rows(rows)

    def get(self, issue_id: str) -> Optional[IssueOut]:
        try:
            row = self.db.query(Issue).filter(Issue.id == issue_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching issue {issue_id}: {e}", exc_info=True)
            raise GatewayError("Failed to load report") from e
        if row is None:
            return None
        found = validate_rows([row])
        return found[0] if found else None

    def insert(self, values: dict) -> IssueOut:
        obj = Issue(**values)
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error inserting issue: {e}", exc_info=True)
            raise GatewayError("Failed to save report") from e
        issue = IssueOut.model_validate(obj)
        self.feed.publish(Inserted(issue))
        return issue

    def update(self, issue_id: str, changes: dict) -> Optional[IssueOut]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        try:
            obj = self.db.query(Issue).filter(Issue.id == issue_id).first()
            if obj is None:
                return None
            for key, value in changes.items():
                setattr(obj, key, value)
            if "status" in changes:
                if obj.status == IssueStatus.resolved.value:
                    if obj.resolved_at is None:
                        obj.resolved_at = datetime.now(timezone.utc)
                else:
                    obj.resolved_at = None
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating issue {issue_id}: {e}", exc_info=True)
            raise GatewayError("Failed to update report") from e
        issue = IssueOut.model_validate(obj)
        self.feed.publish(Updated(issue))
        return issue
