# File: app/routers/admin_issues.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.security import require_admin
from app.models.user import User
from app.schemas.issue import IssueAdminUpdate, IssueListOut, IssueOut
from app.services.gateway import GatewayError, IssueGateway
from app.services.reports import ReportFilters, filter_reports, unique_categories

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/issues", tags=["admin-issues"])

CLEARABLE = {"assigned_to", "public_notes", "response_time"}

@router.get("", response_model=IssueListOut, dependencies=[Depends(require_admin)])
def list_all_issues(
    db: Session = Depends(get_db),
    search: str = "",
    status: str = "all",
    category: str = "all",
    sort: str = "newest",
    include_spam: bool = True,
):
    try:
        issues = IssueGateway(db).fetch_all(ascending=False)
    except GatewayError as e:
        raise HTTPException(status_code=503, detail=f"Failed to load reports: {e}")
    if not include_spam:
        issues = [i for i in issues if not i.is_spam]
    items = filter_reports(issues, ReportFilters(search=search, status=status, category=category, sort=sort))
    return {"items": items, "active_count": len(items), "categories": unique_categories(issues)}

@router.patch("/{issue_id}", response_model=IssueOut)
def update_issue(
    issue_id: str,
    body: IssueAdminUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    changes = body.model_dump(exclude_unset=True)
    # only the free-text fields may be cleared
    changes = {k: v for k, v in changes.items() if v is not None or k in CLEARABLE}
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    try:
        issue = IssueGateway(db).update(issue_id, changes)
    except GatewayError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if issue is None:
        raise HTTPException(status_code=404, detail="Not found")
    logger.info("Issue %s updated by %s: %s", issue_id, admin.email, sorted(changes))
    return issue
