# File: app/routers/public_issue_types.py

from fastapi import APIRouter
from app.models.issue import ISSUE_CATEGORIES

router = APIRouter(prefix="/issue-types", tags=["issue-types"])

@router.get("")
def list_public_issue_types():
    # fixed set; the submission form offers exactly these
    return [{"name": name} for name in ISSUE_CATEGORIES]
