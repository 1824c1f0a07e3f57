# app/routers/issues_stats.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.db.session import get_db
from app.core.security import require_admin
from app.schemas.issue import IssueOut
from app.services import analytics
from app.services.gateway import GatewayError, IssueGateway

router = APIRouter(
    prefix="/issues/stats",
    tags=["issues:stats"],
    dependencies=[Depends(require_admin)],
)

LOAD_ERROR = "Failed to load reports"

def load_snapshot(db: Session = Depends(get_db)) -> list[IssueOut]:
    # one fetch per request; every series is folded from the same rows
    try:
        return IssueGateway(db).fetch_all(ascending=True)
    except GatewayError as e:
        raise HTTPException(status_code=503, detail=f"{LOAD_ERROR}: {e}")

@router.get("/overview")
def overview(issues: list[IssueOut] = Depends(load_snapshot)):
    return analytics.build_overview(issues)

@router.get("/summary")
def summary(issues: list[IssueOut] = Depends(load_snapshot)):
    return analytics.status_summary(issues)

@router.get("/monthly")
def monthly(issues: list[IssueOut] = Depends(load_snapshot)):
    return analytics.monthly_totals(issues)

@router.get("/by-category")
def by_category(
    ranked: Optional[int] = Query(None, ge=0, le=1),
    issues: list[IssueOut] = Depends(load_snapshot),
):
    if ranked:
        return analytics.ranked_category_distribution(issues)
    return analytics.category_distribution(issues)

@router.get("/by-weekday")
def by_weekday(issues: list[IssueOut] = Depends(load_snapshot)):
    return analytics.day_of_week_distribution(issues)

@router.get("/hotspots")
def hotspots(
    limit: int = Query(analytics.HOTSPOT_LIMIT, ge=1, le=100),
    issues: list[IssueOut] = Depends(load_snapshot),
):
    return analytics.location_hotspots(issues, limit=limit)

@router.get("/resolution-time")
def resolution_time(issues: list[IssueOut] = Depends(load_snapshot)):
    return analytics.resolution_time_by_category(issues)
