# File: app/routers/issues.py
import asyncio
import json
import logging
from typing import Optional

from fastapi import (
    APIRouter, Depends, File, Form, HTTPException, Query, Request, Response,
    UploadFile, WebSocket, WebSocketDisconnect,
)
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.ratelimit import limiter, SUBMISSION_LIMIT
from app.db.session import get_db
from app.schemas.issue import IssueListOut, IssueOut, SubmissionOut
from app.services.changefeed import feed
from app.services.gateway import GatewayError, IssueGateway
from app.services.reports import (
    IssueCollection, ReportFilters, XLSX_MEDIA_TYPE, build_export_workbook,
    export_filename, filter_reports, unique_categories,
)
from app.services.submission import (
    Photo, ReportForm, SubmissionFailed, SubmissionRejected, submit_report,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issues", tags=["issues"])

LOAD_ERROR = "Failed to load reports"


def _filters(
    search: str = Query(default=""),
    status: str = Query(default="all"),
    category: str = Query(default="all"),
    sort: str = Query(default="newest"),
) -> ReportFilters:
    return ReportFilters(search=search, status=status, category=category, sort=sort)


def _load_public(db: Session) -> list[IssueOut]:
    try:
        return IssueGateway(db).fetch_public()
    except GatewayError as e:
        raise HTTPException(status_code=503, detail=f"{LOAD_ERROR}: {e}")


@router.get("", response_model=IssueListOut)
def list_issues(filters: ReportFilters = Depends(_filters), db: Session = Depends(get_db)):
    issues = _load_public(db)
    items = filter_reports(issues, filters)
    return {
        "items": items,
        "active_count": len(items),
        "categories": unique_categories(issues),
    }


@router.get("/export")
def export_issues(filters: ReportFilters = Depends(_filters), db: Session = Depends(get_db)):
    items = filter_reports(_load_public(db), filters)
    if not items:
        raise HTTPException(
            status_code=404,
            detail={
                "title": "No Data to Export",
                "description": "There are no reports matching the current filters.",
            },
        )
    filename = export_filename()
    logger.info("Exporting %d reports to %s", len(items), filename)
    return Response(
        content=build_export_workbook(items),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=SubmissionOut, status_code=201)
@limiter.limit(SUBMISSION_LIMIT)
def create_issue(
    request: Request,
    title: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    street_address: Optional[str] = Form(None),
    landmark: Optional[str] = Form(None),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    location_name: Optional[str] = Form(None),
    photo: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
):
    form = ReportForm(
        title=title,
        category=category,
        description=description,
        street_address=street_address,
        landmark=landmark,
        latitude=latitude,
        longitude=longitude,
        location_name=location_name,
    )
    upload = None
    if photo is not None:
        upload = Photo(
            filename=photo.filename or "upload.jpg",
            content_type=photo.content_type or "",
            data=photo.file.read(settings.max_photo_bytes + 1),
        )

    try:
        issue = submit_report(IssueGateway(db), form, upload)
    except SubmissionRejected as e:
        raise HTTPException(status_code=400, detail=e.as_detail())
    except SubmissionFailed as e:
        logger.error(f"Error submitting report: {e}", exc_info=True)
        raise HTTPException(
            status_code=502,
            detail={"title": "Submission Failed", "description": "Something went wrong. Please try again."},
        )

    return {
        "title": "Report Submitted!",
        "description": "Thank you for helping improve our community.",
        "issue": issue,
    }


def _fetch_and_release(db: Session) -> list[IssueOut]:
    try:
        return IssueGateway(db).fetch_public()
    finally:
        # the socket can idle for hours; it must not hold a pooled connection
        db.close()


async def _receive_frame(websocket: WebSocket):
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    return message.get("text") or message.get("bytes") or ""


def _snapshot(collection: IssueCollection, filters: ReportFilters) -> dict:
    items = collection.project(filters)
    return {
        "type": "snapshot",
        "items": jsonable_encoder(items),
        "active_count": len(items),
        "categories": collection.categories(),
        "filters": filters.as_dict(),
    }


@router.websocket("/live")
async def live_issues(websocket: WebSocket, db: Session = Depends(get_db)):
    """Live public feed.

    Sends a snapshot of the filtered projection on connect and after every
    change. A client message with any of search/status/category/sort
    re-filters the same local state without another fetch.
    """
    filters = ReportFilters.from_mapping(dict(websocket.query_params))
    # subscribe before accepting so no event published after connect is missed
    subscription = feed.subscribe()
    receiver: Optional[asyncio.Task] = None
    listener: Optional[asyncio.Task] = None
    try:
        await websocket.accept()
        try:
            issues = await run_in_threadpool(_fetch_and_release, db)
        except GatewayError as e:
            await websocket.send_json({"type": "error", "detail": f"{LOAD_ERROR}: {e}"})
            await websocket.close(code=1011)
            return

        collection = IssueCollection(issues)
        await websocket.send_json(_snapshot(collection, filters))

        receiver = asyncio.create_task(_receive_frame(websocket))
        listener = asyncio.create_task(subscription.next())
        while True:
            done, _ = await asyncio.wait({receiver, listener}, return_when=asyncio.FIRST_COMPLETED)

            if receiver in done:
                raw = receiver.result()
                receiver = asyncio.create_task(_receive_frame(websocket))
                try:
                    message = json.loads(raw)
                except ValueError:
                    await websocket.send_json({"type": "error", "detail": "Expected a JSON object"})
                    continue
                if isinstance(message, dict):
                    filters = ReportFilters.from_mapping(message, filters)
                    await websocket.send_json(_snapshot(collection, filters))

            if listener in done:
                event = listener.result()
                listener = asyncio.create_task(subscription.next())
                notification = collection.apply(event)
                if notification:
                    await websocket.send_json({"type": "notification", **notification})
                await websocket.send_json(_snapshot(collection, filters))
    except (WebSocketDisconnect, StopAsyncIteration):
        pass
    finally:
        for task in (receiver, listener):
            if task is not None and not task.done():
                task.cancel()
        subscription.close()


@router.get("/{issue_id}", response_model=IssueOut)
def get_issue(issue_id: str, db: Session = Depends(get_db)):
    try:
        issue = IssueGateway(db).get(issue_id)
    except GatewayError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if issue is None or issue.is_spam:
        raise HTTPException(status_code=404, detail="Not found")
    return issue
