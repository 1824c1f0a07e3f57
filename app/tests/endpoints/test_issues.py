from datetime import timedelta

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.issue import ISSUE_CATEGORIES
from app.services.gateway import GatewayError, IssueGateway
from ..utils import BASE_TIME, create_test_issue


def _seed(session: Session):
    older = create_test_issue(session, title="Older pothole", created_at=BASE_TIME, upvotes_count=5)
    newer = create_test_issue(
        session,
        title="Dark corner",
        category="Broken Streetlight",
        status="in_progress",
        location_name="Shelbyville",
        created_at=BASE_TIME + timedelta(days=1),
        upvotes_count=5,
    )
    spam = create_test_issue(session, title="Buy now", is_spam=True, created_at=BASE_TIME + timedelta(days=2))
    return older, newer, spam


def test_list_issues_hides_spam_newest_first(client: TestClient, session: Session):
    older, newer, _ = _seed(session)

    res = client.get("/issues")

    assert res.status_code == status.HTTP_200_OK
    body = res.json()
    assert [i["id"] for i in body["items"]] == [newer.id, older.id]
    assert body["active_count"] == 2
    assert body["categories"] == ["Broken Streetlight", "Pothole"]


def test_list_issues_search_is_case_insensitive(client: TestClient, session: Session):
    _, newer, _ = _seed(session)

    res = client.get("/issues", params={"search": "SHELBY"})

    assert [i["id"] for i in res.json()["items"]] == [newer.id]


def test_list_issues_status_and_category_filters(client: TestClient, session: Session):
    older, _, _ = _seed(session)

    res = client.get("/issues", params={"status": "new", "category": "Pothole"})
    assert [i["id"] for i in res.json()["items"]] == [older.id]

    res = client.get("/issues", params={"status": "resolved"})
    body = res.json()
    assert body["items"] == []
    assert body["active_count"] == 0
    # categories always come from the unfiltered set
    assert body["categories"] == ["Broken Streetlight", "Pothole"]


def test_popular_sort_keeps_ties_in_fetch_order(client: TestClient, session: Session):
    older, newer, _ = _seed(session)
    top = create_test_issue(session, title="Flooded", created_at=BASE_TIME - timedelta(days=3), upvotes_count=9)

    res = client.get("/issues", params={"sort": "popular"})

    assert [i["id"] for i in res.json()["items"]] == [top.id, newer.id, older.id]


def test_unknown_sort_falls_back_to_newest(client: TestClient, session: Session):
    older, newer, _ = _seed(session)

    res = client.get("/issues", params={"sort": "alphabetical"})

    assert [i["id"] for i in res.json()["items"]] == [newer.id, older.id]


def test_list_issues_reports_fetch_failure(client: TestClient, monkeypatch):
    def broken(self):
        raise GatewayError("connection refused")

    monkeypatch.setattr(IssueGateway, "fetch_public", broken)

    res = client.get("/issues")

    assert res.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert res.json()["detail"].startswith("Failed to load reports")


def test_get_issue(client: TestClient, session: Session):
    older, _, spam = _seed(session)

    res = client.get(f"/issues/{older.id}")
    assert res.status_code == status.HTTP_200_OK
    assert res.json()["title"] == "Older pothole"

    assert client.get(f"/issues/{spam.id}").status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/issues/does-not-exist").status_code == status.HTTP_404_NOT_FOUND


def test_malformed_rows_are_quarantined(client: TestClient, session: Session):
    good = create_test_issue(session)
    create_test_issue(session, title="Bad status", status="pending")

    res = client.get("/issues")

    assert [i["id"] for i in res.json()["items"]] == [good.id]


def test_issue_types(client: TestClient):
    res = client.get("/issue-types")

    assert res.status_code == status.HTTP_200_OK
    assert [t["name"] for t in res.json()] == ISSUE_CATEGORIES
