# app/services/submission.py
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from app.core.config import settings
from app.models.issue import ISSUE_CATEGORIES, IssueStatus
from app.schemas.issue import IssueOut
from app.services import geocoding, storage
from app.services.gateway import GatewayError, IssueGateway

logger = logging.getLogger(__name__)

ALLOWED_PREFIX = "image/"


class SubmissionRejected(Exception):
    """A precondition failed; nothing was sent anywhere."""

    def __init__(self, title: str, description: str):
        super().__init__(f"{title}: {description}")
        self.title = title
        self.description = description

    def as_detail(self) -> dict:
        return {"title": self.title, "description": self.description}


class SubmissionFailed(Exception):
    """Upload or insert failed; the submission was abandoned as a whole."""


@dataclass
class ReportForm:
    title: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    street_address: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None


@dataclass
class Photo:
    filename: str
    content_type: str
    data: bytes


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_submission(form: ReportForm, photo: Optional[Photo]) -> None:
    """Checks run in a fixed order: location, photo, required fields."""
    if (
        form.latitude is None
        or form.longitude is None
        or form.location_name == geocoding.LOCATION_UNAVAILABLE
    ):
        raise SubmissionRejected("Location Required", "Please enable location access and try again.")

    if photo is None or not photo.data:
        raise SubmissionRejected("Photo Required", "Please upload a photo of the issue.")
    if not (photo.content_type or "").startswith(ALLOWED_PREFIX):
        raise SubmissionRejected("Unsupported Photo", "Please upload a PNG or JPG image.")
    if len(photo.data) > settings.max_photo_bytes:
        limit_mb = settings.max_photo_bytes // (1024 * 1024)
        raise SubmissionRejected("Photo Too Large", f"Photos must be at most {limit_mb}MB.")

    required = (form.title, form.category, form.description, form.street_address, form.landmark)
    if any(_blank(v) for v in required):
        raise SubmissionRejected("Missing Information", "Please fill in all required fields.")
    if form.category not in ISSUE_CATEGORIES:
        raise SubmissionRejected("Invalid Category", "Please choose one of the listed categories.")


def submit_report(
    gateway: IssueGateway,
    form: ReportForm,
    photo: Optional[Photo],
    geocoder: Optional[Callable[[float, float], str]] = None,
    uploader: Optional[Callable[[bytes, str, str], str]] = None,
) -> IssueOut:
    validate_submission(form, photo)
    geocoder = geocoder or geocoding.reverse_geocode
    uploader = uploader or storage.upload_image

    location_name = (form.location_name or "").strip() or geocoder(form.latitude, form.longitude)

    key = storage.make_object_key(photo.filename or "upload.jpg")
    try:
        image_url = uploader(photo.data, photo.content_type, key)
    except storage.StorageError as e:
        raise SubmissionFailed("Photo upload failed") from e

    values = {
        "title": form.title.strip(),
        "category": form.category,
        "description": form.description.strip(),
        "latitude": form.latitude,
        "longitude": form.longitude,
        "location_name": location_name,
        "image_url": image_url,
        "status": IssueStatus.new.value,
        "street_address": form.street_address.strip(),
        "landmark": form.landmark.strip(),
    }
    try:
        issue = gateway.insert(values)
    except GatewayError as e:
        # the uploaded object stays orphaned in the bucket; no row references it
        raise SubmissionFailed("Saving the report failed") from e
    logger.info("Report %s submitted (%s, %s)", issue.id, issue.category, issue.location_name)
    return issue
