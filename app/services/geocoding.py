# app/services/geocoding.py
import logging

import requests
from app.core.config import settings

logger = logging.getLogger(__name__)

LOCATION_UNAVAILABLE = "Location unavailable"
UNKNOWN_LOCATION = "Unknown location"


def coordinates_label(lat: float, lng: float) -> str:
    return f"{lat:.5f}, {lng:.5f}"


def reverse_geocode(lat: float, lng: float) -> str:
    """Best-effort human readable name for a coordinate pair.

    Falls back to the raw coordinates when the lookup fails.
    """
    try:
        r = requests.get(
            settings.reverse_geocode_url,
            params={"latitude": lat, "longitude": lng, "localityLanguage": "en"},
            timeout=settings.geocode_timeout,
        )
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Reverse geocoding failed for {lat},{lng}: {e}")
        return coordinates_label(lat, lng)
    if not isinstance(data, dict):
        return coordinates_label(lat, lng)
    return data.get("locality") or data.get("city") or data.get("countryName") or UNKNOWN_LOCATION
