import pytest
import requests

from app.services import geocoding


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"locality": "Springfield", "city": "Capital City"}, "Springfield"),
        ({"locality": "", "city": "Capital City", "countryName": "USA"}, "Capital City"),
        ({"countryName": "USA"}, "USA"),
        ({}, "Unknown location"),
    ],
)
def test_name_preference(monkeypatch, payload, expected):
    monkeypatch.setattr(geocoding.requests, "get", lambda *a, **kw: FakeResponse(payload))

    assert geocoding.reverse_geocode(40.7128, -74.006) == expected


def test_transport_error_falls_back_to_coordinates(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("no route to host")

    monkeypatch.setattr(geocoding.requests, "get", boom)

    assert geocoding.reverse_geocode(40.7128, -74.006) == "40.71280, -74.00600"


def test_http_error_falls_back_to_coordinates(monkeypatch):
    monkeypatch.setattr(geocoding.requests, "get", lambda *a, **kw: FakeResponse({}, status_code=500))

    assert geocoding.reverse_geocode(1.5, 2.25) == "1.50000, 2.25000"
