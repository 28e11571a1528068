from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from aquanav.apps.vessels import router as vessel_router
from aquanav.apps.vessels import services as vessel_services

NOW = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("imo", ["123456", "12345678", "12a4567", ""])
def test_invalid_imo_rejected(imo):
    with pytest.raises(HTTPException) as exc:
        vessel_services.get_vessel_location(imo, now=NOW)
    assert exc.value.status_code == 400


def test_mock_location_without_api_key(monkeypatch):
    monkeypatch.setattr(vessel_services, "VESSEL_FINDER_API_KEY", "")

    location = vessel_services.get_vessel_location("9074729", now=NOW)

    assert location.imo == "9074729"
    assert location.name == "Sample Vessel"
    assert location.lat == pytest.approx(25.276987)
    assert location.destination == "DUBAI"
    assert location.eta == "2024-06-02T08:00:00+00:00"


def test_upstream_record_mapped(monkeypatch):
    monkeypatch.setattr(vessel_services, "VESSEL_FINDER_API_KEY", "key")
    seen = {}

    def fake_fetch(url):
        seen["url"] = url
        return [
            {
                "AIS": {
                    "IMO": 9074729,
                    "SHIPNAME": "OCEAN STAR",
                    "LAT": "24.5",
                    "LON": "54.3",
                    "COURSE": "180",
                    "SPEED": "9.1",
                    "HEADING": None,
                    "TIMESTAMP": "2024-06-01 07:55:00 UTC",
                    "DESTINATION": "ABU DHABI",
                    "ETA": "2024-06-01 18:00",
                    "NAVSTAT": 0,
                }
            }
        ]

    monkeypatch.setattr(vessel_services, "_fetch_json", fake_fetch)

    location = vessel_services.get_vessel_location("9074729", now=NOW)

    assert "userkey=key" in seen["url"]
    assert "imo=9074729" in seen["url"]
    assert location.name == "OCEAN STAR"
    assert location.lat == pytest.approx(24.5)
    assert location.heading == 0.0
    assert location.status == "0"


def test_empty_upstream_result_is_404(monkeypatch):
    monkeypatch.setattr(vessel_services, "VESSEL_FINDER_API_KEY", "key")
    monkeypatch.setattr(vessel_services, "_fetch_json", lambda url: [])

    with pytest.raises(HTTPException) as exc:
        vessel_services.get_vessel_location("9074729", now=NOW)
    assert exc.value.status_code == 404


def test_upstream_failure_is_502(monkeypatch):
    monkeypatch.setattr(vessel_services, "VESSEL_FINDER_API_KEY", "key")

    def boom(url):
        raise OSError("connection refused")

    monkeypatch.setattr(vessel_services, "_fetch_json", boom)

    with pytest.raises(HTTPException) as exc:
        vessel_services.get_vessel_location("9074729", now=NOW)
    assert exc.value.status_code == 502


def test_vessel_route_registered():
    paths = {route.path for route in vessel_router.router.routes}
    assert "/vessel-location/{imo}" in paths
