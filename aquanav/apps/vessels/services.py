# aquanav/apps/vessels/services.py
"""
Vessel position lookup backed by the VesselFinder API.

Without an API key configured the lookup answers with a fixed sample
position so that project pages still render in development.
"""

from __future__ import annotations

import json
import logging
import os
import re
import urllib.parse
import urllib.request
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from . import schemas

logger = logging.getLogger(__name__)

VESSEL_FINDER_API_KEY = os.getenv("VESSEL_FINDER_API_KEY", "").strip()
VESSEL_FINDER_BASE_URL = os.getenv(
    "VESSEL_FINDER_BASE_URL", "https://api.vesselfinder.com/vessels"
).strip()
VESSEL_FINDER_TIMEOUT_SEC = int(os.getenv("VESSEL_FINDER_TIMEOUT_SEC", "10"))

_IMO_RE = re.compile(r"^\d{7}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_imo(imo: str) -> str:
    value = (imo or "").strip()
    if not _IMO_RE.match(value):
        raise HTTPException(status_code=400, detail="IMO number must be 7 digits")
    return value


def _mock_location(imo: str, now: datetime) -> schemas.VesselLocation:
    return schemas.VesselLocation(
        imo=imo,
        name="Sample Vessel",
        lat=25.276987,
        lon=55.296249,
        course=45,
        speed=12.5,
        heading=42,
        timestamp=now.isoformat(),
        destination="DUBAI",
        eta=(now + timedelta(hours=24)).isoformat(),
        status="Under way using engine",
    )


def _fetch_json(url: str) -> Any:
    req = urllib.request.Request(url, method="GET")
    req.add_header("Accept", "application/json")
    with urllib.request.urlopen(req, timeout=VESSEL_FINDER_TIMEOUT_SEC) as resp:
        return json.loads(resp.read().decode("utf-8"))


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def map_upstream_record(record: Dict[str, Any], imo: str, now: datetime) -> schemas.VesselLocation:
    # Newer API versions wrap each vessel in an "AIS" object.
    if isinstance(record.get("AIS"), dict):
        record = record["AIS"]
    return schemas.VesselLocation(
        imo=str(record.get("IMO") or imo),
        name=record.get("SHIPNAME") or "Unknown",
        lat=_as_float(record.get("LAT")),
        lon=_as_float(record.get("LON")),
        course=_as_float(record.get("COURSE")),
        speed=_as_float(record.get("SPEED")),
        heading=_as_float(record.get("HEADING")),
        timestamp=str(record.get("TIMESTAMP") or now.isoformat()),
        destination=record.get("DESTINATION") or "",
        eta=str(record.get("ETA") or ""),
        status="Unknown" if record.get("NAVSTAT") is None else str(record["NAVSTAT"]),
    )


def get_vessel_location(imo: str, *, now: Optional[datetime] = None) -> schemas.VesselLocation:
    imo = validate_imo(imo)
    now = now or _utcnow()

    if not VESSEL_FINDER_API_KEY:
        return _mock_location(imo, now)

    query = urllib.parse.urlencode(
        {"userkey": VESSEL_FINDER_API_KEY, "imo": imo, "format": "json"}
    )
    url = f"{VESSEL_FINDER_BASE_URL}?{query}"
    try:
        data = _fetch_json(url)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Vessel location lookup failed",
            extra={"imo": imo, "error": str(exc)},
        )
        raise HTTPException(status_code=502, detail="Failed to fetch vessel location")

    records: List[Dict[str, Any]] = data if isinstance(data, list) else ([data] if data else [])
    if not records:
        raise HTTPException(status_code=404, detail="Vessel not found")
    return map_upstream_record(records[0], imo, now)
