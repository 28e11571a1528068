# aquanav/apps/vessels/schemas.py

from __future__ import annotations

from pydantic import BaseModel


class VesselLocation(BaseModel):
    imo: str
    name: str
    lat: float
    lon: float
    course: float
    speed: float
    heading: float
    timestamp: str
    destination: str
    eta: str
    status: str
