# aquanav/apps/vessels/router.py

from __future__ import annotations

from fastapi import APIRouter, Depends

from aquanav.security import get_current_active_user
from aquanav.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="/vessel-location", tags=["vessels"])


@router.get("/{imo}", response_model=schemas.VesselLocation)
def get_vessel_location(
    imo: str,
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_vessel_location(imo)
