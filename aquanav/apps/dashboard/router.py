# aquanav/apps/dashboard/router.py

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aquanav.database import get_read_db
from aquanav.security import require_staff
from aquanav.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=schemas.DashboardStats)
def get_dashboard_stats(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.dashboard_stats(db)
