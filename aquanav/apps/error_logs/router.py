# aquanav/apps/error_logs/router.py

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import get_optional_user, require_admin
from aquanav.apps.accounts import models as account_models
from aquanav.utils.pagination import MAX_PAGE_SIZE

from . import models, schemas, services

router = APIRouter(prefix="/error-logs", tags=["error_logs"])


@router.get("", response_model=schemas.ErrorLogPage)
def list_error_logs(
    severity: Optional[models.ErrorSeverity] = None,
    resolved: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(services.DEFAULT_ERROR_LOG_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    return services.list_error_logs(db, severity=severity, resolved=resolved, page=page, limit=limit)


@router.post("", response_model=schemas.ErrorLogRead, status_code=status.HTTP_201_CREATED)
def create_error_log(
    payload: schemas.ErrorLogCreate,
    user_agent: Optional[str] = Header(None, alias="User-Agent"),
    db: Session = Depends(get_db),
    current_user: Optional[account_models.User] = Depends(get_optional_user),
):
    log = services.create_error_log(
        db,
        payload=payload,
        user_agent=user_agent,
        user_id=current_user.id if current_user else None,
    )
    db.commit()
    db.refresh(log)
    return log


@router.put("/{error_log_id}/resolve", response_model=schemas.ErrorLogRead)
def resolve_error_log(
    error_log_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    log = services.resolve_error_log(db, error_log_id=error_log_id)
    db.commit()
    db.refresh(log)
    return log


@router.delete("/clear", response_model=schemas.ClearResult)
def clear_error_logs(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    deleted = services.clear_error_logs(db, actor_user_id=current_user.id)
    db.commit()
    return schemas.ClearResult(message="All error logs cleared successfully", deleted_count=deleted)


@router.delete("/clear-resolved", response_model=schemas.ClearResult)
def clear_resolved_error_logs(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    deleted = services.clear_resolved_error_logs(db, actor_user_id=current_user.id)
    db.commit()
    return schemas.ClearResult(message="Resolved error logs cleared successfully", deleted_count=deleted)
