# aquanav/apps/error_logs/services.py

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from aquanav.apps.audit import services as audit_services
from aquanav.utils.pagination import paginate
from . import models, schemas

logger = logging.getLogger(__name__)

DEFAULT_ERROR_LOG_LIMIT = 20


def create_error_log(
    db: Session,
    *,
    payload: schemas.ErrorLogCreate,
    user_agent: Optional[str] = None,
    user_id: Optional[str] = None,
) -> models.ErrorLog:
    log = models.ErrorLog(
        message=payload.message,
        stack=payload.stack,
        url=payload.url,
        severity=payload.severity,
        component=payload.component,
        user_agent=(user_agent or "")[:512] or None,
        user_id=user_id,
        resolved=False,
    )
    db.add(log)
    db.flush()
    logger.info(
        "Client error reported",
        extra={"error_log_id": log.id, "severity": log.severity.value, "component": log.component},
    )
    return log


def list_error_logs(
    db: Session,
    *,
    severity: Optional[models.ErrorSeverity] = None,
    resolved: Optional[bool] = None,
    page: int = 1,
    limit: int = DEFAULT_ERROR_LOG_LIMIT,
) -> dict:
    query = db.query(models.ErrorLog)
    if severity is not None:
        query = query.filter(models.ErrorLog.severity == severity)
    if resolved is not None:
        query = query.filter(models.ErrorLog.resolved.is_(resolved))
    query = query.order_by(models.ErrorLog.timestamp.desc(), models.ErrorLog.id.desc())
    return paginate(query, page=page, limit=limit)


def resolve_error_log(db: Session, *, error_log_id: int) -> models.ErrorLog:
    log = db.get(models.ErrorLog, error_log_id)
    if not log:
        raise HTTPException(status_code=404, detail="Error log not found")
    log.resolved = True
    db.add(log)
    db.flush()
    return log


def _audit_clear(db: Session, *, actor_user_id: Optional[str], scope: str, deleted: int) -> None:
    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type="error_log",
        entity_id=scope,
        action="clear",
        metadata={"deleted": deleted},
    )


def clear_error_logs(db: Session, *, actor_user_id: Optional[str] = None) -> int:
    deleted = db.query(models.ErrorLog).delete(synchronize_session=False)
    db.flush()
    logger.info("Error logs cleared", extra={"deleted": deleted})
    _audit_clear(db, actor_user_id=actor_user_id, scope="all", deleted=deleted)
    return deleted


def clear_resolved_error_logs(db: Session, *, actor_user_id: Optional[str] = None) -> int:
    deleted = (
        db.query(models.ErrorLog)
        .filter(models.ErrorLog.resolved.is_(True))
        .delete(synchronize_session=False)
    )
    db.flush()
    logger.info("Resolved error logs cleared", extra={"deleted": deleted})
    _audit_clear(db, actor_user_id=actor_user_id, scope="resolved", deleted=deleted)
    return deleted
