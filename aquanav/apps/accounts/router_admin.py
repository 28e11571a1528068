# aquanav/apps/accounts/router_admin.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_admin
from . import models, schemas, services

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[schemas.UserRead])
def list_users(
    role: Optional[models.AccountRole] = None,
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_admin),
):
    return services.list_users(db, role=role, include_inactive=include_inactive)


@router.post(
    "",
    response_model=schemas.UserRead,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_admin),
):
    user = services.create_user(db, payload)
    db.commit()
    db.refresh(user)
    return user


@router.get("/{user_id}", response_model=schemas.UserRead)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_admin),
):
    return services.get_user(db, user_id)


@router.put("/{user_id}", response_model=schemas.UserRead)
def update_user(
    user_id: str,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_admin),
):
    user = services.update_user(db, services.get_user(db, user_id), payload)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", response_model=schemas.UserRead)
def deactivate_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_admin),
):
    """Soft delete: the account is deactivated, never removed."""
    user = services.deactivate_user(
        db,
        services.get_user(db, user_id),
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(user)
    return user
