# aquanav/apps/accounts/router_public.py

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import get_current_active_user
from . import models, schemas, services

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post(
    "/login",
    response_model=schemas.Token,
    summary="Login with username or email and password",
)
def login(
    payload: schemas.LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Exchange credentials for a bearer token.

    Failed attempts are persisted before the 401 is raised so that the
    lockout counter survives the request.
    """
    try:
        user = services.authenticate_user(
            db,
            login_req=payload,
            ip=_client_ip(request),
        )
    except services.AuthenticationError as exc:
        db.commit()
        headers = None
        if exc.retry_after_seconds is not None:
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc) or "Invalid credentials.",
            headers=headers,
        )

    db.commit()
    db.refresh(user)
    token, expires_in = services.issue_access_token_for_user(user)

    return schemas.Token(
        access_token=token,
        expires_in=expires_in,
        user=user,
    )


@router.post("/logout", summary="Log out (client discards the token)")
def logout(
    current_user: models.User = Depends(get_current_active_user),
):
    return {"message": "Logged out successfully"}


@router.get(
    "/me",
    response_model=schemas.UserRead,
    summary="Get current logged-in user",
)
def read_current_user(
    current_user: models.User = Depends(get_current_active_user),
):
    return current_user
