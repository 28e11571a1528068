from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import hashlib
import json
import logging
import os

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from aquanav.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)
from aquanav.utils import currency
from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_SECONDS = 15 * 60
MIN_PASSWORD_LENGTH = 8
DEFAULT_COMPANY_NAME = os.getenv("COMPANY_NAME", "Aquanav Marine Services")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are invalid or account is locked."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class IdempotencyError(Exception):
    """Raised when an idempotency key is reused with conflicting payload."""


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def _normalise_username(value: str) -> str:
    return value.strip().lower()


def _validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
        )


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# User lifecycle
# ---------------------------------------------------------------------------


def get_user(db: Session, user_id: str) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return user


def list_users(db: Session, *, role: Optional[models.AccountRole] = None, include_inactive: bool = True) -> List[models.User]:
    query = db.query(models.User)
    if role is not None:
        query = query.filter(models.User.role == role)
    if not include_inactive:
        query = query.filter(models.User.is_active.is_(True))
    return query.order_by(models.User.username.asc()).all()


def _ensure_unique_identity(
    db: Session,
    *,
    username: Optional[str],
    email: Optional[str],
    exclude_user_id: Optional[str] = None,
) -> None:
    clauses = []
    if username:
        clauses.append(models.User.username == username)
    if email:
        clauses.append(models.User.email == email)
    if not clauses:
        return
    query = db.query(models.User).filter(or_(*clauses))
    if exclude_user_id:
        query = query.filter(models.User.id != exclude_user_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this username or email already exists.",
        )


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    username = _normalise_username(data.username)
    email = _normalise_email(data.email)
    _ensure_unique_identity(db, username=username, email=email)
    _validate_password_strength(data.password)

    first_name = (data.first_name or "").strip() or None
    last_name = (data.last_name or "").strip() or None
    full_name = (
        (data.full_name or "").strip()
        or " ".join(part for part in (first_name, last_name) if part)
        or username
    )

    user = models.User(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
        full_name=full_name,
        role=data.role,
        hashed_password=get_password_hash(data.password),
        is_active=True,
    )
    db.add(user)
    db.flush()
    logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
    return user


def update_user(
    db: Session,
    user: models.User,
    data: schemas.UserUpdate,
) -> models.User:
    if data.email is not None:
        email = _normalise_email(data.email)
        _ensure_unique_identity(db, username=None, email=email, exclude_user_id=user.id)
        user.email = email

    name_changed = False
    if data.first_name is not None:
        user.first_name = data.first_name.strip()
        name_changed = True
    if data.last_name is not None:
        user.last_name = data.last_name.strip()
        name_changed = True
    if data.full_name is not None:
        user.full_name = data.full_name.strip()
    elif name_changed:
        user.full_name = f"{user.first_name or ''} {user.last_name or ''}".strip() or user.username

    if data.role is not None:
        user.role = data.role

    if data.is_active is not None:
        if user.is_active and not data.is_active and user.deactivated_at is None:
            user.deactivated_at = datetime.now(timezone.utc)
        if data.is_active:
            user.deactivated_at = None
        user.is_active = data.is_active

    if data.password is not None:
        _validate_password_strength(data.password)
        user.hashed_password = get_password_hash(data.password)

    db.add(user)
    db.flush()
    return user


def deactivate_user(db: Session, user: models.User, *, actor_user_id: Optional[str]) -> models.User:
    if user.id == actor_user_id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account.")
    return update_user(db, user, schemas.UserUpdate(is_active=False))


# ---------------------------------------------------------------------------
# Authentication and access tokens
# ---------------------------------------------------------------------------


def _is_account_locked(user: models.User) -> bool:
    locked_until = _as_aware(user.locked_until)
    return bool(locked_until and locked_until > datetime.now(timezone.utc))


def _seconds_until_unlock(user: models.User) -> Optional[int]:
    locked_until = _as_aware(user.locked_until)
    if not locked_until:
        return None
    remaining = (locked_until - datetime.now(timezone.utc)).total_seconds()
    return max(int(remaining), 0)


def _register_failed_login(db: Session, user: models.User) -> None:
    user.login_attempts = (user.login_attempts or 0) + 1
    if user.login_attempts >= MAX_LOGIN_ATTEMPTS:
        user.login_attempts = 0
        user.locked_until = datetime.now(timezone.utc) + timedelta(seconds=LOCKOUT_SECONDS)
        logger.warning("Account locked after repeated failed logins", extra={"user_id": user.id})
    db.add(user)
    db.flush()


def _reset_failed_logins(db: Session, user: models.User, ip: Optional[str]) -> None:
    user.login_attempts = 0
    user.locked_until = None
    user.last_login_at = datetime.now(timezone.utc)
    user.last_login_ip = ip
    db.add(user)
    db.flush()


def get_user_for_login(db: Session, identifier: str) -> Optional[models.User]:
    value = (identifier or "").strip().lower()
    if not value:
        return None
    return (
        db.query(models.User)
        .filter(
            or_(
                func.lower(models.User.username) == value,
                func.lower(models.User.email) == value,
            )
        )
        .first()
    )


def authenticate_user(
    db: Session,
    *,
    login_req: schemas.LoginRequest,
    ip: Optional[str] = None,
) -> models.User:
    """
    Password login by username or email.

    Failed attempts are counted on the user; MAX_LOGIN_ATTEMPTS in a row
    locks the account for LOCKOUT_SECONDS. Callers must commit so the
    counters persist even when this raises.
    """
    user = get_user_for_login(db, login_req.username)
    if not user or not user.is_active:
        raise AuthenticationError("Invalid credentials.")

    if _is_account_locked(user):
        raise AuthenticationError(
            "Account locked due to repeated failed attempts.",
            retry_after_seconds=_seconds_until_unlock(user),
        )

    if not verify_password(login_req.password, user.hashed_password):
        _register_failed_login(db, user)
        raise AuthenticationError("Invalid credentials.")

    _reset_failed_logins(db, user, ip)
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "role": user.role.value if hasattr(user.role, "value") else str(user.role),
    }
    access_token = create_access_token(data=payload, expires_delta=expires_delta)
    return access_token, int(ACCESS_TOKEN_EXPIRE_MINUTES * 60)


# ---------------------------------------------------------------------------
# Company profile
# ---------------------------------------------------------------------------


def get_company(db: Session) -> models.Company:
    company = db.query(models.Company).order_by(models.Company.id.asc()).first()
    if company:
        return company
    company = models.Company(name=DEFAULT_COMPANY_NAME, default_currency=currency.DEFAULT_CURRENCY)
    db.add(company)
    db.flush()
    return company


def update_company(db: Session, payload: schemas.CompanyUpdate) -> models.Company:
    company = get_company(db)
    data = payload.model_dump(exclude_unset=True)
    if "default_currency" in data and data["default_currency"] is not None:
        data["default_currency"] = currency.require_valid_currency(data["default_currency"])
    for field, value in data.items():
        setattr(company, field, value)
    db.add(company)
    db.flush()
    return company


# ---------------------------------------------------------------------------
# Idempotency
# ---------------------------------------------------------------------------


def _hash_payload(payload: dict) -> str:
    return hashlib.sha256(json.dumps(payload, sort_keys=True, default=str).encode("utf-8")).hexdigest()


def register_idempotency_key(
    db: Session,
    *,
    scope: str,
    key: str,
    payload: dict,
) -> Tuple[models.IdempotencyKey, bool]:
    """
    Returns (key_row, created). created is False when the same request
    was already seen under this key.
    """
    if not key:
        raise ValueError("idempotency key is required")

    payload_hash = _hash_payload(payload)
    existing = (
        db.query(models.IdempotencyKey)
        .filter(
            models.IdempotencyKey.scope == scope,
            models.IdempotencyKey.key == key,
        )
        .first()
    )
    if existing:
        if existing.payload_hash != payload_hash:
            raise IdempotencyError("Idempotency key reuse with different payload.")
        return existing, False

    idem = models.IdempotencyKey(
        scope=scope,
        key=key,
        payload_hash=payload_hash,
    )
    db.add(idem)
    db.flush()
    return idem, True
