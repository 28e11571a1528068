from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from aquanav.apps.accounts import models as account_models
from aquanav.apps.accounts import schemas as account_schemas
from aquanav.apps.accounts import services as account_services


def _create_user(
    db,
    *,
    username="finance",
    email=None,
    password="correct-horse",
    role=account_models.AccountRole.FINANCE,
):
    user = account_services.create_user(
        db,
        account_schemas.UserCreate(
            username=username,
            email=email or f"{username}@example.com",
            first_name="Fin",
            last_name="User",
            role=role,
            password=password,
        ),
    )
    db.commit()
    return user


def _login(db, identifier, password):
    return account_services.authenticate_user(
        db,
        login_req=account_schemas.LoginRequest(username=identifier, password=password),
        ip="127.0.0.1",
    )


def test_create_user_normalises_identity_and_hashes_password(db_session):
    user = _create_user(db_session, username="  Finance ", email="  Finance@Example.com ")

    assert user.username == "finance"
    assert user.email == "finance@example.com"
    assert user.full_name == "Fin User"
    assert user.hashed_password.startswith("$argon2")


def test_duplicate_username_or_email_is_conflict(db_session):
    _create_user(db_session)
    with pytest.raises(HTTPException) as exc:
        _create_user(db_session)
    assert exc.value.status_code == 409


def test_short_password_is_rejected(db_session):
    with pytest.raises(HTTPException) as exc:
        _create_user(db_session, password="short")
    assert exc.value.status_code == 400


def test_login_by_email_resets_attempts(db_session):
    user = _create_user(db_session)
    user.login_attempts = 3
    db_session.commit()

    logged_in = _login(db_session, "FINANCE@example.com", "correct-horse")

    assert logged_in.id == user.id
    assert logged_in.login_attempts == 0
    assert logged_in.last_login_ip == "127.0.0.1"


def test_five_failures_lock_the_account(db_session):
    _create_user(db_session)

    for _ in range(account_services.MAX_LOGIN_ATTEMPTS):
        with pytest.raises(account_services.AuthenticationError):
            _login(db_session, "finance", "wrong-password")

    with pytest.raises(account_services.AuthenticationError) as exc:
        _login(db_session, "finance", "correct-horse")
    assert exc.value.retry_after_seconds is not None
    assert 0 < exc.value.retry_after_seconds <= account_services.LOCKOUT_SECONDS


def test_expired_lock_allows_login(db_session):
    user = _create_user(db_session)
    user.locked_until = datetime.now(timezone.utc) - timedelta(seconds=1)
    db_session.commit()

    assert _login(db_session, "finance", "correct-horse").locked_until is None


def test_inactive_user_cannot_login(db_session):
    user = _create_user(db_session)
    account_services.update_user(db_session, user, account_schemas.UserUpdate(is_active=False))
    db_session.commit()

    assert user.deactivated_at is not None
    with pytest.raises(account_services.AuthenticationError):
        _login(db_session, "finance", "correct-horse")


def test_admin_cannot_deactivate_self(db_session):
    admin = _create_user(db_session, username="admin", role=account_models.AccountRole.ADMIN)
    with pytest.raises(HTTPException) as exc:
        account_services.deactivate_user(db_session, admin, actor_user_id=admin.id)
    assert exc.value.status_code == 400


def test_get_company_creates_default_profile(db_session):
    company = account_services.get_company(db_session)
    db_session.commit()

    assert company.default_currency == "AED"
    assert account_services.get_company(db_session).id == company.id


def test_update_company_rejects_unknown_currency(db_session):
    with pytest.raises(HTTPException) as exc:
        account_services.update_company(db_session, account_schemas.CompanyUpdate(default_currency="XYZ"))
    assert exc.value.status_code == 400

    company = account_services.update_company(db_session, account_schemas.CompanyUpdate(default_currency="usd"))
    assert company.default_currency == "USD"


def test_idempotency_key_replay_and_conflict(db_session):
    row, created = account_services.register_idempotency_key(
        db_session, scope="goods_receipt", key="abc", payload={"qty": 1}
    )
    assert created is True

    again, created_again = account_services.register_idempotency_key(
        db_session, scope="goods_receipt", key="abc", payload={"qty": 1}
    )
    assert created_again is False
    assert again.id == row.id

    with pytest.raises(account_services.IdempotencyError):
        account_services.register_idempotency_key(
            db_session, scope="goods_receipt", key="abc", payload={"qty": 2}
        )
