from __future__ import annotations

import pytest
from fastapi import HTTPException

from aquanav import security
from aquanav.apps.accounts import models as account_models
from aquanav.apps.accounts import router_admin, router_company, router_public
from aquanav.apps.accounts import services as account_services


def _user(db, role: account_models.AccountRole, *, active: bool = True) -> account_models.User:
    user = account_models.User(
        username=role.value.lower(),
        email=f"{role.value.lower()}@example.com",
        role=role,
        is_active=active,
        hashed_password=security.get_password_hash("password123"),
    )
    db.add(user)
    db.commit()
    return user


def test_token_round_trip_resolves_user(db_session):
    user = _user(db_session, account_models.AccountRole.FINANCE)
    token, expires_in = account_services.issue_access_token_for_user(user)

    assert expires_in == security.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert security.get_current_user(token=token, db=db_session).id == user.id


def test_invalid_token_is_unauthorised(db_session):
    with pytest.raises(HTTPException) as exc:
        security.get_current_user(token="not-a-token", db=db_session)
    assert exc.value.status_code == 401


def test_optional_user_is_none_without_token(db_session):
    assert security.get_optional_user(token=None, db=db_session) is None


def test_inactive_user_is_rejected(db_session):
    user = _user(db_session, account_models.AccountRole.EMPLOYEE, active=False)
    with pytest.raises(HTTPException) as exc:
        security.get_current_active_user(current_user=user)
    assert exc.value.status_code == 400


def test_require_roles_admin_always_passes(db_session):
    admin = _user(db_session, account_models.AccountRole.ADMIN)
    dependency = security.require_roles(account_models.AccountRole.FINANCE)
    assert dependency(current_user=admin) is admin


def test_require_roles_rejects_other_roles(db_session):
    customer = _user(db_session, account_models.AccountRole.CUSTOMER)
    with pytest.raises(HTTPException) as exc:
        security.require_staff(current_user=customer)
    assert exc.value.status_code == 403


def test_require_roles_rejects_unknown_role_names():
    with pytest.raises(ValueError):
        security.require_roles("CAPTAIN")


def test_password_verification_accepts_legacy_bcrypt():
    import bcrypt

    legacy = bcrypt.hashpw(b"password123", bcrypt.gensalt()).decode("utf-8")
    assert security.verify_password("password123", legacy) is True
    assert security.password_needs_rehash(legacy) is True


def test_account_routes_are_registered():
    public = {(route.path, tuple(sorted(route.methods))) for route in router_public.router.routes}
    assert ("/auth/login", ("POST",)) in public
    assert ("/auth/me", ("GET",)) in public

    admin_paths = {route.path for route in router_admin.router.routes}
    assert "/users/{user_id}" in admin_paths

    company_paths = {route.path for route in router_company.router.routes}
    assert {"/company", "/currencies", "/currencies/convert"} <= company_paths
