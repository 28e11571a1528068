# aquanav/scripts/seed_defaults.py
"""
Bootstrap a fresh database: the first admin login, the company profile
and the standard asset types.

    SEED_ADMIN_EMAIL=ops@aquanav.example.com SEED_ADMIN_PASSWORD=... \
        python -m aquanav.scripts.seed_defaults

Safe to rerun; existing rows are left alone.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from aquanav.database import SessionLocal
from aquanav.apps.accounts import models as account_models
from aquanav.apps.accounts import schemas as account_schemas
from aquanav.apps.accounts import services as account_services
from aquanav.apps.assets import services as asset_services

logger = logging.getLogger(__name__)

ADMIN_USERNAME = os.getenv("SEED_ADMIN_USERNAME", "admin")
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@aquanav.example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD")


def ensure_admin(
    db: Session,
    *,
    username: str,
    email: str,
    password: Optional[str],
) -> Tuple[account_models.User, bool]:
    existing = (
        db.query(account_models.User)
        .filter(account_models.User.email == email.strip().lower())
        .first()
    )
    if existing:
        return existing, False
    if not password:
        raise RuntimeError("SEED_ADMIN_PASSWORD must be set to create the admin user.")
    user = account_services.create_user(
        db,
        account_schemas.UserCreate(
            username=username,
            email=email,
            full_name="Aquanav Admin",
            role=account_models.AccountRole.ADMIN,
            password=password,
        ),
    )
    return user, True


def seed(db: Session) -> dict:
    admin, admin_created = ensure_admin(
        db, username=ADMIN_USERNAME, email=ADMIN_EMAIL, password=ADMIN_PASSWORD
    )
    company = account_services.get_company(db)
    asset_types = asset_services.seed_default_assets(db)
    return {
        "admin_email": admin.email,
        "admin_created": admin_created,
        "company": company.name,
        "asset_types_created": len(asset_types),
    }


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    db = SessionLocal()
    try:
        result = seed(db)
        db.commit()
        logger.info("Seed complete", extra=result)
        print("OK:", result)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
