# aquanav/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Index,
)

from aquanav.database import Base
from aquanav.utils.identifiers import generate_user_id


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class AccountRole(str, enum.Enum):
    """Roles used across the ERP.

    ADMIN passes every role gate. CUSTOMER users only see records
    linked to their own customer account.
    """

    ADMIN = "ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    FINANCE = "FINANCE"
    CUSTOMER = "CUSTOMER"
    EMPLOYEE = "EMPLOYEE"


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    Login account for staff and customer portal users.

    Employees and customers link back to a user through their own
    `user_id` columns; the user record only carries identity and role.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
        UniqueConstraint("email", name="uq_users_email"),
        Index("idx_users_role_active", "role", "is_active"),
    )

    id = Column(
        String(36),
        primary_key=True,
        default=generate_user_id,
    )

    username = Column(String(64), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)

    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    full_name = Column(String(255), nullable=True)

    role = Column(
        Enum(AccountRole, name="account_role_enum", native_enum=False),
        nullable=False,
        default=AccountRole.EMPLOYEE,
        index=True,
    )

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    # Security: password + lockout + login tracking
    hashed_password = Column(String(255), nullable=False)
    login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    last_login_ip = Column(String(64), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"


# ---------------------------------------------------------------------------
# COMPANY PROFILE
# ---------------------------------------------------------------------------


class Company(Base):
    """
    Single company profile shown on documents and in the portal header.
    """

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    logo = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    default_currency = Column(String(8), nullable=False, default="AED")

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


# ---------------------------------------------------------------------------
# IDEMPOTENCY
# ---------------------------------------------------------------------------


class IdempotencyKey(Base):
    """
    Client-supplied keys for retry-safe writes (payments, goods receipts).

    A key is unique per scope; the payload hash detects reuse of a key
    with a different request body.
    """

    __tablename__ = "idempotency_keys"
    __table_args__ = (
        UniqueConstraint("scope", "key", name="uq_idempotency_scope_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(String(128), nullable=False, index=True)
    key = Column(String(255), nullable=False)
    payload_hash = Column(String(64), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
