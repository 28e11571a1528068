# aquanav/apps/accounts/schemas.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .models import AccountRole


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    role: AccountRole = AccountRole.EMPLOYEE

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UserCreate(UserBase):
    password: str


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[AccountRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UserRead(UserBase):
    id: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# AUTH
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    username: str = Field(..., description="Username or email address")
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead


# ---------------------------------------------------------------------------
# COMPANY
# ---------------------------------------------------------------------------


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    logo: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    default_currency: Optional[str] = None


class CompanyRead(BaseModel):
    id: int
    name: str
    logo: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    default_currency: str

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# CURRENCIES
# ---------------------------------------------------------------------------


class CurrencyRead(BaseModel):
    code: str
    name: str
    symbol: str
    decimals: int
    rate_to_aed: Decimal

    model_config = ConfigDict(from_attributes=True)


class CurrencyConversionRead(BaseModel):
    amount: Decimal
    from_currency: str
    to_currency: str
    converted_amount: Decimal
    formatted: str
