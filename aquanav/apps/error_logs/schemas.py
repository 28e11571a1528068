# aquanav/apps/error_logs/schemas.py

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import ErrorSeverity


class ErrorLogCreate(BaseModel):
    message: str = Field(..., min_length=1)
    stack: Optional[str] = None
    url: Optional[str] = Field(default=None, max_length=2048)
    severity: ErrorSeverity = ErrorSeverity.ERROR
    component: Optional[str] = Field(default=None, max_length=255)


class ErrorLogRead(BaseModel):
    id: int
    message: str
    stack: Optional[str] = None
    url: Optional[str] = None
    user_agent: Optional[str] = None
    user_id: Optional[str] = None
    severity: ErrorSeverity
    component: Optional[str] = None
    resolved: bool
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class ErrorLogPage(BaseModel):
    items: List[ErrorLogRead]
    total: int
    page: int
    limit: int
    total_pages: int


class ClearResult(BaseModel):
    message: str
    deleted_count: int
