# aquanav/apps/payroll/schemas.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import PayrollStatus


class GeneratePayrollRequest(BaseModel):
    month: int
    year: int = Field(..., ge=2000, le=2100)


class PayrollLineCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    note: Optional[str] = None


class PayrollLineUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    note: Optional[str] = None


class PayrollLineRead(PayrollLineCreate):
    id: int
    payroll_entry_id: int

    model_config = ConfigDict(from_attributes=True)


class PayrollEntryUpdate(BaseModel):
    status: Optional[PayrollStatus] = None
    working_days: Optional[int] = Field(default=None, ge=0, le=31)
    basic_salary: Optional[Decimal] = Field(default=None, ge=0)


class PayrollEntryRead(BaseModel):
    id: int
    employee_id: int
    employee_name: Optional[str] = None
    project_id: Optional[int] = None
    month: int
    year: int
    working_days: int
    basic_salary: Decimal
    total_additions: Decimal
    total_deductions: Decimal
    total_amount: Decimal
    status: PayrollStatus
    generated_date: datetime
    additions: List[PayrollLineRead] = []
    deductions: List[PayrollLineRead] = []

    model_config = ConfigDict(from_attributes=True)


class ClearPeriodResult(BaseModel):
    deleted_payroll_entries: int
    deleted_general_ledger_entries: int
