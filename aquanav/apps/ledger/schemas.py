# aquanav/apps/ledger/schemas.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import GLEntryType, GLReferenceType, GLStatus


class GLEntryRead(BaseModel):
    id: int
    entry_type: GLEntryType
    reference_type: GLReferenceType
    reference_id: Optional[int] = None
    account_name: str
    description: Optional[str] = None
    debit_amount: Decimal
    credit_amount: Decimal
    entity_id: Optional[int] = None
    entity_name: Optional[str] = None
    project_id: Optional[int] = None
    invoice_number: Optional[str] = None
    transaction_date: date
    due_date: Optional[date] = None
    status: GLStatus
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ManualEntryCreate(BaseModel):
    entry_type: GLEntryType = GLEntryType.JOURNAL
    account_name: str = Field(..., min_length=1, max_length=128)
    contra_account_name: str = Field(default="Suspense", min_length=1, max_length=128)
    description: Optional[str] = None
    debit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    credit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    entity_id: Optional[int] = None
    entity_name: Optional[str] = None
    project_id: Optional[int] = None
    invoice_number: Optional[str] = None
    transaction_date: date
    due_date: Optional[date] = None
    status: GLStatus = GLStatus.POSTED
    notes: Optional[str] = None


class JournalLineCreate(BaseModel):
    account_name: str = Field(..., min_length=1, max_length=128)
    debit: Decimal = Field(default=Decimal("0"), ge=0)
    credit: Decimal = Field(default=Decimal("0"), ge=0)


class JournalCreate(BaseModel):
    description: str = Field(..., min_length=1)
    transaction_date: date
    project_id: Optional[int] = None
    lines: List[JournalLineCreate] = Field(..., min_length=2)


class GLEntryUpdate(BaseModel):
    status: Optional[GLStatus] = None
    notes: Optional[str] = None
    due_date: Optional[date] = None


class TrialBalanceLine(BaseModel):
    account_name: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


class TrialBalance(BaseModel):
    as_of: Optional[date] = None
    lines: List[TrialBalanceLine]
    total_debit: Decimal
    total_credit: Decimal


class AgingItem(BaseModel):
    document_id: int
    document_number: Optional[str] = None
    party_id: Optional[int] = None
    party_name: Optional[str] = None
    document_date: Optional[date] = None
    due_date: Optional[date] = None
    total: Decimal
    paid: Decimal
    outstanding: Decimal
    days_past_due: int
    bucket: str


class AgingReport(BaseModel):
    as_of: date
    items: List[AgingItem]
    buckets: Dict[str, Decimal]
    total_outstanding: Decimal


class ProfitLossLine(BaseModel):
    account_name: str
    amount: Decimal


class ProjectProfitLoss(BaseModel):
    project_id: Optional[int] = None
    revenue: Decimal
    expenses: Decimal
    net_profit: Decimal


class ProfitLossReport(BaseModel):
    start: Optional[date] = None
    end: Optional[date] = None
    project_id: Optional[int] = None
    revenue: List[ProfitLossLine]
    expenses: List[ProfitLossLine]
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal = Field(description="Net profit as a percentage of revenue.")
    by_project: List[ProjectProfitLoss]
