# aquanav/apps/sales/schemas.py

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    CreditNoteStatus,
    PaymentType,
    ProformaStatus,
    QuotationStatus,
    SalesInvoiceStatus,
)


# ---------------------------------------------------------------------------
# LINES
# ---------------------------------------------------------------------------


class LineItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class LineItemRead(LineItemCreate):
    id: int
    tax_amount: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class TermsFields(BaseModel):
    payment_terms: Optional[str] = None
    bank_account: Optional[str] = None
    billing_address: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    remarks: Optional[str] = None


class TotalsRead(BaseModel):
    subtotal: Decimal
    discount: Decimal
    tax_amount: Decimal
    total: Decimal


# ---------------------------------------------------------------------------
# QUOTATIONS
# ---------------------------------------------------------------------------


class QuotationCreate(TermsFields):
    quotation_number: Optional[str] = None
    customer_id: int
    valid_until: Optional[dt.date] = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[LineItemCreate] = Field(..., min_length=1)


class QuotationUpdate(TermsFields):
    customer_id: Optional[int] = None
    status: Optional[QuotationStatus] = None
    valid_until: Optional[dt.date] = None
    discount: Optional[Decimal] = Field(default=None, ge=0)
    items: Optional[List[LineItemCreate]] = Field(default=None, min_length=1)


class QuotationRead(TermsFields, TotalsRead):
    id: int
    quotation_number: str
    customer_id: Optional[int] = None
    status: QuotationStatus
    valid_until: Optional[dt.date] = None
    is_archived: bool
    created_at: dt.datetime
    items: List[LineItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class ConvertQuotationRequest(BaseModel):
    project_id: Optional[int] = None


# ---------------------------------------------------------------------------
# PROFORMA INVOICES
# ---------------------------------------------------------------------------


class ProformaCreate(TermsFields):
    proforma_number: Optional[str] = None
    customer_id: int
    project_id: Optional[int] = None
    quotation_id: Optional[int] = None
    invoice_date: Optional[dt.date] = None
    valid_until: Optional[dt.date] = None
    delivery_terms: Optional[str] = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[LineItemCreate] = Field(..., min_length=1)


class ProformaUpdate(TermsFields):
    customer_id: Optional[int] = None
    project_id: Optional[int] = None
    invoice_date: Optional[dt.date] = None
    valid_until: Optional[dt.date] = None
    delivery_terms: Optional[str] = None
    discount: Optional[Decimal] = Field(default=None, ge=0)
    items: Optional[List[LineItemCreate]] = Field(default=None, min_length=1)


class ProformaStatusUpdate(BaseModel):
    status: ProformaStatus


class ProformaRead(TermsFields, TotalsRead):
    id: int
    proforma_number: str
    customer_id: Optional[int] = None
    project_id: Optional[int] = None
    quotation_id: Optional[int] = None
    status: ProformaStatus
    invoice_date: dt.date
    valid_until: Optional[dt.date] = None
    delivery_terms: Optional[str] = None
    created_at: dt.datetime
    items: List[LineItemRead] = []

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# SALES INVOICES
# ---------------------------------------------------------------------------


class SalesInvoiceCreate(TermsFields):
    customer_id: int
    project_id: Optional[int] = None
    quotation_id: Optional[int] = None
    invoice_date: dt.date
    due_date: dt.date
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[LineItemCreate] = Field(..., min_length=1)


class SalesInvoiceUpdate(TermsFields):
    customer_id: Optional[int] = None
    project_id: Optional[int] = None
    invoice_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    discount: Optional[Decimal] = Field(default=None, ge=0)
    items: Optional[List[LineItemCreate]] = Field(default=None, min_length=1)


class InvoicePaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_date: Optional[dt.date] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None


class InvoicePaymentRead(BaseModel):
    id: int
    invoice_id: int
    amount: Decimal
    payment_date: dt.date
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    payment_type: PaymentType
    credit_note_id: Optional[int] = None
    recorded_by: Optional[str] = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class SalesInvoiceRead(TermsFields, TotalsRead):
    id: int
    invoice_number: Optional[str] = None
    customer_id: Optional[int] = None
    project_id: Optional[int] = None
    quotation_id: Optional[int] = None
    proforma_id: Optional[int] = None
    status: SalesInvoiceStatus
    invoice_date: dt.date
    due_date: dt.date
    paid_amount: Decimal
    approved_at: Optional[dt.datetime] = None
    created_at: dt.datetime
    items: List[LineItemRead] = []
    payments: List[InvoicePaymentRead] = []

    model_config = ConfigDict(from_attributes=True)


class ProformaConversionResult(BaseModel):
    message: str
    sales_invoice: SalesInvoiceRead
    proforma_invoice: ProformaRead


# ---------------------------------------------------------------------------
# CREDIT NOTES
# ---------------------------------------------------------------------------


class CreditNoteCreate(BaseModel):
    credit_note_number: Optional[str] = None
    sales_invoice_id: Optional[int] = None
    customer_id: Optional[int] = None
    credit_note_date: Optional[dt.date] = None
    reason: Optional[str] = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[LineItemCreate] = Field(..., min_length=1)


class CreditNoteUpdate(BaseModel):
    credit_note_date: Optional[dt.date] = None
    reason: Optional[str] = None
    discount: Optional[Decimal] = Field(default=None, ge=0)
    items: Optional[List[LineItemCreate]] = Field(default=None, min_length=1)


class CreditNoteRead(TotalsRead):
    id: int
    credit_note_number: str
    sales_invoice_id: Optional[int] = None
    customer_id: Optional[int] = None
    status: CreditNoteStatus
    credit_note_date: dt.date
    reason: Optional[str] = None
    issued_at: Optional[dt.datetime] = None
    created_at: dt.datetime
    items: List[LineItemRead] = []

    model_config = ConfigDict(from_attributes=True)
