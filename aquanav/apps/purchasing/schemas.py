# aquanav/apps/purchasing/schemas.py

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    ApprovalStatus,
    CreditNoteStatus,
    ItemType,
    PurchaseInvoiceStatus,
    PurchaseOrderStatus,
    PurchaseRequestStatus,
    Urgency,
)


# ---------------------------------------------------------------------------
# LINES
# ---------------------------------------------------------------------------


class PurchaseLineCreate(BaseModel):
    item_type: ItemType = ItemType.PRODUCT
    inventory_item_id: Optional[int] = None
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class PurchaseLineRead(PurchaseLineCreate):
    id: int
    tax_amount: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class TotalsRead(BaseModel):
    subtotal: Decimal
    discount: Decimal
    tax_amount: Decimal
    total: Decimal


# ---------------------------------------------------------------------------
# PURCHASE REQUESTS
# ---------------------------------------------------------------------------


class PurchaseRequestItemCreate(BaseModel):
    item_type: ItemType = ItemType.PRODUCT
    inventory_item_id: Optional[int] = None
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None


class PurchaseRequestItemRead(PurchaseRequestItemCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class PurchaseRequestCreate(BaseModel):
    request_number: Optional[str] = None
    request_date: Optional[dt.date] = None
    urgency: Urgency = Urgency.NORMAL
    reason: Optional[str] = None
    notes: Optional[str] = None
    items: List[PurchaseRequestItemCreate] = []


class PurchaseRequestRead(BaseModel):
    id: int
    request_number: str
    request_date: dt.date
    status: PurchaseRequestStatus
    urgency: Urgency
    reason: Optional[str] = None
    notes: Optional[str] = None
    requested_by: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[dt.datetime] = None
    created_at: dt.datetime
    items: List[PurchaseRequestItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class OrderFromRequest(BaseModel):
    supplier_id: int
    order_date: Optional[dt.date] = None
    expected_delivery_date: Optional[dt.date] = None


# ---------------------------------------------------------------------------
# PURCHASE ORDERS
# ---------------------------------------------------------------------------


class PurchaseOrderCreate(BaseModel):
    po_number: Optional[str] = None
    supplier_id: int
    order_date: Optional[dt.date] = None
    expected_delivery_date: Optional[dt.date] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    bank_account: Optional[str] = None
    notes: Optional[str] = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[PurchaseLineCreate] = Field(..., min_length=1)


class PurchaseOrderUpdate(BaseModel):
    status: Optional[PurchaseOrderStatus] = None
    expected_delivery_date: Optional[dt.date] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    bank_account: Optional[str] = None
    notes: Optional[str] = None
    discount: Optional[Decimal] = Field(default=None, ge=0)
    items: Optional[List[PurchaseLineCreate]] = Field(default=None, min_length=1)


class PurchaseOrderRead(TotalsRead):
    id: int
    po_number: str
    supplier_id: int
    request_id: Optional[int] = None
    status: PurchaseOrderStatus
    order_date: dt.date
    expected_delivery_date: Optional[dt.date] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    bank_account: Optional[str] = None
    notes: Optional[str] = None
    created_at: dt.datetime
    items: List[PurchaseLineRead] = []

    model_config = ConfigDict(from_attributes=True)


class ConvertOrderToInvoice(BaseModel):
    invoice_number: str = Field(..., min_length=1, max_length=64)
    invoice_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    project_id: Optional[int] = None


# ---------------------------------------------------------------------------
# PURCHASE INVOICES
# ---------------------------------------------------------------------------


class PurchaseInvoiceCreate(BaseModel):
    invoice_number: str = Field(..., min_length=1, max_length=64)
    supplier_id: int
    po_id: Optional[int] = None
    project_id: Optional[int] = None
    asset_instance_id: Optional[int] = None
    invoice_date: dt.date
    due_date: dt.date
    notes: Optional[str] = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[PurchaseLineCreate] = Field(..., min_length=1)


class PurchaseInvoiceUpdate(BaseModel):
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    project_id: Optional[int] = None
    asset_instance_id: Optional[int] = None
    invoice_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    notes: Optional[str] = None
    discount: Optional[Decimal] = Field(default=None, ge=0)
    items: Optional[List[PurchaseLineCreate]] = Field(default=None, min_length=1)


class PurchasePaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_date: Optional[dt.date] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None


class PurchasePaymentRead(BaseModel):
    id: int
    invoice_id: int
    amount: Decimal
    payment_date: dt.date
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[str] = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class PurchaseInvoiceRead(TotalsRead):
    id: int
    invoice_number: str
    supplier_id: int
    po_id: Optional[int] = None
    project_id: Optional[int] = None
    asset_instance_id: Optional[int] = None
    status: PurchaseInvoiceStatus
    approval_status: ApprovalStatus
    invoice_date: dt.date
    due_date: dt.date
    paid_amount: Decimal
    notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[dt.datetime] = None
    created_at: dt.datetime
    items: List[PurchaseLineRead] = []
    payments: List[PurchasePaymentRead] = []

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# PURCHASE CREDIT NOTES
# ---------------------------------------------------------------------------


class PurchaseCreditNoteCreate(BaseModel):
    credit_note_number: Optional[str] = None
    purchase_invoice_id: Optional[int] = None
    supplier_id: Optional[int] = None
    credit_note_date: Optional[dt.date] = None
    reason: Optional[str] = None
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: List[PurchaseLineCreate] = Field(..., min_length=1)


class PurchaseCreditNoteUpdate(BaseModel):
    credit_note_date: Optional[dt.date] = None
    reason: Optional[str] = None
    discount: Optional[Decimal] = Field(default=None, ge=0)
    items: Optional[List[PurchaseLineCreate]] = Field(default=None, min_length=1)


class PurchaseCreditNoteRead(TotalsRead):
    id: int
    credit_note_number: str
    purchase_invoice_id: Optional[int] = None
    supplier_id: int
    status: CreditNoteStatus
    credit_note_date: dt.date
    reason: Optional[str] = None
    issued_at: Optional[dt.datetime] = None
    created_at: dt.datetime
    items: List[PurchaseLineRead] = []

    model_config = ConfigDict(from_attributes=True)
