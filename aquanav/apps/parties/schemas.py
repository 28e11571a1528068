# aquanav/apps/parties/schemas.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import PartyDocumentStatus, PartyDocumentType


class PartyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    vat_number: Optional[str] = None
    vat_registration_status: str = "not_registered"
    vat_treatment: str = "standard"
    tax_category: str = "standard"
    is_vat_applicable: bool = True
    payment_terms: Optional[str] = "30_days"
    currency: str = "AED"
    credit_limit: Optional[Decimal] = None
    notes: Optional[str] = None


class PartyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    vat_number: Optional[str] = None
    vat_registration_status: Optional[str] = None
    vat_treatment: Optional[str] = None
    tax_category: Optional[str] = None
    is_vat_applicable: Optional[bool] = None
    payment_terms: Optional[str] = None
    currency: Optional[str] = None
    credit_limit: Optional[Decimal] = None
    notes: Optional[str] = None


# ---------------------------------------------------------------------------
# CUSTOMERS
# ---------------------------------------------------------------------------


class CustomerCreate(PartyBase):
    customer_type: str = "business"
    user_id: Optional[str] = None


class CustomerUpdate(PartyUpdate):
    customer_type: Optional[str] = None
    user_id: Optional[str] = None


class CustomerRead(PartyBase):
    id: int
    customer_type: str
    user_id: Optional[str] = None
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerPage(BaseModel):
    items: List[CustomerRead]
    total: int
    page: int
    limit: int
    total_pages: int


# ---------------------------------------------------------------------------
# SUPPLIERS
# ---------------------------------------------------------------------------


class SupplierCreate(PartyBase):
    bank_info: Optional[str] = None
    supplier_type: str = "business"


class SupplierUpdate(PartyUpdate):
    bank_info: Optional[str] = None
    supplier_type: Optional[str] = None


class SupplierRead(PartyBase):
    id: int
    bank_info: Optional[str] = None
    supplier_type: str
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupplierPage(BaseModel):
    items: List[SupplierRead]
    total: int
    page: int
    limit: int
    total_pages: int


class SupplierProductCreate(BaseModel):
    inventory_item_id: int
    supplier_part_number: Optional[str] = None
    unit_cost: Optional[Decimal] = Field(default=None, ge=0)
    minimum_order_quantity: int = Field(default=1, ge=1)
    lead_time_days: Optional[int] = Field(default=None, ge=0)
    is_preferred: bool = False


class SupplierProductRead(SupplierProductCreate):
    id: int
    supplier_id: int
    item_name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# DOCUMENTS
# ---------------------------------------------------------------------------


class PartyDocumentCreate(BaseModel):
    document_type: PartyDocumentType
    document_name: str = Field(..., min_length=1, max_length=255)
    document_number: Optional[str] = None
    issuing_authority: Optional[str] = None
    date_of_issue: Optional[date] = None
    expiry_date: Optional[date] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    status: PartyDocumentStatus = PartyDocumentStatus.ACTIVE
    notes: Optional[str] = None


class PartyDocumentUpdate(BaseModel):
    document_type: Optional[PartyDocumentType] = None
    document_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    document_number: Optional[str] = None
    issuing_authority: Optional[str] = None
    date_of_issue: Optional[date] = None
    expiry_date: Optional[date] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    status: Optional[PartyDocumentStatus] = None
    notes: Optional[str] = None


class CustomerDocumentRead(PartyDocumentCreate):
    id: int
    customer_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupplierDocumentRead(PartyDocumentCreate):
    id: int
    supplier_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
