# aquanav/apps/employees/schemas.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import DocumentStatus, EmployeeCategory, TrainingStatus


# ---------------------------------------------------------------------------
# EMPLOYEES
# ---------------------------------------------------------------------------


class EmployeeBase(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=32)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    category: EmployeeCategory = EmployeeCategory.PERMANENT
    grade: Optional[str] = None
    salary: Optional[Decimal] = Field(default=None, ge=0)
    hire_date: Optional[date] = None
    user_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    height: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    address: Optional[str] = None
    bank_name: Optional[str] = None
    bank_branch: Optional[str] = None
    account_number: Optional[str] = None
    account_holder_name: Optional[str] = None
    ifsc_code: Optional[str] = None
    swift_code: Optional[str] = None
    boiler_suit_size: Optional[str] = None
    safety_shoe_size: Optional[str] = None


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    employee_code: Optional[str] = Field(default=None, min_length=1, max_length=32)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    category: Optional[EmployeeCategory] = None
    grade: Optional[str] = None
    salary: Optional[Decimal] = Field(default=None, ge=0)
    hire_date: Optional[date] = None
    is_active: Optional[bool] = None
    user_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    height: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    address: Optional[str] = None
    bank_name: Optional[str] = None
    bank_branch: Optional[str] = None
    account_number: Optional[str] = None
    account_holder_name: Optional[str] = None
    ifsc_code: Optional[str] = None
    swift_code: Optional[str] = None
    boiler_suit_size: Optional[str] = None
    safety_shoe_size: Optional[str] = None


class EmployeeRead(EmployeeBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# NEXT OF KIN / TRAINING / DOCUMENTS
# ---------------------------------------------------------------------------


class NextOfKinCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    relationship: str = Field(..., min_length=1)
    is_primary: bool = False


class NextOfKinRead(NextOfKinCreate):
    id: int
    employee_id: int

    model_config = ConfigDict(from_attributes=True)


class TrainingRecordCreate(BaseModel):
    training_name: str = Field(..., min_length=1)
    provider: str = "Aquanav"
    certification_number: Optional[str] = None
    training_date: date
    expiry_date: Optional[date] = None
    status: TrainingStatus = TrainingStatus.ACTIVE
    notes: Optional[str] = None


class TrainingRecordUpdate(BaseModel):
    training_name: Optional[str] = None
    provider: Optional[str] = None
    certification_number: Optional[str] = None
    training_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: Optional[TrainingStatus] = None
    notes: Optional[str] = None


class TrainingRecordRead(TrainingRecordCreate):
    id: int
    employee_id: int

    model_config = ConfigDict(from_attributes=True)


class EmployeeDocumentCreate(BaseModel):
    document_type: str = Field(..., min_length=1)
    document_number: Optional[str] = None
    place_of_issue: Optional[str] = None
    issued_by: Optional[str] = None
    date_of_issue: Optional[date] = None
    expiry_date: Optional[date] = None
    valid_till: Optional[date] = None
    status: DocumentStatus = DocumentStatus.ACTIVE
    notes: Optional[str] = None


class EmployeeDocumentUpdate(BaseModel):
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    place_of_issue: Optional[str] = None
    issued_by: Optional[str] = None
    date_of_issue: Optional[date] = None
    expiry_date: Optional[date] = None
    valid_till: Optional[date] = None
    status: Optional[DocumentStatus] = None
    notes: Optional[str] = None


class EmployeeDocumentRead(EmployeeDocumentCreate):
    id: int
    employee_id: int

    model_config = ConfigDict(from_attributes=True)


class ExpiringDocumentRead(BaseModel):
    document: EmployeeDocumentRead
    employee_id: int
    employee_code: str
    employee_name: str
    expires_on: date
    days_remaining: int


class EmployeeDetailRead(EmployeeRead):
    next_of_kin: List[NextOfKinRead] = []
    training_records: List[TrainingRecordRead] = []
    documents: List[EmployeeDocumentRead] = []
