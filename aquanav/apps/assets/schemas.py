# aquanav/apps/assets/schemas.py

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    AssetCategory,
    AssetCondition,
    AssetStatus,
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceType,
    MovementType,
)


# ---------------------------------------------------------------------------
# ASSET TYPES
# ---------------------------------------------------------------------------


class AssetTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: AssetCategory
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    default_monthly_rental_rate: Optional[Decimal] = Field(default=None, ge=0)
    currency: str = "AED"
    depreciation_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    warranty_period_months: int = Field(default=12, ge=0)
    maintenance_interval_days: int = Field(default=90, ge=1)


class AssetTypeCreate(AssetTypeBase):
    pass


class AssetTypeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[AssetCategory] = None
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    default_monthly_rental_rate: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = None
    depreciation_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    warranty_period_months: Optional[int] = Field(default=None, ge=0)
    maintenance_interval_days: Optional[int] = Field(default=None, ge=1)


class AssetTypeRead(AssetTypeBase):
    id: int
    is_active: bool
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# ASSET INSTANCES
# ---------------------------------------------------------------------------


class AssetInstanceCreate(BaseModel):
    asset_type_id: int
    asset_tag: str = Field(..., min_length=1, max_length=64)
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    status: AssetStatus = AssetStatus.AVAILABLE
    condition: AssetCondition = AssetCondition.GOOD
    location: Optional[str] = None
    acquisition_date: Optional[dt.date] = None
    acquisition_cost: Optional[Decimal] = Field(default=None, ge=0)
    current_value: Optional[Decimal] = Field(default=None, ge=0)
    monthly_rental_amount: Optional[Decimal] = Field(default=None, ge=0)
    warranty_expiry_date: Optional[dt.date] = None
    next_maintenance_date: Optional[dt.date] = None
    notes: Optional[str] = None


class AssetInstanceUpdate(BaseModel):
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    status: Optional[AssetStatus] = None
    condition: Optional[AssetCondition] = None
    location: Optional[str] = None
    acquisition_date: Optional[dt.date] = None
    acquisition_cost: Optional[Decimal] = Field(default=None, ge=0)
    current_value: Optional[Decimal] = Field(default=None, ge=0)
    monthly_rental_amount: Optional[Decimal] = Field(default=None, ge=0)
    warranty_expiry_date: Optional[dt.date] = None
    next_maintenance_date: Optional[dt.date] = None
    notes: Optional[str] = None


class AssetInstanceRead(BaseModel):
    id: int
    asset_type_id: int
    asset_tag: str
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    status: AssetStatus
    condition: AssetCondition
    location: Optional[str] = None
    project_id: Optional[int] = None
    assigned_to_id: Optional[int] = None
    acquisition_date: Optional[dt.date] = None
    acquisition_cost: Optional[Decimal] = None
    current_value: Optional[Decimal] = None
    monthly_rental_amount: Optional[Decimal] = None
    warranty_expiry_date: Optional[dt.date] = None
    last_maintenance_date: Optional[dt.date] = None
    next_maintenance_date: Optional[dt.date] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: dt.datetime
    updated_at: dt.datetime
    asset_type: Optional[AssetTypeRead] = None

    model_config = ConfigDict(from_attributes=True)


class AssignRequest(BaseModel):
    project_id: Optional[int] = None
    employee_id: Optional[int] = None
    location: Optional[str] = None
    reason: Optional[str] = None


class ReturnRequest(BaseModel):
    location: Optional[str] = None
    condition: Optional[AssetCondition] = None
    reason: Optional[str] = None


class TransferRequest(BaseModel):
    to_location: str = Field(..., min_length=1, max_length=255)
    project_id: Optional[int] = None
    reason: Optional[str] = None


class AssetMovementRead(BaseModel):
    id: int
    asset_instance_id: int
    movement_type: MovementType
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    project_id: Optional[int] = None
    employee_id: Optional[int] = None
    reason: Optional[str] = None
    created_by: Optional[str] = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# MAINTENANCE
# ---------------------------------------------------------------------------


class MaintenanceRecordCreate(BaseModel):
    maintenance_type: MaintenanceType
    status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    description: str = Field(..., min_length=1)
    performed_by: Optional[str] = None
    cost: Optional[Decimal] = Field(default=None, ge=0)
    parts_used: Optional[str] = None
    maintenance_date: dt.date
    next_scheduled_date: Optional[dt.date] = None
    notes: Optional[str] = None


class MaintenanceRecordUpdate(BaseModel):
    maintenance_type: Optional[MaintenanceType] = None
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    description: Optional[str] = Field(default=None, min_length=1)
    performed_by: Optional[str] = None
    cost: Optional[Decimal] = Field(default=None, ge=0)
    parts_used: Optional[str] = None
    maintenance_date: Optional[dt.date] = None
    next_scheduled_date: Optional[dt.date] = None
    notes: Optional[str] = None


class MaintenanceFileRead(BaseModel):
    id: int
    maintenance_record_id: int
    file_name: str
    original_name: str
    file_size: int
    mime_type: Optional[str] = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class MaintenanceRecordRead(MaintenanceRecordCreate):
    id: int
    asset_instance_id: int
    created_by: Optional[str] = None
    created_at: dt.datetime
    files: List[MaintenanceFileRead] = []

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# SUMMARY
# ---------------------------------------------------------------------------


class AssetTypeSummary(BaseModel):
    asset_type_id: int
    name: str
    category: AssetCategory
    instance_count: int
    available_count: int
    total_value: Decimal


class AssetSummary(BaseModel):
    total_assets: int
    total_value: Decimal
    status_counts: Dict[str, int]
    types: List[AssetTypeSummary]
    available: int
    in_use: int
    maintenance: int
    retired: int
