# aquanav/apps/projects/schemas.py

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import ProjectStatus


class ProjectBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    vessel_name: Optional[str] = None
    vessel_imo_number: Optional[str] = None
    vessel_image: Optional[str] = None
    start_date: Optional[dt.date] = None
    planned_end_date: Optional[dt.date] = None
    estimated_budget: Optional[Decimal] = Field(default=None, ge=0)
    customer_id: Optional[int] = None
    locations: List[str] = []
    ridging_crew_nos: Optional[str] = None
    mode_of_contract: Optional[str] = None
    working_hours: Optional[str] = None
    ppe: Optional[str] = None


class ProjectCreate(ProjectBase):
    status: ProjectStatus = ProjectStatus.NOT_STARTED


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    vessel_name: Optional[str] = None
    vessel_imo_number: Optional[str] = None
    vessel_image: Optional[str] = None
    start_date: Optional[dt.date] = None
    planned_end_date: Optional[dt.date] = None
    actual_end_date: Optional[dt.date] = None
    status: Optional[ProjectStatus] = None
    estimated_budget: Optional[Decimal] = Field(default=None, ge=0)
    customer_id: Optional[int] = None
    locations: Optional[List[str]] = None
    ridging_crew_nos: Optional[str] = None
    mode_of_contract: Optional[str] = None
    working_hours: Optional[str] = None
    ppe: Optional[str] = None


class ProjectRead(ProjectBase):
    id: int
    status: ProjectStatus
    actual_end_date: Optional[dt.date] = None
    actual_cost: Decimal
    total_revenue: Decimal
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class EmployeeAssignment(BaseModel):
    employee_id: int
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class AssignEmployeesRequest(BaseModel):
    assignments: List[EmployeeAssignment] = Field(..., min_length=1)


class ProjectEmployeeRead(BaseModel):
    id: int
    project_id: int
    employee_id: int
    employee_name: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    assigned_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class DailyActivityCreate(BaseModel):
    date: dt.date
    location: Optional[str] = None
    completed_tasks: Optional[str] = None
    planned_tasks: Optional[str] = None
    remarks: Optional[str] = None


class DailyActivityRead(DailyActivityCreate):
    id: int
    project_id: int
    created_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PlannedActivityCreate(BaseModel):
    date: dt.date
    location: Optional[str] = None
    tasks: str = Field(..., min_length=1)


class PlannedActivityRead(PlannedActivityCreate):
    id: int
    project_id: int
    created_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PlannedActivityPage(BaseModel):
    items: List[PlannedActivityRead]
    total: int
    page: int
    limit: int
    total_pages: int


class ConsumableLine(BaseModel):
    inventory_item_id: int
    quantity: int = Field(..., gt=0)


class ConsumableCreate(BaseModel):
    date: dt.date
    notes: Optional[str] = None
    items: List[ConsumableLine] = Field(..., min_length=1)


class ConsumableItemRead(BaseModel):
    id: int
    inventory_item_id: int
    quantity: int
    unit_cost: Decimal
    inventory_transaction_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ConsumableRead(BaseModel):
    id: int
    project_id: int
    date: dt.date
    notes: Optional[str] = None
    items: List[ConsumableItemRead]

    model_config = ConfigDict(from_attributes=True)


class ProjectRevenueRead(BaseModel):
    project_id: int
    total_revenue: Decimal
    actual_cost: Decimal
    profit: Decimal
    margin_percent: Decimal
