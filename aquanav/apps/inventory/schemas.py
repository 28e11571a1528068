# aquanav/apps/inventory/schemas.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import InventoryCategoryEnum, InventoryTransactionTypeEnum


class InventoryItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: InventoryCategoryEnum
    unit: str = Field(..., min_length=1, max_length=32)
    min_stock_level: int = Field(default=0, ge=0)


class InventoryItemCreate(InventoryItemBase):
    current_stock: int = Field(default=0, ge=0)
    avg_cost: Decimal = Field(default=Decimal("0"), ge=0)


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[InventoryCategoryEnum] = None
    unit: Optional[str] = None
    min_stock_level: Optional[int] = Field(default=None, ge=0)


class InventoryItemRead(InventoryItemBase):
    id: int
    current_stock: int
    avg_cost: Decimal
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InventoryItemPage(BaseModel):
    items: List[InventoryItemRead]
    total: int
    page: int
    limit: int
    total_pages: int


class InventoryTransactionRead(BaseModel):
    id: int
    item_id: int
    type: InventoryTransactionTypeEnum
    quantity: int
    unit_cost: Optional[Decimal] = None
    remaining_quantity: int
    project_id: Optional[int] = None
    reference: Optional[str] = None
    created_by: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# GOODS RECEIPT / ISSUE
# ---------------------------------------------------------------------------


class GoodsReceiptLine(BaseModel):
    inventory_item_id: int
    quantity: int = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0)


class GoodsReceiptCreate(BaseModel):
    reference: str = Field(..., min_length=1, max_length=128)
    items: List[GoodsReceiptLine] = Field(..., min_length=1)
    idempotency_key: Optional[str] = None


class GoodsReceiptResult(BaseModel):
    success: bool = True
    message: str = "Goods receipt created successfully"
    created_transactions: List[InventoryTransactionRead]


class GoodsIssueLine(BaseModel):
    inventory_item_id: int
    quantity: int = Field(..., gt=0)


class GoodsIssueCreate(BaseModel):
    reference: str = Field(..., min_length=1, max_length=128)
    project_id: Optional[int] = None
    items: List[GoodsIssueLine] = Field(..., min_length=1)


class GoodsIssueLineRead(BaseModel):
    inventory_transaction_id: int
    inventory_item_id: int
    quantity: int
    unit_cost: Decimal


class GoodsIssueResult(BaseModel):
    reference: str
    project_id: Optional[int] = None
    items: List[GoodsIssueLineRead]
    date: datetime
