# aquanav/apps/inventory/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from aquanav.database import Base


class InventoryCategoryEnum(str, enum.Enum):
    CONSUMABLES = "consumables"
    TOOLS = "tools"
    EQUIPMENT = "equipment"


class InventoryTransactionTypeEnum(str, enum.Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"


class InventoryItem(Base):
    """
    Stock-keeping item with a running weighted average cost.

    `current_stock` is maintained by goods receipts and issues; the
    transaction rows are the history behind it.
    """

    __tablename__ = "inventory_items"
    __table_args__ = (
        Index("ix_inventory_items_category_name", "category", "name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(
        SAEnum(InventoryCategoryEnum, name="inventory_category_enum", native_enum=False),
        nullable=False,
    )
    unit = Column(String(32), nullable=False)
    current_stock = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=0)
    avg_cost = Column(Numeric(10, 4), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    transactions = relationship("InventoryTransaction", back_populates="item", lazy="noload")

    @property
    def is_low_stock(self) -> bool:
        return (self.current_stock or 0) <= (self.min_stock_level or 0)


class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        Index("ix_inventory_tx_item_time", "item_id", "timestamp"),
        Index("ix_inventory_tx_project", "project_id"),
        Index("ix_inventory_tx_reference", "reference"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False)
    type = Column(
        SAEnum(InventoryTransactionTypeEnum, name="inventory_tx_type_enum", native_enum=False),
        nullable=False,
    )
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(10, 4), nullable=True)
    remaining_quantity = Column(Integer, nullable=False, default=0)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    reference = Column(String(128), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    item = relationship("InventoryItem", back_populates="transactions", lazy="joined")
