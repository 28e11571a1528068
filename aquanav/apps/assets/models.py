# aquanav/apps/assets/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from aquanav.database import Base


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class AssetCategory(str, enum.Enum):
    EQUIPMENT = "equipment"
    TOOLS = "tools"
    VEHICLES = "vehicles"
    ELECTRONICS = "electronics"
    FURNITURE = "furniture"


class AssetStatus(str, enum.Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    UNDER_REPAIR = "under_repair"
    RETIRED = "retired"
    LOST = "lost"
    STOLEN = "stolen"


class AssetCondition(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class MovementType(str, enum.Enum):
    ASSIGNMENT = "assignment"
    RETURN = "return"
    TRANSFER = "transfer"
    MAINTENANCE = "maintenance"
    REPAIR = "repair"


class MaintenanceType(str, enum.Enum):
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    EMERGENCY = "emergency"
    INSPECTION = "inspection"


class MaintenanceStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MaintenancePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ---------------------------------------------------------------------------
# ASSET TYPES AND INSTANCES
# ---------------------------------------------------------------------------


class AssetType(Base):
    """
    Catalogue entry for a kind of asset (e.g. "Marine Crane"). Rental,
    warranty and maintenance defaults are copied onto new instances.
    """

    __tablename__ = "asset_types"
    __table_args__ = (
        UniqueConstraint("name", name="uq_asset_types_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(
        SAEnum(AssetCategory, name="asset_category_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=True)
    manufacturer = Column(String(255), nullable=True)
    model = Column(String(255), nullable=True)
    specifications = Column(JSON, nullable=True)
    default_monthly_rental_rate = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="AED")
    depreciation_rate = Column(Numeric(5, 2), nullable=True)
    warranty_period_months = Column(Integer, nullable=False, default=12)
    maintenance_interval_days = Column(Integer, nullable=False, default=90)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class AssetInstance(Base):
    __tablename__ = "asset_instances"
    __table_args__ = (
        UniqueConstraint("asset_tag", name="uq_asset_instances_tag"),
        Index("ix_asset_instances_status", "status"),
        Index("ix_asset_instances_project", "project_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    asset_type_id = Column(Integer, ForeignKey("asset_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    asset_tag = Column(String(64), nullable=False)
    serial_number = Column(String(128), nullable=True)
    barcode = Column(String(128), nullable=True)
    status = Column(
        SAEnum(AssetStatus, name="asset_status_enum", native_enum=False),
        nullable=False,
        default=AssetStatus.AVAILABLE,
    )
    condition = Column(
        SAEnum(AssetCondition, name="asset_condition_enum", native_enum=False),
        nullable=False,
        default=AssetCondition.GOOD,
    )
    location = Column(String(255), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    assigned_to_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    acquisition_date = Column(Date, nullable=True)
    acquisition_cost = Column(Numeric(12, 2), nullable=True)
    current_value = Column(Numeric(12, 2), nullable=True)
    monthly_rental_amount = Column(Numeric(12, 2), nullable=True)
    warranty_expiry_date = Column(Date, nullable=True)
    last_maintenance_date = Column(Date, nullable=True)
    next_maintenance_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    asset_type = relationship("AssetType", lazy="joined")


class AssetMovement(Base):
    """One row per change of custody or location; never updated."""

    __tablename__ = "asset_movements"
    __table_args__ = (
        Index("ix_asset_movements_instance_created", "asset_instance_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    asset_instance_id = Column(Integer, ForeignKey("asset_instances.id", ondelete="CASCADE"), nullable=False)
    movement_type = Column(
        SAEnum(MovementType, name="asset_movement_type_enum", native_enum=False),
        nullable=False,
    )
    from_location = Column(String(255), nullable=True)
    to_location = Column(String(255), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    reason = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


# ---------------------------------------------------------------------------
# MAINTENANCE
# ---------------------------------------------------------------------------


class MaintenanceRecord(Base):
    __tablename__ = "asset_maintenance_records"
    __table_args__ = (
        Index("ix_asset_maintenance_status_date", "status", "maintenance_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    asset_instance_id = Column(
        Integer,
        ForeignKey("asset_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    maintenance_type = Column(
        SAEnum(MaintenanceType, name="asset_maintenance_type_enum", native_enum=False),
        nullable=False,
    )
    status = Column(
        SAEnum(MaintenanceStatus, name="asset_maintenance_status_enum", native_enum=False),
        nullable=False,
        default=MaintenanceStatus.SCHEDULED,
    )
    priority = Column(
        SAEnum(MaintenancePriority, name="asset_maintenance_priority_enum", native_enum=False),
        nullable=False,
        default=MaintenancePriority.MEDIUM,
    )
    description = Column(Text, nullable=False)
    performed_by = Column(String(255), nullable=True)
    cost = Column(Numeric(12, 2), nullable=True)
    parts_used = Column(Text, nullable=True)
    maintenance_date = Column(Date, nullable=False)
    next_scheduled_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    asset_instance = relationship("AssetInstance", lazy="joined")
    files = relationship(
        "MaintenanceFile",
        back_populates="record",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MaintenanceFile.id",
    )


class MaintenanceFile(Base):
    __tablename__ = "asset_maintenance_files"

    id = Column(Integer, primary_key=True, index=True)
    maintenance_record_id = Column(
        Integer,
        ForeignKey("asset_maintenance_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(128), nullable=True)
    uploaded_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    record = relationship("MaintenanceRecord", back_populates="files")
