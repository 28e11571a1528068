# aquanav/apps/projects/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from aquanav.database import Base


class ProjectStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Project(Base):
    """
    A vessel engagement for a customer.

    `actual_cost` and `total_revenue` are derived figures, refreshed by
    `services.recalculate_project_financials` whenever something that
    feeds them is posted.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_status", "status"),
        Index("ix_projects_customer", "customer_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    vessel_name = Column(String(255), nullable=True)
    vessel_imo_number = Column(String(16), nullable=True)
    vessel_image = Column(Text, nullable=True)

    start_date = Column(Date, nullable=True)
    planned_end_date = Column(Date, nullable=True)
    actual_end_date = Column(Date, nullable=True)
    status = Column(
        SAEnum(ProjectStatus, name="project_status_enum", native_enum=False),
        nullable=False,
        default=ProjectStatus.NOT_STARTED,
    )

    estimated_budget = Column(Numeric(12, 2), nullable=True)
    actual_cost = Column(Numeric(12, 2), nullable=False, default=0)
    total_revenue = Column(Numeric(12, 2), nullable=False, default=0)

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    locations = Column(JSON, nullable=False, default=list)

    ridging_crew_nos = Column(String(64), nullable=True)
    mode_of_contract = Column(String(128), nullable=True)
    working_hours = Column(String(128), nullable=True)
    ppe = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    customer = relationship("Customer", lazy="joined")
    assignments = relationship(
        "ProjectEmployee",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ProjectEmployee(Base):
    __tablename__ = "project_employees"
    __table_args__ = (
        Index("ix_project_employees_employee", "employee_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    project = relationship("Project", back_populates="assignments")
    employee = relationship("Employee", lazy="joined")


class DailyActivity(Base):
    __tablename__ = "daily_activities"
    __table_args__ = (
        Index("ix_daily_activities_project_date", "project_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    location = Column(String(255), nullable=True)
    completed_tasks = Column(Text, nullable=True)
    planned_tasks = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class PlannedActivity(Base):
    """Work scheduled ahead for a project, one row per day and location."""

    __tablename__ = "project_planned_activities"
    __table_args__ = (
        Index("ix_planned_activities_project_date", "project_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    location = Column(String(255), nullable=True)
    tasks = Column(Text, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class ProjectConsumable(Base):
    """One day's consumption on a project; each line is a goods issue."""

    __tablename__ = "project_consumables"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    items = relationship(
        "ProjectConsumableItem",
        back_populates="consumable",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ProjectConsumableItem(Base):
    __tablename__ = "project_consumable_items"

    id = Column(Integer, primary_key=True, index=True)
    consumable_id = Column(Integer, ForeignKey("project_consumables.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(10, 4), nullable=False, default=0)
    inventory_transaction_id = Column(
        Integer,
        ForeignKey("inventory_transactions.id", ondelete="SET NULL"),
        nullable=True,
    )

    consumable = relationship("ProjectConsumable", back_populates="items")
