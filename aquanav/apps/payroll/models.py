# aquanav/apps/payroll/models.py

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
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from aquanav.database import Base


class PayrollStatus(str, enum.Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


class PayrollEntry(Base):
    """
    One employee's pay for one calendar month.

    total_amount = basic_salary + total_additions - total_deductions; the
    two totals are kept in step with the addition/deduction lines.
    """

    __tablename__ = "payroll_entries"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_payroll_employee_period"),
        Index("ix_payroll_period", "year", "month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="RESTRICT"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    working_days = Column(Integer, nullable=False, default=0)
    basic_salary = Column(Numeric(12, 2), nullable=False, default=0)
    total_additions = Column(Numeric(12, 2), nullable=False, default=0)
    total_deductions = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(
        SAEnum(PayrollStatus, name="payroll_status_enum", native_enum=False),
        nullable=False,
        default=PayrollStatus.DRAFT,
    )
    generated_date = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    employee = relationship("Employee", lazy="joined")
    additions = relationship(
        "PayrollAddition",
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    deductions = relationship(
        "PayrollDeduction",
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PayrollAddition(Base):
    __tablename__ = "payroll_additions"

    id = Column(Integer, primary_key=True, index=True)
    payroll_entry_id = Column(Integer, ForeignKey("payroll_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    note = Column(Text, nullable=True)

    entry = relationship("PayrollEntry", back_populates="additions")


class PayrollDeduction(Base):
    __tablename__ = "payroll_deductions"

    id = Column(Integer, primary_key=True, index=True)
    payroll_entry_id = Column(Integer, ForeignKey("payroll_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    note = Column(Text, nullable=True)

    entry = relationship("PayrollEntry", back_populates="deductions")
