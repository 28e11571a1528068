# aquanav/apps/employees/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
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
from sqlalchemy import orm
from sqlalchemy.orm import relationship

from aquanav.database import Base


class EmployeeCategory(str, enum.Enum):
    PERMANENT = "permanent"
    CONSULTANT = "consultant"
    CONTRACT = "contract"


class TrainingStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class DocumentStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    PENDING_RENEWAL = "pending_renewal"


class Employee(Base):
    """
    Crew member or office staff.

    Consultants are paid a daily rate derived from `salary` for the days
    they are assigned to live projects; everyone else draws `salary` as a
    flat monthly amount.
    """

    __tablename__ = "employees"
    __table_args__ = (
        UniqueConstraint("employee_code", name="uq_employees_code"),
        Index("ix_employees_category_active", "category", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_code = Column(String(32), nullable=False, index=True)
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    position = Column(String(128), nullable=True)
    department = Column(String(128), nullable=True)
    category = Column(
        SAEnum(EmployeeCategory, name="employee_category_enum", native_enum=False),
        nullable=False,
        default=EmployeeCategory.PERMANENT,
    )
    grade = Column(String(32), nullable=True)
    salary = Column(Numeric(10, 2), nullable=True)
    hire_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Personal particulars
    date_of_birth = Column(Date, nullable=True)
    height = Column(Numeric(5, 2), nullable=True)
    weight = Column(Numeric(5, 2), nullable=True)
    address = Column(Text, nullable=True)

    # Bank details
    bank_name = Column(String(128), nullable=True)
    bank_branch = Column(String(128), nullable=True)
    account_number = Column(String(64), nullable=True)
    account_holder_name = Column(String(255), nullable=True)
    ifsc_code = Column(String(32), nullable=True)
    swift_code = Column(String(32), nullable=True)

    # PPE sizes
    boiler_suit_size = Column(String(16), nullable=True)
    safety_shoe_size = Column(String(16), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    next_of_kin = relationship(
        "EmployeeNextOfKin",
        back_populates="employee",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    training_records = relationship(
        "EmployeeTrainingRecord",
        back_populates="employee",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    documents = relationship(
        "EmployeeDocument",
        back_populates="employee",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class EmployeeNextOfKin(Base):
    __tablename__ = "employee_next_of_kin"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    relationship = Column(String(32), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    # `relationship` is shadowed by the column above
    employee = orm.relationship("Employee", back_populates="next_of_kin")


class EmployeeTrainingRecord(Base):
    __tablename__ = "employee_training_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    training_name = Column(String(255), nullable=False)
    provider = Column(String(255), nullable=False, default="Aquanav")
    certification_number = Column(String(128), nullable=True)
    training_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)
    status = Column(
        SAEnum(TrainingStatus, name="training_status_enum", native_enum=False),
        nullable=False,
        default=TrainingStatus.ACTIVE,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    employee = relationship("Employee", back_populates="training_records")


class EmployeeDocument(Base):
    """Passport, CDC, STCW, SID, ILO medical and similar crew papers."""

    __tablename__ = "employee_documents"
    __table_args__ = (
        Index("ix_employee_documents_expiry", "expiry_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(64), nullable=False)
    document_number = Column(String(128), nullable=True)
    place_of_issue = Column(String(128), nullable=True)
    issued_by = Column(String(255), nullable=True)
    date_of_issue = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    valid_till = Column(Date, nullable=True)
    status = Column(
        SAEnum(DocumentStatus, name="document_status_enum", native_enum=False),
        nullable=False,
        default=DocumentStatus.ACTIVE,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    employee = relationship("Employee", back_populates="documents")
