# aquanav/apps/ledger/models.py

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
    Numeric,
    String,
    Text,
)

from aquanav.database import Base


class GLEntryType(str, enum.Enum):
    RECEIVABLE = "receivable"
    PAYABLE = "payable"
    JOURNAL = "journal"


class GLReferenceType(str, enum.Enum):
    SALES_INVOICE = "sales_invoice"
    INVOICE_PAYMENT = "invoice_payment"
    CREDIT_NOTE = "credit_note"
    PURCHASE_INVOICE = "purchase_invoice"
    PURCHASE_PAYMENT = "purchase_payment"
    PURCHASE_CREDIT_NOTE = "purchase_credit_note"
    PAYROLL = "payroll"
    PAYROLL_PAYMENT = "payroll_payment"
    MANUAL = "manual"


class GLStatus(str, enum.Enum):
    PENDING = "pending"
    POSTED = "posted"
    PAID = "paid"
    CANCELLED = "cancelled"


class GeneralLedgerEntry(Base):
    """
    One debit or credit line.

    Lines are written in balanced sets that share `reference_type` and
    `reference_id`, i.e. the business document that caused the posting.
    """

    __tablename__ = "general_ledger_entries"
    __table_args__ = (
        Index("ix_gl_reference", "reference_type", "reference_id"),
        Index("ix_gl_account_date", "account_name", "transaction_date"),
        Index("ix_gl_project", "project_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    entry_type = Column(
        SAEnum(GLEntryType, name="gl_entry_type_enum", native_enum=False),
        nullable=False,
        default=GLEntryType.JOURNAL,
    )
    reference_type = Column(
        SAEnum(GLReferenceType, name="gl_reference_type_enum", native_enum=False),
        nullable=False,
    )
    reference_id = Column(Integer, nullable=True)
    account_name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    debit_amount = Column(Numeric(12, 2), nullable=False, default=0)
    credit_amount = Column(Numeric(12, 2), nullable=False, default=0)

    # Counterparty: customer, supplier or employee depending on reference_type
    entity_id = Column(Integer, nullable=True)
    entity_name = Column(String(255), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    invoice_number = Column(String(64), nullable=True)

    transaction_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(
        SAEnum(GLStatus, name="gl_status_enum", native_enum=False),
        nullable=False,
        default=GLStatus.POSTED,
    )
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
