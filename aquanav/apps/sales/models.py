# aquanav/apps/sales/models.py

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
from sqlalchemy.orm import relationship

from aquanav.database import Base
from aquanav.utils.documents import LineColumns, TotalsColumns


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class QuotationStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONVERTED = "converted"


class ProformaStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class SalesInvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"


class CreditNoteStatus(str, enum.Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    CANCELLED = "cancelled"


class PaymentType(str, enum.Enum):
    PAYMENT = "payment"
    CREDIT_NOTE = "credit_note"


class _TermsColumns:
    payment_terms = Column(String(255), nullable=True)
    bank_account = Column(String(255), nullable=True)
    billing_address = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)


# ---------------------------------------------------------------------------
# QUOTATIONS
# ---------------------------------------------------------------------------


class SalesQuotation(_TermsColumns, TotalsColumns, Base):
    __tablename__ = "sales_quotations"
    __table_args__ = (
        UniqueConstraint("quotation_number", name="uq_sales_quotations_number"),
        Index("ix_sales_quotations_customer", "customer_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    quotation_number = Column(String(64), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SAEnum(QuotationStatus, name="quotation_status_enum", native_enum=False),
        nullable=False,
        default=QuotationStatus.DRAFT,
    )
    valid_until = Column(Date, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    customer = relationship("Customer", lazy="joined")
    items = relationship(
        "SalesQuotationItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SalesQuotationItem.id",
    )


class SalesQuotationItem(LineColumns, Base):
    __tablename__ = "sales_quotation_items"

    id = Column(Integer, primary_key=True, index=True)
    quotation_id = Column(Integer, ForeignKey("sales_quotations.id", ondelete="CASCADE"), nullable=False, index=True)


# ---------------------------------------------------------------------------
# PROFORMA INVOICES
# ---------------------------------------------------------------------------


class ProformaInvoice(_TermsColumns, TotalsColumns, Base):
    __tablename__ = "proforma_invoices"
    __table_args__ = (
        UniqueConstraint("proforma_number", name="uq_proforma_invoices_number"),
        Index("ix_proforma_invoices_project", "project_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    proforma_number = Column(String(64), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    quotation_id = Column(Integer, ForeignKey("sales_quotations.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SAEnum(ProformaStatus, name="proforma_status_enum", native_enum=False),
        nullable=False,
        default=ProformaStatus.DRAFT,
    )
    invoice_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=True)
    delivery_terms = Column(String(255), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    customer = relationship("Customer", lazy="joined")
    items = relationship(
        "ProformaInvoiceItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProformaInvoiceItem.id",
    )


class ProformaInvoiceItem(LineColumns, Base):
    __tablename__ = "proforma_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    proforma_id = Column(Integer, ForeignKey("proforma_invoices.id", ondelete="CASCADE"), nullable=False, index=True)


# ---------------------------------------------------------------------------
# SALES INVOICES
# ---------------------------------------------------------------------------


class SalesInvoice(_TermsColumns, TotalsColumns, Base):
    """
    Customer invoice. The number is only assigned on approval, which is
    also when the receivable is posted to the ledger.
    """

    __tablename__ = "sales_invoices"
    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_sales_invoices_number"),
        Index("ix_sales_invoices_status", "status"),
        Index("ix_sales_invoices_customer", "customer_id"),
        Index("ix_sales_invoices_project", "project_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(64), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    quotation_id = Column(Integer, ForeignKey("sales_quotations.id", ondelete="SET NULL"), nullable=True)
    proforma_id = Column(Integer, ForeignKey("proforma_invoices.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SAEnum(SalesInvoiceStatus, name="sales_invoice_status_enum", native_enum=False),
        nullable=False,
        default=SalesInvoiceStatus.DRAFT,
    )
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    customer = relationship("Customer", lazy="joined")
    items = relationship(
        "SalesInvoiceItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SalesInvoiceItem.id",
    )
    payments = relationship(
        "InvoicePayment",
        back_populates="invoice",
        lazy="selectin",
        order_by="InvoicePayment.id",
    )


class SalesInvoiceItem(LineColumns, Base):
    __tablename__ = "sales_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("sales_invoices.id", ondelete="CASCADE"), nullable=False, index=True)


class InvoicePayment(Base):
    """
    Money (or a credit note) applied against a sales invoice.
    """

    __tablename__ = "invoice_payments"
    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_invoice_payments_idempotency"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("sales_invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String(64), nullable=True)
    reference_number = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)
    payment_type = Column(
        SAEnum(PaymentType, name="invoice_payment_type_enum", native_enum=False),
        nullable=False,
        default=PaymentType.PAYMENT,
    )
    credit_note_id = Column(Integer, ForeignKey("credit_notes.id", ondelete="SET NULL"), nullable=True)
    idempotency_key = Column(String(128), nullable=True)
    recorded_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    invoice = relationship("SalesInvoice", back_populates="payments")


# ---------------------------------------------------------------------------
# CREDIT NOTES
# ---------------------------------------------------------------------------


class CreditNote(TotalsColumns, Base):
    __tablename__ = "credit_notes"
    __table_args__ = (
        UniqueConstraint("credit_note_number", name="uq_credit_notes_number"),
        Index("ix_credit_notes_invoice", "sales_invoice_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    credit_note_number = Column(String(64), nullable=False)
    sales_invoice_id = Column(Integer, ForeignKey("sales_invoices.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SAEnum(CreditNoteStatus, name="credit_note_status_enum", native_enum=False),
        nullable=False,
        default=CreditNoteStatus.DRAFT,
    )
    credit_note_date = Column(Date, nullable=False)
    reason = Column(Text, nullable=True)
    issued_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    customer = relationship("Customer", lazy="joined")
    invoice = relationship("SalesInvoice", lazy="joined")
    items = relationship(
        "CreditNoteItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CreditNoteItem.id",
    )


class CreditNoteItem(LineColumns, Base):
    __tablename__ = "credit_note_items"

    id = Column(Integer, primary_key=True, index=True)
    credit_note_id = Column(Integer, ForeignKey("credit_notes.id", ondelete="CASCADE"), nullable=False, index=True)
