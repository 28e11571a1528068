# aquanav/apps/purchasing/models.py

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
    UniqueConstraint,
)
from sqlalchemy.orm import declared_attr, relationship

from aquanav.database import Base
from aquanav.utils.documents import LineColumns, TotalsColumns


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class ItemType(str, enum.Enum):
    PRODUCT = "product"
    SERVICE = "service"


class PurchaseRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Urgency(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class PurchaseOrderStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    CONFIRMED = "confirmed"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PurchaseInvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CreditNoteStatus(str, enum.Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    CANCELLED = "cancelled"


class _PurchaseLineColumns(LineColumns):
    item_type = Column(
        SAEnum(ItemType, name="purchase_item_type_enum", native_enum=False),
        nullable=False,
        default=ItemType.PRODUCT,
    )

    @declared_attr
    def inventory_item_id(cls):
        return Column(Integer, ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True)


# ---------------------------------------------------------------------------
# PURCHASE REQUESTS
# ---------------------------------------------------------------------------


class PurchaseRequest(Base):
    """
    Internal request to buy; once approved it can be turned into a
    purchase order, which marks it completed.
    """

    __tablename__ = "purchase_requests"
    __table_args__ = (
        UniqueConstraint("request_number", name="uq_purchase_requests_number"),
        Index("ix_purchase_requests_status", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    request_number = Column(String(64), nullable=False)
    request_date = Column(Date, nullable=False)
    status = Column(
        SAEnum(PurchaseRequestStatus, name="purchase_request_status_enum", native_enum=False),
        nullable=False,
        default=PurchaseRequestStatus.PENDING,
    )
    urgency = Column(
        SAEnum(Urgency, name="purchase_request_urgency_enum", native_enum=False),
        nullable=False,
        default=Urgency.NORMAL,
    )
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    requested_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    items = relationship(
        "PurchaseRequestItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseRequestItem.id",
    )


class PurchaseRequestItem(Base):
    __tablename__ = "purchase_request_items"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("purchase_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = Column(
        SAEnum(ItemType, name="purchase_item_type_enum", native_enum=False),
        nullable=False,
        default=ItemType.PRODUCT,
    )
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)


# ---------------------------------------------------------------------------
# PURCHASE ORDERS
# ---------------------------------------------------------------------------


class PurchaseOrder(TotalsColumns, Base):
    __tablename__ = "purchase_orders"
    __table_args__ = (
        UniqueConstraint("po_number", name="uq_purchase_orders_number"),
        Index("ix_purchase_orders_supplier", "supplier_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String(64), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    request_id = Column(Integer, ForeignKey("purchase_requests.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SAEnum(PurchaseOrderStatus, name="purchase_order_status_enum", native_enum=False),
        nullable=False,
        default=PurchaseOrderStatus.DRAFT,
    )
    order_date = Column(Date, nullable=False)
    expected_delivery_date = Column(Date, nullable=True)
    payment_terms = Column(String(255), nullable=True)
    delivery_terms = Column(String(255), nullable=True)
    bank_account = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    supplier = relationship("Supplier", lazy="joined")
    items = relationship(
        "PurchaseOrderItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseOrderItem.id",
    )


class PurchaseOrderItem(_PurchaseLineColumns, Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)


# ---------------------------------------------------------------------------
# PURCHASE INVOICES
# ---------------------------------------------------------------------------


class PurchaseInvoice(TotalsColumns, Base):
    """
    Supplier bill. It only becomes a payable (and project cost) once
    approved; payment status is tracked separately from approval.
    """

    __tablename__ = "purchase_invoices"
    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_purchase_invoices_number"),
        Index("ix_purchase_invoices_supplier", "supplier_id"),
        Index("ix_purchase_invoices_project", "project_id"),
        Index("ix_purchase_invoices_approval", "approval_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(64), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    po_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    asset_instance_id = Column(Integer, ForeignKey("asset_instances.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SAEnum(PurchaseInvoiceStatus, name="purchase_invoice_status_enum", native_enum=False),
        nullable=False,
        default=PurchaseInvoiceStatus.PENDING,
    )
    approval_status = Column(
        SAEnum(ApprovalStatus, name="purchase_invoice_approval_enum", native_enum=False),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    supplier = relationship("Supplier", lazy="joined")
    items = relationship(
        "PurchaseInvoiceItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseInvoiceItem.id",
    )
    payments = relationship(
        "PurchaseInvoicePayment",
        back_populates="invoice",
        lazy="selectin",
        order_by="PurchaseInvoicePayment.id",
    )


class PurchaseInvoiceItem(_PurchaseLineColumns, Base):
    __tablename__ = "purchase_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("purchase_invoices.id", ondelete="CASCADE"), nullable=False, index=True)


class PurchaseInvoicePayment(Base):
    __tablename__ = "purchase_invoice_payments"
    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_purchase_payments_idempotency"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("purchase_invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String(64), nullable=True)
    reference_number = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)
    idempotency_key = Column(String(128), nullable=True)
    recorded_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    invoice = relationship("PurchaseInvoice", back_populates="payments")


# ---------------------------------------------------------------------------
# PURCHASE CREDIT NOTES
# ---------------------------------------------------------------------------


class PurchaseCreditNote(TotalsColumns, Base):
    __tablename__ = "purchase_credit_notes"
    __table_args__ = (
        UniqueConstraint("credit_note_number", name="uq_purchase_credit_notes_number"),
        Index("ix_purchase_credit_notes_invoice", "purchase_invoice_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    credit_note_number = Column(String(64), nullable=False)
    purchase_invoice_id = Column(Integer, ForeignKey("purchase_invoices.id", ondelete="SET NULL"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    status = Column(
        SAEnum(CreditNoteStatus, name="purchase_credit_note_status_enum", native_enum=False),
        nullable=False,
        default=CreditNoteStatus.DRAFT,
    )
    credit_note_date = Column(Date, nullable=False)
    reason = Column(Text, nullable=True)
    issued_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    supplier = relationship("Supplier", lazy="joined")
    invoice = relationship("PurchaseInvoice", lazy="joined")
    items = relationship(
        "PurchaseCreditNoteItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseCreditNoteItem.id",
    )


class PurchaseCreditNoteItem(_PurchaseLineColumns, Base):
    __tablename__ = "purchase_credit_note_items"

    id = Column(Integer, primary_key=True, index=True)
    credit_note_id = Column(
        Integer,
        ForeignKey("purchase_credit_notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
