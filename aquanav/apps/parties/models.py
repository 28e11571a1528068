# aquanav/apps/parties/models.py

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


class PartyDocumentType(str, enum.Enum):
    TRADE_LICENSE = "trade_license"
    TAX_REGISTRATION = "tax_registration"
    VAT_CERTIFICATE = "vat_certificate"
    COMMERCIAL_LICENSE = "commercial_license"
    ESTABLISHMENT_CARD = "establishment_card"
    CHAMBER_MEMBERSHIP = "chamber_membership"
    ISO_CERTIFICATE = "iso_certificate"
    INSURANCE_CERTIFICATE = "insurance_certificate"
    BANK_GUARANTEE = "bank_guarantee"
    OTHER = "other"
    # suppliers only
    SUPPLIER_AGREEMENT = "supplier_agreement"
    QUALITY_CERTIFICATE = "quality_certificate"


class PartyDocumentStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    PENDING_RENEWAL = "pending_renewal"
    CANCELLED = "cancelled"


class _PartyColumns:
    """Contact, VAT and commercial fields shared by customers and suppliers."""

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    contact_person = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    address = Column(Text, nullable=True)
    tax_id = Column(String(64), nullable=True)

    # UAE VAT registration
    vat_number = Column(String(32), nullable=True)
    vat_registration_status = Column(String(32), nullable=False, default="not_registered")
    vat_treatment = Column(String(32), nullable=False, default="standard")
    tax_category = Column(String(32), nullable=False, default="standard")
    is_vat_applicable = Column(Boolean, nullable=False, default=True)

    payment_terms = Column(String(32), nullable=True, default="30_days")
    currency = Column(String(8), nullable=False, default="AED")
    credit_limit = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class Customer(_PartyColumns, Base):
    """
    Ship owner or operator billed for project work.

    `user_id` links a CUSTOMER portal login to this record; that link is
    what scopes the customer's project list.
    """

    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("phone", name="uq_customers_phone"),
        Index("ix_customers_archived_name", "is_archived", "name"),
    )

    phone = Column(String(64), nullable=True)
    customer_type = Column(String(32), nullable=False, default="business")
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name}>"


class Supplier(_PartyColumns, Base):
    __tablename__ = "suppliers"
    __table_args__ = (
        Index("ix_suppliers_archived_name", "is_archived", "name"),
    )

    phone = Column(String(64), nullable=True)
    bank_info = Column(Text, nullable=True)
    supplier_type = Column(String(32), nullable=False, default="business")

    products = relationship(
        "SupplierInventoryItem",
        back_populates="supplier",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name}>"


class SupplierInventoryItem(Base):
    """Catalogue entry: an inventory item a supplier can deliver, at their price."""

    __tablename__ = "supplier_inventory_items"
    __table_args__ = (
        UniqueConstraint("supplier_id", "inventory_item_id", name="uq_supplier_inventory_item"),
    )

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_part_number = Column(String(128), nullable=True)
    unit_cost = Column(Numeric(12, 2), nullable=True)
    minimum_order_quantity = Column(Integer, nullable=False, default=1)
    lead_time_days = Column(Integer, nullable=True)
    is_preferred = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    supplier = relationship("Supplier", back_populates="products")
    inventory_item = relationship("InventoryItem", lazy="selectin")


class _PartyDocumentColumns:
    """
    Registration papers kept on file for a customer or supplier.

    Only metadata is stored; `file_name` and `file_size` describe a copy
    held outside the system.
    """

    id = Column(Integer, primary_key=True, index=True)
    document_type = Column(
        SAEnum(PartyDocumentType, name="party_document_type_enum", native_enum=False),
        nullable=False,
    )
    document_name = Column(String(255), nullable=False)
    document_number = Column(String(128), nullable=True)
    issuing_authority = Column(String(255), nullable=True)
    date_of_issue = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True, index=True)
    file_name = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    status = Column(
        SAEnum(PartyDocumentStatus, name="party_document_status_enum", native_enum=False),
        nullable=False,
        default=PartyDocumentStatus.ACTIVE,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class CustomerDocument(_PartyDocumentColumns, Base):
    __tablename__ = "customer_documents"

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)


class SupplierDocument(_PartyDocumentColumns, Base):
    __tablename__ = "supplier_documents"

    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True)
