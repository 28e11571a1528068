# aquanav/apps/parties/services.py

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional, Type, Union

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from aquanav.apps.inventory import models as inventory_models
from aquanav.utils import currency
from aquanav.utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginate
from . import models, schemas

logger = logging.getLogger(__name__)

Party = Union[models.Customer, models.Supplier]
PartyDocument = Union[models.CustomerDocument, models.SupplierDocument]

SUPPLIER_ONLY_DOCUMENT_TYPES = frozenset(
    {
        models.PartyDocumentType.SUPPLIER_AGREEMENT,
        models.PartyDocumentType.QUALITY_CERTIFICATE,
    }
)
CUSTOMER_DOCUMENT_TYPES = frozenset(models.PartyDocumentType) - SUPPLIER_ONLY_DOCUMENT_TYPES
SUPPLIER_DOCUMENT_TYPES = frozenset(models.PartyDocumentType)


def _list_parties(
    db: Session,
    model: Type[Party],
    *,
    page: int,
    limit: int,
    search: Optional[str],
    show_archived: bool,
) -> dict:
    query = db.query(model)
    if not show_archived:
        query = query.filter(model.is_archived.is_(False))
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(model.name).like(pattern),
                func.lower(model.contact_person).like(pattern),
                func.lower(model.email).like(pattern),
            )
        )
    return paginate(query.order_by(model.name.asc(), model.id.asc()), page=page, limit=limit)


def _apply(party: Party, data: dict) -> None:
    if data.get("currency") is not None:
        data["currency"] = currency.require_valid_currency(data["currency"])
    for field, value in data.items():
        setattr(party, field, value)


def _set_archived(db: Session, party: Party, archived: bool) -> Party:
    party.is_archived = archived
    db.add(party)
    db.flush()
    logger.info(
        "Party archive flag changed",
        extra={"party": party.__tablename__, "party_id": party.id, "archived": archived},
    )
    return party


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


def list_customers(
    db: Session,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    show_archived: bool = False,
) -> dict:
    return _list_parties(db, models.Customer, page=page, limit=limit, search=search, show_archived=show_archived)


def get_customer(db: Session, customer_id: int) -> models.Customer:
    customer = db.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


def get_customer_for_user(db: Session, user_id: str) -> Optional[models.Customer]:
    return db.query(models.Customer).filter(models.Customer.user_id == user_id).first()


def _ensure_unique_phone(db: Session, phone: Optional[str], *, exclude_id: Optional[int] = None) -> None:
    if not phone:
        return
    query = db.query(models.Customer).filter(models.Customer.phone == phone)
    if exclude_id is not None:
        query = query.filter(models.Customer.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A customer with this phone number already exists",
        )


def create_customer(db: Session, *, payload: schemas.CustomerCreate) -> models.Customer:
    data = payload.model_dump()
    _ensure_unique_phone(db, data.get("phone"))
    customer = models.Customer()
    _apply(customer, data)
    db.add(customer)
    db.flush()
    logger.info("Customer created", extra={"customer_id": customer.id})
    return customer


def update_customer(db: Session, *, customer_id: int, payload: schemas.CustomerUpdate) -> models.Customer:
    customer = get_customer(db, customer_id)
    data = payload.model_dump(exclude_unset=True)
    if "phone" in data:
        _ensure_unique_phone(db, data["phone"], exclude_id=customer.id)
    _apply(customer, data)
    db.add(customer)
    db.flush()
    return customer


def archive_customer(db: Session, *, customer_id: int) -> models.Customer:
    return _set_archived(db, get_customer(db, customer_id), True)


def unarchive_customer(db: Session, *, customer_id: int) -> models.Customer:
    return _set_archived(db, get_customer(db, customer_id), False)


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def list_suppliers(
    db: Session,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    show_archived: bool = False,
) -> dict:
    return _list_parties(db, models.Supplier, page=page, limit=limit, search=search, show_archived=show_archived)


def get_supplier(db: Session, supplier_id: int) -> models.Supplier:
    supplier = db.query(models.Supplier).filter(models.Supplier.id == supplier_id).first()
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return supplier


def create_supplier(db: Session, *, payload: schemas.SupplierCreate) -> models.Supplier:
    supplier = models.Supplier()
    _apply(supplier, payload.model_dump())
    db.add(supplier)
    db.flush()
    logger.info("Supplier created", extra={"supplier_id": supplier.id})
    return supplier


def update_supplier(db: Session, *, supplier_id: int, payload: schemas.SupplierUpdate) -> models.Supplier:
    supplier = get_supplier(db, supplier_id)
    _apply(supplier, payload.model_dump(exclude_unset=True))
    db.add(supplier)
    db.flush()
    return supplier


def archive_supplier(db: Session, *, supplier_id: int) -> models.Supplier:
    return _set_archived(db, get_supplier(db, supplier_id), True)


def unarchive_supplier(db: Session, *, supplier_id: int) -> models.Supplier:
    return _set_archived(db, get_supplier(db, supplier_id), False)


def list_supplier_products(db: Session, *, supplier_id: int) -> list:
    get_supplier(db, supplier_id)
    return (
        db.query(models.SupplierInventoryItem)
        .filter(models.SupplierInventoryItem.supplier_id == supplier_id)
        .order_by(
            models.SupplierInventoryItem.is_preferred.desc(),
            models.SupplierInventoryItem.id.asc(),
        )
        .all()
    )


def add_supplier_product(
    db: Session,
    *,
    supplier_id: int,
    payload: schemas.SupplierProductCreate,
) -> models.SupplierInventoryItem:
    get_supplier(db, supplier_id)
    item = db.get(inventory_models.InventoryItem, payload.inventory_item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")

    existing = (
        db.query(models.SupplierInventoryItem)
        .filter(
            models.SupplierInventoryItem.supplier_id == supplier_id,
            models.SupplierInventoryItem.inventory_item_id == payload.inventory_item_id,
        )
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This item is already linked to the supplier",
        )

    link = models.SupplierInventoryItem(supplier_id=supplier_id, **payload.model_dump())
    db.add(link)
    db.flush()
    return link


def supplier_product_to_read(link: models.SupplierInventoryItem) -> schemas.SupplierProductRead:
    read = schemas.SupplierProductRead.model_validate(link)
    read.item_name = link.inventory_item.name if link.inventory_item else None
    return read


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def _check_document(
    data: dict,
    *,
    allowed_types: FrozenSet[models.PartyDocumentType],
    current: Optional[PartyDocument] = None,
) -> None:
    document_type = data.get("document_type")
    if document_type is not None and document_type not in allowed_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Document type '{document_type.value}' is not allowed here",
        )
    date_of_issue = data.get("date_of_issue", current.date_of_issue if current else None)
    expiry_date = data.get("expiry_date", current.expiry_date if current else None)
    if date_of_issue and expiry_date and expiry_date < date_of_issue:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Expiry date cannot be before the date of issue",
        )


def _get_document(db: Session, model: Type[PartyDocument], owner_column, owner_id: int, document_id: int):
    document = (
        db.query(model)
        .filter(model.id == document_id, owner_column == owner_id)
        .first()
    )
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


def _list_documents(db: Session, model: Type[PartyDocument], owner_column, owner_id: int) -> List[PartyDocument]:
    return (
        db.query(model)
        .filter(owner_column == owner_id)
        .order_by(model.document_type.asc(), model.id.asc())
        .all()
    )


def _update_document(
    db: Session,
    document: PartyDocument,
    payload: schemas.PartyDocumentUpdate,
    *,
    allowed_types: FrozenSet[models.PartyDocumentType],
) -> PartyDocument:
    data = payload.model_dump(exclude_unset=True)
    _check_document(data, allowed_types=allowed_types, current=document)
    for field, value in data.items():
        setattr(document, field, value)
    db.add(document)
    db.flush()
    return document


def list_customer_documents(db: Session, *, customer_id: int) -> List[models.CustomerDocument]:
    get_customer(db, customer_id)
    return _list_documents(db, models.CustomerDocument, models.CustomerDocument.customer_id, customer_id)


def add_customer_document(
    db: Session,
    *,
    customer_id: int,
    payload: schemas.PartyDocumentCreate,
) -> models.CustomerDocument:
    get_customer(db, customer_id)
    data = payload.model_dump()
    _check_document(data, allowed_types=CUSTOMER_DOCUMENT_TYPES)
    document = models.CustomerDocument(customer_id=customer_id, **data)
    db.add(document)
    db.flush()
    logger.info("Customer document added", extra={"customer_id": customer_id, "document_id": document.id})
    return document


def update_customer_document(
    db: Session,
    *,
    customer_id: int,
    document_id: int,
    payload: schemas.PartyDocumentUpdate,
) -> models.CustomerDocument:
    document = _get_document(
        db, models.CustomerDocument, models.CustomerDocument.customer_id, customer_id, document_id
    )
    return _update_document(db, document, payload, allowed_types=CUSTOMER_DOCUMENT_TYPES)


def delete_customer_document(db: Session, *, customer_id: int, document_id: int) -> None:
    db.delete(
        _get_document(db, models.CustomerDocument, models.CustomerDocument.customer_id, customer_id, document_id)
    )
    db.flush()


def list_supplier_documents(db: Session, *, supplier_id: int) -> List[models.SupplierDocument]:
    get_supplier(db, supplier_id)
    return _list_documents(db, models.SupplierDocument, models.SupplierDocument.supplier_id, supplier_id)


def add_supplier_document(
    db: Session,
    *,
    supplier_id: int,
    payload: schemas.PartyDocumentCreate,
) -> models.SupplierDocument:
    get_supplier(db, supplier_id)
    data = payload.model_dump()
    _check_document(data, allowed_types=SUPPLIER_DOCUMENT_TYPES)
    document = models.SupplierDocument(supplier_id=supplier_id, **data)
    db.add(document)
    db.flush()
    logger.info("Supplier document added", extra={"supplier_id": supplier_id, "document_id": document.id})
    return document


def update_supplier_document(
    db: Session,
    *,
    supplier_id: int,
    document_id: int,
    payload: schemas.PartyDocumentUpdate,
) -> models.SupplierDocument:
    document = _get_document(
        db, models.SupplierDocument, models.SupplierDocument.supplier_id, supplier_id, document_id
    )
    return _update_document(db, document, payload, allowed_types=SUPPLIER_DOCUMENT_TYPES)


def delete_supplier_document(db: Session, *, supplier_id: int, document_id: int) -> None:
    db.delete(
        _get_document(db, models.SupplierDocument, models.SupplierDocument.supplier_id, supplier_id, document_id)
    )
    db.flush()
