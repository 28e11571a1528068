# aquanav/apps/parties/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_roles, require_staff
from aquanav.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(tags=["parties"])

PARTY_WRITE_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.PROJECT_MANAGER,
]


# ---------------------------------------------------------------------------
# CUSTOMERS
# ---------------------------------------------------------------------------


@router.get("/customers", response_model=schemas.CustomerPage)
def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(services.DEFAULT_PAGE_SIZE, ge=1, le=services.MAX_PAGE_SIZE),
    search: Optional[str] = None,
    show_archived: bool = False,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_customers(db, page=page, limit=limit, search=search, show_archived=show_archived)


@router.post("/customers", response_model=schemas.CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: schemas.CustomerCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    customer = services.create_customer(db, payload=payload)
    db.commit()
    db.refresh(customer)
    return customer


@router.get("/customers/{customer_id}", response_model=schemas.CustomerRead)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.get_customer(db, customer_id)


@router.put("/customers/{customer_id}", response_model=schemas.CustomerRead)
def update_customer(
    customer_id: int,
    payload: schemas.CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    customer = services.update_customer(db, customer_id=customer_id, payload=payload)
    db.commit()
    db.refresh(customer)
    return customer


@router.post("/customers/{customer_id}/archive", response_model=schemas.CustomerRead)
def archive_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    customer = services.archive_customer(db, customer_id=customer_id)
    db.commit()
    db.refresh(customer)
    return customer


@router.post("/customers/{customer_id}/unarchive", response_model=schemas.CustomerRead)
def unarchive_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    customer = services.unarchive_customer(db, customer_id=customer_id)
    db.commit()
    db.refresh(customer)
    return customer


# ---------------------------------------------------------------------------
# SUPPLIERS
# ---------------------------------------------------------------------------


@router.get("/suppliers", response_model=schemas.SupplierPage)
def list_suppliers(
    page: int = Query(1, ge=1),
    limit: int = Query(services.DEFAULT_PAGE_SIZE, ge=1, le=services.MAX_PAGE_SIZE),
    search: Optional[str] = None,
    show_archived: bool = False,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_suppliers(db, page=page, limit=limit, search=search, show_archived=show_archived)


@router.post("/suppliers", response_model=schemas.SupplierRead, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: schemas.SupplierCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    supplier = services.create_supplier(db, payload=payload)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.get("/suppliers/{supplier_id}", response_model=schemas.SupplierRead)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.get_supplier(db, supplier_id)


@router.put("/suppliers/{supplier_id}", response_model=schemas.SupplierRead)
def update_supplier(
    supplier_id: int,
    payload: schemas.SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    supplier = services.update_supplier(db, supplier_id=supplier_id, payload=payload)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.post("/suppliers/{supplier_id}/archive", response_model=schemas.SupplierRead)
def archive_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    supplier = services.archive_supplier(db, supplier_id=supplier_id)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.post("/suppliers/{supplier_id}/unarchive", response_model=schemas.SupplierRead)
def unarchive_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    supplier = services.unarchive_supplier(db, supplier_id=supplier_id)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.get("/suppliers/{supplier_id}/products", response_model=List[schemas.SupplierProductRead])
def list_supplier_products(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    links = services.list_supplier_products(db, supplier_id=supplier_id)
    return [services.supplier_product_to_read(link) for link in links]


@router.post(
    "/suppliers/{supplier_id}/products",
    response_model=schemas.SupplierProductRead,
    status_code=status.HTTP_201_CREATED,
)
def add_supplier_product(
    supplier_id: int,
    payload: schemas.SupplierProductCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    link = services.add_supplier_product(db, supplier_id=supplier_id, payload=payload)
    db.commit()
    db.refresh(link)
    return services.supplier_product_to_read(link)


# ---------------------------------------------------------------------------
# DOCUMENTS
# ---------------------------------------------------------------------------


@router.get("/customers/{customer_id}/documents", response_model=List[schemas.CustomerDocumentRead])
def list_customer_documents(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_customer_documents(db, customer_id=customer_id)


@router.post(
    "/customers/{customer_id}/documents",
    response_model=schemas.CustomerDocumentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_customer_document(
    customer_id: int,
    payload: schemas.PartyDocumentCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    document = services.add_customer_document(db, customer_id=customer_id, payload=payload)
    db.commit()
    db.refresh(document)
    return document


@router.put("/customers/{customer_id}/documents/{document_id}", response_model=schemas.CustomerDocumentRead)
def update_customer_document(
    customer_id: int,
    document_id: int,
    payload: schemas.PartyDocumentUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    document = services.update_customer_document(
        db,
        customer_id=customer_id,
        document_id=document_id,
        payload=payload,
    )
    db.commit()
    db.refresh(document)
    return document


@router.delete("/customers/{customer_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer_document(
    customer_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    services.delete_customer_document(db, customer_id=customer_id, document_id=document_id)
    db.commit()


@router.get("/suppliers/{supplier_id}/documents", response_model=List[schemas.SupplierDocumentRead])
def list_supplier_documents(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_supplier_documents(db, supplier_id=supplier_id)


@router.post(
    "/suppliers/{supplier_id}/documents",
    response_model=schemas.SupplierDocumentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_supplier_document(
    supplier_id: int,
    payload: schemas.PartyDocumentCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    document = services.add_supplier_document(db, supplier_id=supplier_id, payload=payload)
    db.commit()
    db.refresh(document)
    return document


@router.put("/suppliers/{supplier_id}/documents/{document_id}", response_model=schemas.SupplierDocumentRead)
def update_supplier_document(
    supplier_id: int,
    document_id: int,
    payload: schemas.PartyDocumentUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    document = services.update_supplier_document(
        db,
        supplier_id=supplier_id,
        document_id=document_id,
        payload=payload,
    )
    db.commit()
    db.refresh(document)
    return document


@router.delete("/suppliers/{supplier_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier_document(
    supplier_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PARTY_WRITE_ROLES)),
):
    services.delete_supplier_document(db, supplier_id=supplier_id, document_id=document_id)
    db.commit()
