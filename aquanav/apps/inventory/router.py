# aquanav/apps/inventory/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_roles, require_staff
from aquanav.apps.accounts import models as account_models
from aquanav.apps.projects import services as project_services
from aquanav.utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

from . import models, schemas, services

router = APIRouter(prefix="/inventory", tags=["inventory"])

INVENTORY_WRITE_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.PROJECT_MANAGER,
]


@router.get("/items", response_model=schemas.InventoryItemPage)
def list_items(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = None,
    category: Optional[models.InventoryCategoryEnum] = None,
    low_stock: bool = False,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_items(
        db,
        page=page,
        limit=limit,
        search=search,
        category=category,
        low_stock=low_stock,
    )


@router.get("/items/low-stock", response_model=List[schemas.InventoryItemRead])
def low_stock_items(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.low_stock_items(db)


@router.post("/items", response_model=schemas.InventoryItemRead, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: schemas.InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    item = services.create_item(db, payload=payload)
    db.commit()
    db.refresh(item)
    return item


@router.get("/items/{item_id}", response_model=schemas.InventoryItemRead)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.get_item(db, item_id)


@router.put("/items/{item_id}", response_model=schemas.InventoryItemRead)
def update_item(
    item_id: int,
    payload: schemas.InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    item = services.update_item(db, item_id=item_id, payload=payload)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    services.delete_item(db, item_id=item_id)
    db.commit()


@router.post(
    "/goods-receipts",
    response_model=schemas.GoodsReceiptResult,
    status_code=status.HTTP_201_CREATED,
)
def receive_goods(
    payload: schemas.GoodsReceiptCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    if not payload.idempotency_key and idempotency_key:
        payload.idempotency_key = idempotency_key
    transactions = services.receive_goods(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    return schemas.GoodsReceiptResult(created_transactions=transactions)


@router.post(
    "/goods-issues",
    response_model=schemas.GoodsIssueResult,
    status_code=status.HTTP_201_CREATED,
)
def issue_goods(
    payload: schemas.GoodsIssueCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    result = services.issue_goods(db, payload=payload, actor_user_id=current_user.id)
    project_services.recalculate_for_project_id(db, payload.project_id)
    db.commit()
    return result


@router.get("/transactions", response_model=List[schemas.InventoryTransactionRead])
def list_transactions(
    type: Optional[models.InventoryTransactionTypeEnum] = None,
    item_id: Optional[int] = None,
    project_id: Optional[int] = None,
    limit: int = Query(500, ge=1, le=5000),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_transactions(db, type=type, item_id=item_id, project_id=project_id, limit=limit)
