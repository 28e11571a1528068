# aquanav/apps/inventory/services.py

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from aquanav.apps.accounts import services as account_services
from aquanav.apps.audit import schemas as audit_schemas
from aquanav.apps.audit import services as audit_services
from aquanav.apps.projects import models as project_models
from aquanav.utils.pagination import DEFAULT_PAGE_SIZE, paginate
from . import models, schemas

logger = logging.getLogger(__name__)

COST_QUANT = Decimal("0.0001")


def _audit_event(
    db: Session,
    *,
    entity_type: str,
    entity_id: str,
    action: str,
    actor_user_id: Optional[str],
    after: dict,
) -> None:
    audit_services.create_audit_event(
        db,
        data=audit_schemas.AuditEventCreate(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_user_id=actor_user_id,
            after=after,
        ),
    )


def _item_not_found(item_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Inventory item with ID {item_id} not found",
    )


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def list_items(
    db: Session,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    category: Optional[models.InventoryCategoryEnum] = None,
    low_stock: bool = False,
) -> dict:
    query = db.query(models.InventoryItem)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(models.InventoryItem.name).like(pattern),
                func.lower(models.InventoryItem.description).like(pattern),
            )
        )
    if category is not None:
        query = query.filter(models.InventoryItem.category == category)
    if low_stock:
        query = query.filter(models.InventoryItem.current_stock <= models.InventoryItem.min_stock_level)
    return paginate(query.order_by(models.InventoryItem.name.asc()), page=page, limit=limit)


def get_item(db: Session, item_id: int) -> models.InventoryItem:
    item = db.get(models.InventoryItem, item_id)
    if not item:
        raise _item_not_found(item_id)
    return item


def create_item(db: Session, *, payload: schemas.InventoryItemCreate) -> models.InventoryItem:
    item = models.InventoryItem(**payload.model_dump())
    db.add(item)
    db.flush()
    logger.info("Inventory item created", extra={"item_id": item.id, "category": item.category.value})
    return item


def update_item(db: Session, *, item_id: int, payload: schemas.InventoryItemUpdate) -> models.InventoryItem:
    item = get_item(db, item_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(item, field, value)
    db.add(item)
    db.flush()
    return item


def delete_item(db: Session, *, item_id: int) -> None:
    item = get_item(db, item_id)
    has_history = (
        db.query(models.InventoryTransaction.id)
        .filter(models.InventoryTransaction.item_id == item.id)
        .first()
    )
    if has_history:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Inventory item has transactions and cannot be deleted",
        )
    db.delete(item)
    db.flush()


def low_stock_items(db: Session) -> List[models.InventoryItem]:
    return (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.current_stock <= models.InventoryItem.min_stock_level)
        .order_by(models.InventoryItem.current_stock.asc(), models.InventoryItem.name.asc())
        .all()
    )


def count_low_stock_items(db: Session) -> int:
    return (
        db.query(func.count(models.InventoryItem.id))
        .filter(models.InventoryItem.current_stock <= models.InventoryItem.min_stock_level)
        .scalar()
        or 0
    )


# ---------------------------------------------------------------------------
# Goods receipt (inflow)
# ---------------------------------------------------------------------------


def weighted_average_cost(
    old_stock: int,
    old_avg: Decimal,
    quantity: int,
    unit_cost: Decimal,
) -> Decimal:
    new_stock = old_stock + quantity
    if new_stock <= 0:
        return Decimal(unit_cost).quantize(COST_QUANT)
    total_value = Decimal(old_stock) * Decimal(old_avg or 0) + Decimal(quantity) * Decimal(unit_cost)
    return (total_value / Decimal(new_stock)).quantize(COST_QUANT)


def _transactions_for_reference(db: Session, reference: str) -> List[models.InventoryTransaction]:
    return (
        db.query(models.InventoryTransaction)
        .filter(
            models.InventoryTransaction.reference == reference,
            models.InventoryTransaction.type == models.InventoryTransactionTypeEnum.INFLOW,
        )
        .order_by(models.InventoryTransaction.id.asc())
        .all()
    )


def receive_goods(
    db: Session,
    *,
    payload: schemas.GoodsReceiptCreate,
    actor_user_id: Optional[str],
) -> List[models.InventoryTransaction]:
    """
    Book a goods receipt: one inflow transaction per line, stock up and
    the weighted average cost recomputed.

    With an idempotency key, a replay of the same receipt returns the
    transactions created the first time.
    """
    if payload.idempotency_key:
        try:
            _, created = account_services.register_idempotency_key(
                db,
                scope="inventory-goods-receipt",
                key=payload.idempotency_key,
                payload=payload.model_dump(exclude={"idempotency_key"}),
            )
        except account_services.IdempotencyError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        if not created:
            return _transactions_for_reference(db, payload.reference)

    items: Dict[int, models.InventoryItem] = {}
    for line in payload.items:
        if line.inventory_item_id not in items:
            item = (
                db.query(models.InventoryItem)
                .filter(models.InventoryItem.id == line.inventory_item_id)
                .with_for_update()
                .first()
            )
            if not item:
                raise _item_not_found(line.inventory_item_id)
            items[item.id] = item

    created_transactions: List[models.InventoryTransaction] = []
    now = datetime.utcnow()
    for line in payload.items:
        item = items[line.inventory_item_id]
        tx = models.InventoryTransaction(
            item_id=item.id,
            type=models.InventoryTransactionTypeEnum.INFLOW,
            quantity=line.quantity,
            unit_cost=Decimal(line.unit_cost).quantize(COST_QUANT),
            remaining_quantity=line.quantity,
            reference=payload.reference,
            created_by=actor_user_id,
            timestamp=now,
        )
        db.add(tx)

        old_stock = item.current_stock or 0
        item.avg_cost = weighted_average_cost(old_stock, item.avg_cost, line.quantity, line.unit_cost)
        item.current_stock = old_stock + line.quantity
        db.add(item)
        created_transactions.append(tx)

    db.flush()
    _audit_event(
        db,
        entity_type="GoodsReceipt",
        entity_id=payload.reference,
        action="receive",
        actor_user_id=actor_user_id,
        after={
            "lines": [
                {"item_id": tx.item_id, "quantity": tx.quantity, "unit_cost": str(tx.unit_cost)}
                for tx in created_transactions
            ]
        },
    )
    logger.info(
        "Goods receipt booked",
        extra={"reference": payload.reference, "lines": len(created_transactions)},
    )
    return created_transactions


# ---------------------------------------------------------------------------
# Goods issue (outflow)
# ---------------------------------------------------------------------------


def issue_goods(
    db: Session,
    *,
    payload: schemas.GoodsIssueCreate,
    actor_user_id: Optional[str],
) -> schemas.GoodsIssueResult:
    """
    Issue stock, optionally against a project.

    Every line is checked before anything is written, so one short line
    rejects the whole issue. Lines for the same item are checked against
    their combined quantity.
    """
    if payload.project_id is not None and not db.get(project_models.Project, payload.project_id):
        raise HTTPException(status_code=404, detail="Project not found")

    items: Dict[int, models.InventoryItem] = {}
    requested: Dict[int, int] = {}
    for line in payload.items:
        if line.inventory_item_id not in items:
            item = (
                db.query(models.InventoryItem)
                .filter(models.InventoryItem.id == line.inventory_item_id)
                .with_for_update()
                .first()
            )
            if not item:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Inventory item with ID {line.inventory_item_id} not found.",
                )
            items[item.id] = item
        requested[line.inventory_item_id] = requested.get(line.inventory_item_id, 0) + line.quantity

    for item_id, quantity in requested.items():
        item = items[item_id]
        available = item.current_stock or 0
        if available < quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    f"Insufficient stock for item ID {item.id} ({item.name}). "
                    f"Available: {available}, Requested: {quantity}"
                ),
            )

    now = datetime.utcnow()
    issued = []
    for line in payload.items:
        item = items[line.inventory_item_id]
        unit_cost = Decimal(item.avg_cost or 0).quantize(COST_QUANT)
        tx = models.InventoryTransaction(
            item_id=item.id,
            type=models.InventoryTransactionTypeEnum.OUTFLOW,
            quantity=line.quantity,
            unit_cost=unit_cost,
            remaining_quantity=0,
            project_id=payload.project_id,
            reference=payload.reference,
            created_by=actor_user_id,
            timestamp=now,
        )
        db.add(tx)
        item.current_stock = (item.current_stock or 0) - line.quantity
        db.add(item)
        issued.append(tx)

    db.flush()
    _audit_event(
        db,
        entity_type="GoodsIssue",
        entity_id=payload.reference,
        action="issue",
        actor_user_id=actor_user_id,
        after={
            "project_id": payload.project_id,
            "lines": [{"item_id": tx.item_id, "quantity": tx.quantity} for tx in issued],
        },
    )
    return schemas.GoodsIssueResult(
        reference=payload.reference,
        project_id=payload.project_id,
        items=[
            schemas.GoodsIssueLineRead(
                inventory_transaction_id=tx.id,
                inventory_item_id=tx.item_id,
                quantity=tx.quantity,
                unit_cost=tx.unit_cost,
            )
            for tx in issued
        ],
        date=now,
    )


def list_transactions(
    db: Session,
    *,
    type: Optional[models.InventoryTransactionTypeEnum] = None,
    item_id: Optional[int] = None,
    project_id: Optional[int] = None,
    limit: int = 500,
) -> List[models.InventoryTransaction]:
    query = db.query(models.InventoryTransaction)
    if type is not None:
        query = query.filter(models.InventoryTransaction.type == type)
    if item_id is not None:
        query = query.filter(models.InventoryTransaction.item_id == item_id)
    if project_id is not None:
        query = query.filter(models.InventoryTransaction.project_id == project_id)
    return (
        query.order_by(models.InventoryTransaction.timestamp.desc(), models.InventoryTransaction.id.desc())
        .limit(limit)
        .all()
    )


def project_outflow_cost(db: Session, project_id: int) -> Decimal:
    total = (
        db.query(
            func.coalesce(
                func.sum(models.InventoryTransaction.quantity * models.InventoryTransaction.unit_cost),
                0,
            )
        )
        .filter(
            models.InventoryTransaction.project_id == project_id,
            models.InventoryTransaction.type == models.InventoryTransactionTypeEnum.OUTFLOW,
        )
        .scalar()
    )
    return Decimal(str(total or 0)).quantize(Decimal("0.01"))
