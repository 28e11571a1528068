from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.audit import models as audit_models
from aquanav.apps.inventory import models as inventory_models
from aquanav.apps.inventory import router as inventory_router
from aquanav.apps.inventory import schemas as inventory_schemas
from aquanav.apps.inventory import services as inventory_services
from aquanav.apps.projects import models as project_models

C = inventory_models.InventoryCategoryEnum


def _item(db, name="Welding rods", *, stock=0, min_level=5, avg="0"):
    item = inventory_services.create_item(
        db,
        payload=inventory_schemas.InventoryItemCreate(
            name=name,
            category=C.CONSUMABLES,
            unit="box",
            current_stock=stock,
            min_stock_level=min_level,
            avg_cost=Decimal(avg),
        ),
    )
    db.commit()
    return item


def _receive(db, item, quantity, unit_cost, *, reference="GRN-1", key=None):
    transactions = inventory_services.receive_goods(
        db,
        payload=inventory_schemas.GoodsReceiptCreate(
            reference=reference,
            items=[
                inventory_schemas.GoodsReceiptLine(
                    inventory_item_id=item.id, quantity=quantity, unit_cost=Decimal(unit_cost)
                )
            ],
            idempotency_key=key,
        ),
        actor_user_id="pm-1",
    )
    db.commit()
    return transactions


def test_weighted_average_cost():
    assert inventory_services.weighted_average_cost(10, Decimal("5"), 10, Decimal("7")) == Decimal("6.0000")
    assert inventory_services.weighted_average_cost(0, Decimal("0"), 4, Decimal("2.5")) == Decimal("2.5000")


def test_receive_goods_updates_stock_and_average(db_session):
    item = _item(db_session, stock=10, avg="5")

    transactions = _receive(db_session, item, 10, "7")

    db_session.refresh(item)
    assert item.current_stock == 20
    assert item.avg_cost == Decimal("6.0000")
    assert len(transactions) == 1
    assert transactions[0].type == inventory_models.InventoryTransactionTypeEnum.INFLOW
    assert transactions[0].remaining_quantity == 10

    audit_rows = (
        db_session.query(audit_models.AuditEvent)
        .filter(audit_models.AuditEvent.entity_type == "GoodsReceipt")
        .all()
    )
    assert len(audit_rows) == 1


def test_receive_goods_replay_returns_original(db_session):
    item = _item(db_session)

    first = _receive(db_session, item, 4, "3", key="grn-key-1")
    replay = _receive(db_session, item, 4, "3", key="grn-key-1")

    db_session.refresh(item)
    assert item.current_stock == 4
    assert [tx.id for tx in replay] == [tx.id for tx in first]

    with pytest.raises(HTTPException) as exc:
        _receive(db_session, item, 5, "3", key="grn-key-1")
    assert exc.value.status_code == 409


def test_issue_goods_checks_combined_quantity(db_session):
    item = _item(db_session, stock=5, avg="2")

    with pytest.raises(HTTPException) as exc:
        inventory_services.issue_goods(
            db_session,
            payload=inventory_schemas.GoodsIssueCreate(
                reference="ISS-1",
                items=[
                    inventory_schemas.GoodsIssueLine(inventory_item_id=item.id, quantity=3),
                    inventory_schemas.GoodsIssueLine(inventory_item_id=item.id, quantity=3),
                ],
            ),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 400
    db_session.rollback()
    db_session.refresh(item)
    assert item.current_stock == 5


def test_issue_goods_against_project_feeds_outflow_cost(db_session):
    project = project_models.Project(title="Hull survey", locations=[])
    db_session.add(project)
    db_session.commit()
    item = _item(db_session, stock=10, avg="4.5")

    result = inventory_services.issue_goods(
        db_session,
        payload=inventory_schemas.GoodsIssueCreate(
            reference="ISS-2",
            project_id=project.id,
            items=[inventory_schemas.GoodsIssueLine(inventory_item_id=item.id, quantity=4)],
        ),
        actor_user_id="pm-1",
    )
    db_session.commit()

    assert result.items[0].unit_cost == Decimal("4.5000")
    db_session.refresh(item)
    assert item.current_stock == 6
    assert inventory_services.project_outflow_cost(db_session, project.id) == Decimal("18.00")

    with pytest.raises(HTTPException) as exc:
        inventory_services.issue_goods(
            db_session,
            payload=inventory_schemas.GoodsIssueCreate(
                reference="ISS-3",
                project_id=9999,
                items=[inventory_schemas.GoodsIssueLine(inventory_item_id=item.id, quantity=1)],
            ),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 404


def test_list_items_search_and_low_stock(db_session):
    _item(db_session, "Welding rods", stock=2, min_level=5)
    _item(db_session, "Nitrile gloves", stock=40, min_level=5)

    page = inventory_services.list_items(db_session, search="glove")
    assert [item.name for item in page["items"]] == ["Nitrile gloves"]

    low = inventory_services.list_items(db_session, low_stock=True)
    assert [item.name for item in low["items"]] == ["Welding rods"]
    assert inventory_services.count_low_stock_items(db_session) == 1


def test_delete_item_with_history_conflicts(db_session):
    item = _item(db_session)
    _receive(db_session, item, 1, "1")

    with pytest.raises(HTTPException) as exc:
        inventory_services.delete_item(db_session, item_id=item.id)
    assert exc.value.status_code == 409


def test_inventory_routes_registered():
    paths = {route.path for route in inventory_router.router.routes}
    assert "/inventory/items/low-stock" in paths
    assert "/inventory/goods-receipts" in paths
    assert "/inventory/goods-issues" in paths
