from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.accounts import models as account_models
from aquanav.apps.employees import models as employee_models
from aquanav.apps.inventory import models as inventory_models
from aquanav.apps.parties import schemas as party_schemas
from aquanav.apps.parties import services as party_services
from aquanav.apps.projects import models as project_models
from aquanav.apps.projects import router as project_router
from aquanav.apps.projects import schemas as project_schemas
from aquanav.apps.projects import services as project_services
from aquanav.apps.sales import models as sales_models

S = project_models.ProjectStatus


def _project(db, title="Hull survey", **fields):
    project = project_services.create_project(
        db,
        payload=project_schemas.ProjectCreate(title=title, **fields),
        today=date(2024, 6, 1),
    )
    db.commit()
    return project


def _employee(db, code="EMP-001"):
    employee = employee_models.Employee(employee_code=code, first_name="Sam", last_name="Diver")
    db.add(employee)
    db.commit()
    return employee


def test_create_rejects_end_before_start(db_session):
    with pytest.raises(HTTPException) as exc:
        _project(db_session, start_date=date(2024, 6, 10), planned_end_date=date(2024, 6, 1))
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        _project(db_session, customer_id=999)
    assert exc.value.status_code == 404


def test_completing_project_stamps_actual_end_date(db_session):
    project = _project(db_session)

    project_services.update_project(
        db_session,
        project_id=project.id,
        payload=project_schemas.ProjectUpdate(status=S.COMPLETED),
        today=date(2024, 7, 4),
    )
    db_session.commit()

    assert project.status == S.COMPLETED
    assert project.actual_end_date == date(2024, 7, 4)


def test_customer_login_only_sees_own_projects(db_session):
    customer = party_services.create_customer(
        db_session,
        payload=party_schemas.CustomerCreate(name="Gulf Tankers LLC", user_id="cust-user-1"),
    )
    other = party_services.create_customer(
        db_session,
        payload=party_schemas.CustomerCreate(name="Blue Water Shipping"),
    )
    db_session.commit()
    own = _project(db_session, "Own survey", customer_id=customer.id)
    foreign = _project(db_session, "Other survey", customer_id=other.id)

    login = account_models.User(id="cust-user-1", role=account_models.AccountRole.CUSTOMER)
    visible = project_services.list_projects(db_session, current_user=login)
    assert [p.id for p in visible] == [own.id]

    with pytest.raises(HTTPException) as exc:
        project_services.get_project(db_session, foreign.id, current_user=login)
    assert exc.value.status_code == 404

    staff = account_models.User(id="pm-1", role=account_models.AccountRole.PROJECT_MANAGER)
    assert len(project_services.list_projects(db_session, current_user=staff)) == 2


def test_assign_employees_replaces_existing_assignment(db_session):
    project = _project(db_session)
    employee = _employee(db_session)

    for start in (date(2024, 6, 1), date(2024, 6, 5)):
        project_services.assign_employees(
            db_session,
            project_id=project.id,
            payload=project_schemas.AssignEmployeesRequest(
                assignments=[project_schemas.EmployeeAssignment(employee_id=employee.id, start_date=start)]
            ),
        )
        db_session.commit()

    rows = project_services.list_project_employees(db_session, project_id=project.id)
    assert len(rows) == 1
    assert rows[0].start_date == date(2024, 6, 5)
    assert project_services.assignment_to_read(rows[0]).employee_name == "Sam Diver"

    project_services.remove_employee(db_session, project_id=project.id, employee_id=employee.id)
    db_session.commit()
    with pytest.raises(HTTPException) as exc:
        project_services.remove_employee(db_session, project_id=project.id, employee_id=employee.id)
    assert exc.value.status_code == 404


def test_consumables_deplete_stock_and_raise_cost(db_session):
    project = _project(db_session)
    item = inventory_models.InventoryItem(
        name="Welding rods",
        category=inventory_models.InventoryCategoryEnum.CONSUMABLES,
        unit="box",
        current_stock=10,
        avg_cost=Decimal("12.5"),
    )
    db_session.add(item)
    db_session.commit()

    consumable = project_services.record_consumables(
        db_session,
        project_id=project.id,
        payload=project_schemas.ConsumableCreate(
            date=date(2024, 6, 3),
            items=[project_schemas.ConsumableLine(inventory_item_id=item.id, quantity=4)],
        ),
        actor_user_id="pm-1",
    )
    db_session.commit()

    assert len(consumable.items) == 1
    assert consumable.items[0].unit_cost == Decimal("12.5000")
    db_session.refresh(item)
    assert item.current_stock == 6
    assert project.actual_cost == Decimal("50.00")

    with pytest.raises(HTTPException) as exc:
        project_services.record_consumables(
            db_session,
            project_id=project.id,
            payload=project_schemas.ConsumableCreate(
                date=date(2024, 6, 4),
                items=[project_schemas.ConsumableLine(inventory_item_id=item.id, quantity=7)],
            ),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 400


def test_project_revenue_and_margin(db_session):
    project = _project(db_session, status=S.IN_PROGRESS)
    db_session.add_all(
        [
            sales_models.SalesInvoice(
                project_id=project.id,
                invoice_date=date(2024, 6, 1),
                due_date=date(2024, 7, 1),
                status=sales_models.SalesInvoiceStatus.UNPAID,
                total=Decimal("1000"),
            ),
            sales_models.SalesInvoice(
                project_id=project.id,
                invoice_date=date(2024, 6, 2),
                due_date=date(2024, 7, 2),
                status=sales_models.SalesInvoiceStatus.DRAFT,
                total=Decimal("5000"),
            ),
        ]
    )
    db_session.commit()

    revenue = project_services.project_revenue(db_session, project_id=project.id)

    assert revenue.total_revenue == Decimal("1000.00")
    assert revenue.actual_cost == Decimal("0.00")
    assert revenue.profit == Decimal("1000.00")
    assert revenue.margin_percent == Decimal("100.00")

    other = _project(db_session, "Idle barge", status=S.NOT_STARTED)
    ids = project_services.parse_project_ids(f" {project.id}, x,{other.id},,{project.id}, 9999")
    assert ids == [project.id, other.id, 9999]
    rows = project_services.project_revenues(db_session, project_ids=ids)
    assert [row.project_id for row in rows] == [project.id, other.id]
    assert rows[1].total_revenue == Decimal("0.00")


@pytest.mark.parametrize("raw", [None, "", "abc, ,-3"])
def test_project_ids_must_be_given(raw):
    with pytest.raises(HTTPException) as exc:
        project_services.parse_project_ids(raw)
    assert exc.value.status_code == 400


def test_planned_activities_append_and_paginate(db_session):
    project = _project(db_session, status=S.IN_PROGRESS)

    with pytest.raises(HTTPException) as exc:
        project_services.save_planned_activities(db_session, project_id=project.id, activities=[], actor_user_id=None)
    assert exc.value.status_code == 400

    for day in (3, 1, 2):
        project_services.save_planned_activities(
            db_session,
            project_id=project.id,
            activities=[
                project_schemas.PlannedActivityCreate(
                    date=date(2024, 7, day),
                    location="Drydock 2",
                    tasks=f"Blast and coat section {day}",
                )
            ],
            actor_user_id=None,
        )
    db_session.commit()

    first = project_services.list_planned_activities(db_session, project_id=project.id, page=1, limit=2)
    assert first["total"] == 3
    assert first["total_pages"] == 2
    assert [row.date.day for row in first["items"]] == [1, 2]

    with pytest.raises(HTTPException) as exc:
        project_services.list_planned_activities(db_session, project_id=project.id + 100)
    assert exc.value.status_code == 404

    project_services.delete_project(db_session, project_id=project.id)
    db_session.commit()
    assert db_session.query(project_models.PlannedActivity).count() == 0


def test_delete_project_with_invoice_conflicts(db_session):
    project = _project(db_session)
    db_session.add(
        sales_models.SalesInvoice(
            project_id=project.id,
            invoice_date=date(2024, 6, 1),
            due_date=date(2024, 7, 1),
        )
    )
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        project_services.delete_project(db_session, project_id=project.id)
    assert exc.value.status_code == 409

    empty = _project(db_session, "Empty")
    project_services.delete_project(db_session, project_id=empty.id)
    db_session.commit()
    assert db_session.get(project_models.Project, empty.id) is None


def test_project_routes_registered():
    paths = {route.path for route in project_router.router.routes}
    assert "/projects/{project_id}/revenue" in paths
    assert "/projects/{project_id}/consumables" in paths
    assert "/daily-activities" in paths
    assert "/projects/{project_id}/planned-activities" in paths
    revenues_at = [route.path for route in project_router.router.routes].index("/projects/revenues")
    detail_at = [route.path for route in project_router.router.routes].index("/projects/{project_id}")
    assert revenues_at < detail_at
