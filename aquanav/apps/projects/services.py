# aquanav/apps/projects/services.py

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from aquanav.apps.accounts import models as account_models
from aquanav.apps.employees import models as employee_models
from aquanav.apps.inventory import schemas as inventory_schemas
from aquanav.apps.inventory import services as inventory_services
from aquanav.apps.parties import models as party_models
from aquanav.apps.payroll import models as payroll_models
from aquanav.apps.purchasing import models as purchasing_models
from aquanav.apps.sales import models as sales_models
from aquanav.utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginate
from . import models, schemas

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")

# Any change to these fields can move the project's cost or revenue
_FINANCIAL_FIELDS = {"status", "start_date", "planned_end_date", "actual_end_date"}


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(MONEY)


def _validate_dates(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Planned end date cannot be before start date",
        )


def _ensure_customer(db: Session, customer_id: Optional[int]) -> None:
    if customer_id is not None and not db.get(party_models.Customer, customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


def _scope_to_user(query, db: Session, current_user: Optional[account_models.User]):
    if current_user is None or current_user.role != account_models.AccountRole.CUSTOMER:
        return query
    customer_ids = [
        row[0]
        for row in db.query(party_models.Customer.id)
        .filter(party_models.Customer.user_id == current_user.id)
        .all()
    ]
    if not customer_ids:
        return query.filter(models.Project.id.is_(None))
    return query.filter(models.Project.customer_id.in_(customer_ids))


def list_projects(
    db: Session,
    *,
    current_user: Optional[account_models.User] = None,
    status: Optional[models.ProjectStatus] = None,
    search: Optional[str] = None,
) -> List[models.Project]:
    """
    Projects visible to `current_user`. CUSTOMER logins only see projects
    of the customer record linked to them.
    """
    query = _scope_to_user(db.query(models.Project), db, current_user)
    if status is not None:
        query = query.filter(models.Project.status == status)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(models.Project.title).like(pattern),
                func.lower(models.Project.vessel_name).like(pattern),
            )
        )
    return query.order_by(models.Project.created_at.desc(), models.Project.id.desc()).all()


def get_project(
    db: Session,
    project_id: int,
    *,
    current_user: Optional[account_models.User] = None,
) -> models.Project:
    query = _scope_to_user(db.query(models.Project), db, current_user)
    project = query.filter(models.Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def create_project(
    db: Session,
    *,
    payload: schemas.ProjectCreate,
    today: Optional[date] = None,
) -> models.Project:
    _validate_dates(payload.start_date, payload.planned_end_date)
    _ensure_customer(db, payload.customer_id)
    project = models.Project(**payload.model_dump())
    if project.status == models.ProjectStatus.COMPLETED and project.actual_end_date is None:
        project.actual_end_date = today or date.today()
    db.add(project)
    db.flush()
    logger.info("Project created", extra={"project_id": project.id, "customer_id": project.customer_id})
    return project


def update_project(
    db: Session,
    *,
    project_id: int,
    payload: schemas.ProjectUpdate,
    today: Optional[date] = None,
) -> models.Project:
    project = get_project(db, project_id)
    data = payload.model_dump(exclude_unset=True)

    _validate_dates(
        data.get("start_date", project.start_date),
        data.get("planned_end_date", project.planned_end_date),
    )
    if "customer_id" in data:
        _ensure_customer(db, data["customer_id"])

    for field, value in data.items():
        setattr(project, field, value)

    if project.status == models.ProjectStatus.COMPLETED and project.actual_end_date is None:
        project.actual_end_date = today or date.today()

    db.add(project)
    db.flush()
    if _FINANCIAL_FIELDS & data.keys():
        recalculate_project_financials(db, project)
    return project


def delete_project(db: Session, *, project_id: int) -> None:
    project = get_project(db, project_id)
    blockers = (
        db.query(sales_models.SalesInvoice.id).filter(sales_models.SalesInvoice.project_id == project.id).first()
        or db.query(sales_models.ProformaInvoice.id).filter(sales_models.ProformaInvoice.project_id == project.id).first()
        or db.query(purchasing_models.PurchaseInvoice.id)
        .filter(purchasing_models.PurchaseInvoice.project_id == project.id)
        .first()
        or db.query(payroll_models.PayrollEntry.id).filter(payroll_models.PayrollEntry.project_id == project.id).first()
        or db.query(models.ProjectConsumable.id).filter(models.ProjectConsumable.project_id == project.id).first()
    )
    if blockers:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Project has invoices, payroll entries or consumables and cannot be deleted",
        )
    db.query(models.DailyActivity).filter(models.DailyActivity.project_id == project.id).delete(
        synchronize_session=False
    )
    db.query(models.PlannedActivity).filter(models.PlannedActivity.project_id == project.id).delete(
        synchronize_session=False
    )
    db.delete(project)
    db.flush()


# ---------------------------------------------------------------------------
# Employee assignments
# ---------------------------------------------------------------------------


def list_project_employees(db: Session, *, project_id: int) -> List[models.ProjectEmployee]:
    get_project(db, project_id)
    return (
        db.query(models.ProjectEmployee)
        .filter(models.ProjectEmployee.project_id == project_id)
        .order_by(models.ProjectEmployee.assigned_at.asc(), models.ProjectEmployee.id.asc())
        .all()
    )


def assign_employees(
    db: Session,
    *,
    project_id: int,
    payload: schemas.AssignEmployeesRequest,
) -> List[models.ProjectEmployee]:
    """Assign crew; an existing assignment of the same employee is replaced."""
    project = get_project(db, project_id)
    for assignment in payload.assignments:
        if assignment.start_date and assignment.end_date and assignment.end_date < assignment.start_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Assignment end date cannot be before start date",
            )
        if not db.get(employee_models.Employee, assignment.employee_id):
            raise HTTPException(status_code=404, detail=f"Employee {assignment.employee_id} not found")

    created = []
    for assignment in payload.assignments:
        (
            db.query(models.ProjectEmployee)
            .filter(
                models.ProjectEmployee.project_id == project.id,
                models.ProjectEmployee.employee_id == assignment.employee_id,
            )
            .delete(synchronize_session="fetch")
        )
        row = models.ProjectEmployee(
            project_id=project.id,
            employee_id=assignment.employee_id,
            start_date=assignment.start_date,
            end_date=assignment.end_date,
        )
        db.add(row)
        created.append(row)
    db.flush()
    db.expire(project, ["assignments"])
    return created


def remove_employee(db: Session, *, project_id: int, employee_id: int) -> None:
    get_project(db, project_id)
    deleted = (
        db.query(models.ProjectEmployee)
        .filter(
            models.ProjectEmployee.project_id == project_id,
            models.ProjectEmployee.employee_id == employee_id,
        )
        .delete(synchronize_session="fetch")
    )
    if not deleted:
        raise HTTPException(status_code=404, detail="Employee is not assigned to this project")
    db.flush()


def assignment_to_read(row: models.ProjectEmployee) -> schemas.ProjectEmployeeRead:
    read = schemas.ProjectEmployeeRead.model_validate(row)
    read.employee_name = row.employee.full_name if row.employee else None
    return read


# ---------------------------------------------------------------------------
# Daily activities
# ---------------------------------------------------------------------------


def add_daily_activity(
    db: Session,
    *,
    project_id: int,
    payload: schemas.DailyActivityCreate,
    actor_user_id: Optional[str],
) -> models.DailyActivity:
    get_project(db, project_id)
    activity = models.DailyActivity(project_id=project_id, created_by=actor_user_id, **payload.model_dump())
    db.add(activity)
    db.flush()
    return activity


def list_daily_activities(db: Session, *, project_id: Optional[int] = None) -> List[models.DailyActivity]:
    query = db.query(models.DailyActivity)
    if project_id is not None:
        get_project(db, project_id)
        query = query.filter(models.DailyActivity.project_id == project_id)
    return query.order_by(models.DailyActivity.date.desc(), models.DailyActivity.id.desc()).all()


def save_planned_activities(
    db: Session,
    *,
    project_id: int,
    activities: List[schemas.PlannedActivityCreate],
    actor_user_id: Optional[str],
) -> List[models.PlannedActivity]:
    get_project(db, project_id)
    if not activities:
        raise HTTPException(status_code=400, detail="At least one planned activity is required")
    rows = [
        models.PlannedActivity(project_id=project_id, created_by=actor_user_id, **activity.model_dump())
        for activity in activities
    ]
    db.add_all(rows)
    db.flush()
    logger.info("Planned activities saved", extra={"project_id": project_id, "count": len(rows)})
    return rows


def list_planned_activities(
    db: Session,
    *,
    project_id: int,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    get_project(db, project_id)
    query = (
        db.query(models.PlannedActivity)
        .filter(models.PlannedActivity.project_id == project_id)
        .order_by(models.PlannedActivity.date.asc(), models.PlannedActivity.id.asc())
    )
    return paginate(query, page=page, limit=limit)


# ---------------------------------------------------------------------------
# Consumables
# ---------------------------------------------------------------------------


def record_consumables(
    db: Session,
    *,
    project_id: int,
    payload: schemas.ConsumableCreate,
    actor_user_id: Optional[str],
) -> models.ProjectConsumable:
    """
    Record a day's consumption and deplete stock through a goods issue.

    Nothing is committed here; a short-stock error leaves the caller's
    transaction to be rolled back with the consumable row in it.
    """
    project = get_project(db, project_id)
    consumable = models.ProjectConsumable(
        project_id=project.id,
        date=payload.date,
        notes=payload.notes,
        created_by=actor_user_id,
    )
    db.add(consumable)
    db.flush()

    issue = inventory_services.issue_goods(
        db,
        payload=inventory_schemas.GoodsIssueCreate(
            reference=f"CONS-{project.id}-{consumable.id}",
            project_id=project.id,
            items=[
                inventory_schemas.GoodsIssueLine(inventory_item_id=line.inventory_item_id, quantity=line.quantity)
                for line in payload.items
            ],
        ),
        actor_user_id=actor_user_id,
    )
    for issued in issue.items:
        consumable.items.append(
            models.ProjectConsumableItem(
                inventory_item_id=issued.inventory_item_id,
                quantity=issued.quantity,
                unit_cost=issued.unit_cost,
                inventory_transaction_id=issued.inventory_transaction_id,
            )
        )
    db.flush()
    recalculate_project_financials(db, project)
    return consumable


def list_consumables(db: Session, *, project_id: int) -> List[models.ProjectConsumable]:
    get_project(db, project_id)
    return (
        db.query(models.ProjectConsumable)
        .filter(models.ProjectConsumable.project_id == project_id)
        .order_by(models.ProjectConsumable.date.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Financials
# ---------------------------------------------------------------------------


def _payroll_cost(db: Session, project_id: int) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(payroll_models.PayrollEntry.total_amount), 0))
        .filter(payroll_models.PayrollEntry.project_id == project_id)
        .scalar()
    )
    return _money(total)


def _purchase_cost(db: Session, project_id: int) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(purchasing_models.PurchaseInvoice.total), 0))
        .filter(
            purchasing_models.PurchaseInvoice.project_id == project_id,
            purchasing_models.PurchaseInvoice.approval_status == purchasing_models.ApprovalStatus.APPROVED,
        )
        .scalar()
    )
    return _money(total)


def _sales_revenue(db: Session, project_id: int) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(sales_models.SalesInvoice.total), 0))
        .filter(
            sales_models.SalesInvoice.project_id == project_id,
            sales_models.SalesInvoice.status != sales_models.SalesInvoiceStatus.DRAFT,
        )
        .scalar()
    )
    return _money(total)


def recalculate_project_financials(db: Session, project: models.Project) -> models.Project:
    """
    actual_cost = issued stock + payroll + approved purchase invoices;
    total_revenue = every sales invoice past draft.
    """
    project.actual_cost = (
        inventory_services.project_outflow_cost(db, project.id)
        + _payroll_cost(db, project.id)
        + _purchase_cost(db, project.id)
    )
    project.total_revenue = _sales_revenue(db, project.id)
    db.add(project)
    db.flush()
    return project


def recalculate_for_project_id(db: Session, project_id: Optional[int]) -> None:
    if project_id is None:
        return
    project = db.get(models.Project, project_id)
    if project is not None:
        recalculate_project_financials(db, project)


def project_revenue(db: Session, *, project_id: int) -> schemas.ProjectRevenueRead:
    project = get_project(db, project_id)
    recalculate_project_financials(db, project)
    revenue = _money(project.total_revenue)
    cost = _money(project.actual_cost)
    profit = revenue - cost
    margin = (profit / revenue * 100).quantize(MONEY) if revenue else Decimal("0.00")
    return schemas.ProjectRevenueRead(
        project_id=project.id,
        total_revenue=revenue,
        actual_cost=cost,
        profit=profit,
        margin_percent=margin,
    )


def parse_project_ids(raw: Optional[str]) -> List[int]:
    """Parse a comma-separated id list; blank or non-numeric parts are skipped."""
    if not raw:
        raise HTTPException(status_code=400, detail="Project IDs are required")
    ids = [int(part) for part in (piece.strip() for piece in raw.split(",")) if part.isdigit()]
    if not ids:
        raise HTTPException(status_code=400, detail="Valid project IDs are required")
    return list(dict.fromkeys(ids))


def project_revenues(db: Session, *, project_ids: List[int]) -> List[schemas.ProjectRevenueRead]:
    """Revenue figures for each existing project in `project_ids`; unknown ids are left out."""
    found = {
        project_id
        for (project_id,) in db.query(models.Project.id).filter(models.Project.id.in_(project_ids)).all()
    }
    return [project_revenue(db, project_id=project_id) for project_id in project_ids if project_id in found]
