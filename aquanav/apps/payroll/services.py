# aquanav/apps/payroll/services.py

from __future__ import annotations

import calendar
import logging
import os
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from aquanav.apps.audit import schemas as audit_schemas
from aquanav.apps.audit import services as audit_services
from aquanav.apps.employees import models as employee_models
from aquanav.apps.ledger import models as ledger_models
from aquanav.apps.ledger import services as ledger_services
from aquanav.apps.projects import models as project_models
from aquanav.apps.projects import services as project_services
from . import models, schemas

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")
TDS_RATE = Decimal(os.getenv("PAYROLL_TDS_RATE", "0.05"))
TDS_DESCRIPTION = "Tax Deducted at Source"
CONSULTANT_WORKING_DAYS = Decimal("22")

BILLABLE_PROJECT_STATUSES = (
    project_models.ProjectStatus.IN_PROGRESS,
    project_models.ProjectStatus.COMPLETED,
)

# draft -> approved -> paid, with approved able to fall back to draft
ALLOWED_STATUS_MOVES = {
    (models.PayrollStatus.DRAFT, models.PayrollStatus.APPROVED),
    (models.PayrollStatus.APPROVED, models.PayrollStatus.PAID),
    (models.PayrollStatus.APPROVED, models.PayrollStatus.DRAFT),
}


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(MONEY, rounding=ROUND_HALF_UP)


def _tds_note() -> str:
    return f"{(TDS_RATE * 100).normalize():f}% of total earnings"


def _audit_event(
    db: Session,
    *,
    entity_id: str,
    action: str,
    actor_user_id: Optional[str],
    after: dict,
) -> None:
    audit_services.create_audit_event(
        db,
        data=audit_schemas.AuditEventCreate(
            entity_type="PayrollEntry",
            entity_id=entity_id,
            action=action,
            actor_user_id=actor_user_id,
            after=after,
        ),
    )


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def month_name(month: int) -> str:
    if not 1 <= month <= 12:
        return "Unknown"
    return calendar.month_name[month]


def calendar_days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]


def working_days_between(start: date, end: date) -> int:
    """Weekdays (Mon-Fri) from start to end, both inclusive."""
    if end < start:
        return 0
    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def _month_bounds(month: int, year: int) -> Tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar_days_in_month(month, year))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_payroll_entry(db: Session, entry_id: int) -> models.PayrollEntry:
    entry = db.get(models.PayrollEntry, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Payroll entry not found")
    return entry


def list_payroll(
    db: Session,
    *,
    month: Optional[int] = None,
    year: Optional[int] = None,
    employee_id: Optional[int] = None,
) -> List[models.PayrollEntry]:
    query = db.query(models.PayrollEntry)
    if month is not None:
        query = query.filter(models.PayrollEntry.month == month)
    if year is not None:
        query = query.filter(models.PayrollEntry.year == year)
    if employee_id is not None:
        query = query.filter(models.PayrollEntry.employee_id == employee_id)
    return query.order_by(
        models.PayrollEntry.year.desc(),
        models.PayrollEntry.month.desc(),
        models.PayrollEntry.id.asc(),
    ).all()


def entry_to_read(entry: models.PayrollEntry) -> schemas.PayrollEntryRead:
    read = schemas.PayrollEntryRead.model_validate(entry)
    if entry.employee is not None:
        read.employee_name = entry.employee.full_name
    return read


# ---------------------------------------------------------------------------
# Earnings
# ---------------------------------------------------------------------------


def _consultant_days(
    db: Session,
    employee: employee_models.Employee,
    month_start: date,
    month_end: date,
) -> Tuple[int, Optional[int]]:
    """
    Weekdays a consultant spent on live projects within the month, and the
    project that accounts for most of them.
    """
    assignments = (
        db.query(project_models.ProjectEmployee)
        .join(project_models.Project, project_models.Project.id == project_models.ProjectEmployee.project_id)
        .filter(
            project_models.ProjectEmployee.employee_id == employee.id,
            project_models.Project.status.in_(BILLABLE_PROJECT_STATUSES),
        )
        .all()
    )

    days_by_project: Dict[int, int] = {}
    for assignment in assignments:
        project = assignment.project
        period_start = assignment.start_date or project.start_date or month_start
        period_end = (
            assignment.end_date
            or project.actual_end_date
            or project.planned_end_date
            or month_end
        )
        overlap_start = max(period_start, month_start)
        overlap_end = min(period_end, month_end)
        days = working_days_between(overlap_start, overlap_end)
        if days:
            days_by_project[project.id] = days_by_project.get(project.id, 0) + days

    if not days_by_project:
        return 0, None
    main_project = max(days_by_project, key=days_by_project.get)
    return sum(days_by_project.values()), main_project


def _earnings_for(
    db: Session,
    employee: employee_models.Employee,
    month: int,
    year: int,
) -> Tuple[Decimal, int, Optional[int]]:
    month_start, month_end = _month_bounds(month, year)
    salary = Decimal(str(employee.salary or 0))

    if employee.category == employee_models.EmployeeCategory.CONSULTANT:
        days, project_id = _consultant_days(db, employee, month_start, month_end)
        daily_rate = salary / CONSULTANT_WORKING_DAYS
        return _money(daily_rate * days), days, project_id

    return _money(salary), working_days_between(month_start, month_end), None


# ---------------------------------------------------------------------------
# Totals and GL
# ---------------------------------------------------------------------------


def _salary_description(entry: models.PayrollEntry) -> str:
    employee = entry.employee
    return (
        f"Salary for {employee.first_name} {employee.last_name} - "
        f"{month_name(entry.month)} {entry.year}"
    )


def _recompute_totals(entry: models.PayrollEntry) -> None:
    entry.total_additions = _money(sum((_money(a.amount) for a in entry.additions), Decimal("0")))
    entry.total_deductions = _money(sum((_money(d.amount) for d in entry.deductions), Decimal("0")))
    entry.total_amount = _money(entry.basic_salary) + entry.total_additions - entry.total_deductions


def _post_salary_lines(db: Session, entry: models.PayrollEntry, *, actor_user_id: Optional[str]) -> None:
    amount = _money(entry.total_amount)
    ledger_services.post_entries(
        db,
        lines=[
            ledger_services.line(ledger_services.SALARY_EXPENSE, debit=amount),
            ledger_services.line(ledger_services.SALARY_PAYABLE, credit=amount),
        ],
        entry_type=ledger_models.GLEntryType.PAYABLE,
        reference_type=ledger_models.GLReferenceType.PAYROLL,
        reference_id=entry.id,
        description=_salary_description(entry),
        transaction_date=date(entry.year, entry.month, 1),
        entity_id=entry.employee_id,
        entity_name=entry.employee.full_name,
        project_id=entry.project_id,
        actor_user_id=actor_user_id,
        status_value=ledger_models.GLStatus.PENDING,
    )


def _rewrite_salary_lines(db: Session, entry: models.PayrollEntry, *, actor_user_id: Optional[str]) -> None:
    ledger_services.delete_entries_for_reference(
        db,
        reference_type=ledger_models.GLReferenceType.PAYROLL,
        reference_id=entry.id,
    )
    _post_salary_lines(db, entry, actor_user_id=actor_user_id)


def _refresh(db: Session, entry: models.PayrollEntry, *, actor_user_id: Optional[str]) -> models.PayrollEntry:
    db.flush()
    db.expire(entry, ["additions", "deductions"])
    _recompute_totals(entry)
    db.add(entry)
    db.flush()
    _rewrite_salary_lines(db, entry, actor_user_id=actor_user_id)
    project_services.recalculate_for_project_id(db, entry.project_id)
    return entry


def _ensure_editable(entry: models.PayrollEntry) -> None:
    if entry.status == models.PayrollStatus.PAID:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Paid payroll entries cannot be changed.",
        )


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def generate_monthly_payroll(
    db: Session,
    *,
    month: int,
    year: int,
    actor_user_id: Optional[str],
) -> List[models.PayrollEntry]:
    """
    Create draft payroll entries for every active employee for the period.

    Employees who already have an entry for the period are skipped, so
    running this twice is harmless. Consultants without project days in
    the month get no entry.
    """
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")

    existing_ids = {
        row.employee_id
        for row in db.query(models.PayrollEntry.employee_id)
        .filter(models.PayrollEntry.month == month, models.PayrollEntry.year == year)
        .all()
    }
    employees = (
        db.query(employee_models.Employee)
        .filter(
            employee_models.Employee.is_active.is_(True),
            employee_models.Employee.category.isnot(None),
        )
        .order_by(employee_models.Employee.id.asc())
        .all()
    )

    created: List[models.PayrollEntry] = []
    touched_projects = set()
    for employee in employees:
        if employee.id in existing_ids:
            continue

        basic, working_days, project_id = _earnings_for(db, employee, month, year)
        if employee.category == employee_models.EmployeeCategory.CONSULTANT and working_days == 0:
            continue

        entry = models.PayrollEntry(
            employee_id=employee.id,
            project_id=project_id,
            month=month,
            year=year,
            working_days=working_days,
            basic_salary=basic,
            status=models.PayrollStatus.DRAFT,
            created_by=actor_user_id,
        )
        entry.employee = employee
        tds = _money(basic * TDS_RATE)
        if tds > 0:
            entry.deductions.append(
                models.PayrollDeduction(description=TDS_DESCRIPTION, amount=tds, note=_tds_note())
            )
        _recompute_totals(entry)
        db.add(entry)
        db.flush()

        _post_salary_lines(db, entry, actor_user_id=actor_user_id)
        created.append(entry)
        if project_id is not None:
            touched_projects.add(project_id)

    for project_id in touched_projects:
        project_services.recalculate_for_project_id(db, project_id)

    _audit_event(
        db,
        entity_id=f"{year}-{month:02d}",
        action="generate",
        actor_user_id=actor_user_id,
        after={"created": len(created), "skipped": len(existing_ids)},
    )
    logger.info(
        "Payroll generated",
        extra={"month": month, "year": year, "created": len(created)},
    )
    return created


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


def update_payroll_entry(
    db: Session,
    *,
    entry_id: int,
    payload: schemas.PayrollEntryUpdate,
    actor_user_id: Optional[str],
) -> models.PayrollEntry:
    entry = get_payroll_entry(db, entry_id)
    _ensure_editable(entry)
    data = payload.model_dump(exclude_unset=True)

    amounts_changed = False
    if data.get("working_days") is not None:
        entry.working_days = data["working_days"]
        amounts_changed = True
    if data.get("basic_salary") is not None:
        entry.basic_salary = _money(data["basic_salary"])
        for deduction in entry.deductions:
            if deduction.description == TDS_DESCRIPTION:
                deduction.amount = _money(entry.basic_salary * TDS_RATE)
        amounts_changed = True
    if amounts_changed:
        _refresh(db, entry, actor_user_id=actor_user_id)

    new_status = data.get("status")
    if new_status is not None and new_status != entry.status:
        if (entry.status, new_status) not in ALLOWED_STATUS_MOVES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot move payroll entry from {entry.status.value} to {new_status.value}.",
            )
        previous = entry.status
        entry.status = new_status
        db.add(entry)
        db.flush()

        if new_status == models.PayrollStatus.PAID:
            amount = _money(entry.total_amount)
            ledger_services.post_entries(
                db,
                lines=[
                    ledger_services.line(ledger_services.SALARY_PAYABLE, debit=amount),
                    ledger_services.line(ledger_services.CASH_BANK, credit=amount),
                ],
                entry_type=ledger_models.GLEntryType.PAYABLE,
                reference_type=ledger_models.GLReferenceType.PAYROLL_PAYMENT,
                reference_id=entry.id,
                description=_salary_description(entry).replace("Salary for", "Salary payment for", 1),
                transaction_date=date.today(),
                entity_id=entry.employee_id,
                entity_name=entry.employee.full_name,
                project_id=entry.project_id,
                actor_user_id=actor_user_id,
            )

        _audit_event(
            db,
            entity_id=str(entry.id),
            action="status_change",
            actor_user_id=actor_user_id,
            after={"from": previous.value, "to": new_status.value},
        )

    return entry


def add_addition(
    db: Session,
    *,
    entry_id: int,
    payload: schemas.PayrollLineCreate,
    actor_user_id: Optional[str],
) -> models.PayrollAddition:
    entry = get_payroll_entry(db, entry_id)
    _ensure_editable(entry)
    addition = models.PayrollAddition(payroll_entry_id=entry.id, **payload.model_dump())
    db.add(addition)
    _refresh(db, entry, actor_user_id=actor_user_id)
    return addition


def add_deduction(
    db: Session,
    *,
    entry_id: int,
    payload: schemas.PayrollLineCreate,
    actor_user_id: Optional[str],
) -> models.PayrollDeduction:
    entry = get_payroll_entry(db, entry_id)
    _ensure_editable(entry)
    deduction = models.PayrollDeduction(payroll_entry_id=entry.id, **payload.model_dump())
    db.add(deduction)
    _refresh(db, entry, actor_user_id=actor_user_id)
    return deduction


def _get_line(db: Session, model, line_id: int, label: str):
    row = db.get(model, line_id)
    if not row:
        raise HTTPException(status_code=404, detail=f"Payroll {label} not found")
    return row


def update_addition(
    db: Session,
    *,
    addition_id: int,
    payload: schemas.PayrollLineUpdate,
    actor_user_id: Optional[str],
) -> models.PayrollAddition:
    addition = _get_line(db, models.PayrollAddition, addition_id, "addition")
    entry = get_payroll_entry(db, addition.payroll_entry_id)
    _ensure_editable(entry)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(addition, field, value)
    db.add(addition)
    _refresh(db, entry, actor_user_id=actor_user_id)
    return addition


def update_deduction(
    db: Session,
    *,
    deduction_id: int,
    payload: schemas.PayrollLineUpdate,
    actor_user_id: Optional[str],
) -> models.PayrollDeduction:
    deduction = _get_line(db, models.PayrollDeduction, deduction_id, "deduction")
    entry = get_payroll_entry(db, deduction.payroll_entry_id)
    _ensure_editable(entry)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(deduction, field, value)
    db.add(deduction)
    _refresh(db, entry, actor_user_id=actor_user_id)
    return deduction


def delete_addition(db: Session, *, addition_id: int, actor_user_id: Optional[str]) -> models.PayrollEntry:
    addition = _get_line(db, models.PayrollAddition, addition_id, "addition")
    entry = get_payroll_entry(db, addition.payroll_entry_id)
    _ensure_editable(entry)
    entry.additions.remove(addition)
    return _refresh(db, entry, actor_user_id=actor_user_id)


def delete_deduction(db: Session, *, deduction_id: int, actor_user_id: Optional[str]) -> models.PayrollEntry:
    deduction = _get_line(db, models.PayrollDeduction, deduction_id, "deduction")
    entry = get_payroll_entry(db, deduction.payroll_entry_id)
    _ensure_editable(entry)
    entry.deductions.remove(deduction)
    return _refresh(db, entry, actor_user_id=actor_user_id)


# ---------------------------------------------------------------------------
# Period maintenance
# ---------------------------------------------------------------------------


def _delete_entries(db: Session, entries: List[models.PayrollEntry]) -> int:
    """Delete entries with their salary and payment GL rows; returns the GL row count."""
    deleted_gl = 0
    touched_projects = set()
    for entry in entries:
        for reference_type in (
            ledger_models.GLReferenceType.PAYROLL,
            ledger_models.GLReferenceType.PAYROLL_PAYMENT,
        ):
            deleted_gl += ledger_services.delete_entries_for_reference(
                db,
                reference_type=reference_type,
                reference_id=entry.id,
            )
        if entry.project_id is not None:
            touched_projects.add(entry.project_id)
        db.delete(entry)
    db.flush()

    for project_id in touched_projects:
        project_services.recalculate_for_project_id(db, project_id)
    return deleted_gl


def clear_payroll_period(
    db: Session,
    *,
    month: int,
    year: int,
    actor_user_id: Optional[str] = None,
) -> schemas.ClearPeriodResult:
    """Remove every unpaid entry of the period together with its GL rows."""
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")

    entries = (
        db.query(models.PayrollEntry)
        .filter(
            models.PayrollEntry.month == month,
            models.PayrollEntry.year == year,
            models.PayrollEntry.status != models.PayrollStatus.PAID,
        )
        .all()
    )

    deleted_gl = _delete_entries(db, entries)
    _audit_event(
        db,
        entity_id=f"{year}-{month:02d}",
        action="clear",
        actor_user_id=actor_user_id,
        after={"deleted_entries": len(entries), "deleted_gl_entries": deleted_gl},
    )
    return schemas.ClearPeriodResult(
        deleted_payroll_entries=len(entries),
        deleted_general_ledger_entries=deleted_gl,
    )


def clear_all_payroll(db: Session, *, actor_user_id: Optional[str] = None) -> schemas.ClearPeriodResult:
    """Remove every payroll entry, paid or not, together with its GL rows."""
    entries = db.query(models.PayrollEntry).all()
    deleted_gl = _delete_entries(db, entries)
    _audit_event(
        db,
        entity_id="all",
        action="clear_all",
        actor_user_id=actor_user_id,
        after={"deleted_entries": len(entries), "deleted_gl_entries": deleted_gl},
    )
    logger.warning("All payroll entries cleared", extra={"deleted_entries": len(entries)})
    return schemas.ClearPeriodResult(
        deleted_payroll_entries=len(entries),
        deleted_general_ledger_entries=deleted_gl,
    )
