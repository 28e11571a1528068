from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.employees import models as employee_models
from aquanav.apps.ledger import models as ledger_models
from aquanav.apps.payroll import models as payroll_models
from aquanav.apps.payroll import schemas as payroll_schemas
from aquanav.apps.payroll import services as payroll_services
from aquanav.apps.projects import models as project_models


def _employee(db, code, *, salary="3000.00", category=employee_models.EmployeeCategory.PERMANENT, **extra):
    employee = employee_models.Employee(
        employee_code=code,
        first_name=extra.pop("first_name", "Sam"),
        last_name=extra.pop("last_name", code),
        salary=Decimal(salary),
        category=category,
        is_active=True,
        **extra,
    )
    db.add(employee)
    db.commit()
    return employee


def _assign(db, employee, *, start, end, status=project_models.ProjectStatus.IN_PROGRESS):
    project = project_models.Project(
        title=f"Hull survey {start.isoformat()}",
        start_date=start,
        planned_end_date=end,
        status=status,
    )
    db.add(project)
    db.flush()
    db.add(project_models.ProjectEmployee(project_id=project.id, employee_id=employee.id))
    db.commit()
    return project


def _gl(db, entry, reference_type):
    return {
        row.account_name: row
        for row in db.query(ledger_models.GeneralLedgerEntry)
        .filter(
            ledger_models.GeneralLedgerEntry.reference_type == reference_type,
            ledger_models.GeneralLedgerEntry.reference_id == entry.id,
        )
        .all()
    }


def test_calendar_helpers():
    assert payroll_services.month_name(2) == "February"
    assert payroll_services.month_name(13) == "Unknown"
    assert payroll_services.calendar_days_in_month(2, 2024) == 29
    assert payroll_services.calendar_days_in_month(2, 2023) == 28
    # Monday 1 April 2024 to Sunday 7 April 2024
    assert payroll_services.working_days_between(date(2024, 4, 1), date(2024, 4, 7)) == 5
    assert payroll_services.working_days_between(date(2024, 4, 7), date(2024, 4, 1)) == 0


def test_invalid_month_is_rejected(db_session):
    with pytest.raises(HTTPException) as exc:
        payroll_services.generate_monthly_payroll(db_session, month=13, year=2024, actor_user_id=None)
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid month"


def test_permanent_employee_gets_tds_and_salary_postings(db_session):
    employee = _employee(db_session, "P001", first_name="Test", last_name="Employee", salary="5000.00")

    created = payroll_services.generate_monthly_payroll(db_session, month=3, year=2024, actor_user_id="user-1")
    db_session.commit()

    assert len(created) == 1
    entry = created[0]
    assert entry.employee_id == employee.id
    assert entry.basic_salary == Decimal("5000.00")
    assert entry.working_days == 21
    assert entry.total_deductions == Decimal("250.00")
    assert entry.total_amount == Decimal("4750.00")

    [tds] = entry.deductions
    assert tds.description == "Tax Deducted at Source"
    assert tds.note == "5% of total earnings"

    lines = _gl(db_session, entry, ledger_models.GLReferenceType.PAYROLL)
    assert set(lines) == {"Salary Expense", "Salary Payable"}
    expense = lines["Salary Expense"]
    assert expense.debit_amount == Decimal("4750.00")
    assert expense.entry_type == ledger_models.GLEntryType.PAYABLE
    assert expense.transaction_date == date(2024, 3, 1)
    assert expense.description == "Salary for Test Employee - March 2024"
    assert expense.created_by == "user-1"
    assert lines["Salary Payable"].credit_amount == Decimal("4750.00")


def test_generation_skips_existing_entries(db_session):
    _employee(db_session, "P001")
    payroll_services.generate_monthly_payroll(db_session, month=5, year=2024, actor_user_id=None)
    db_session.commit()

    again = payroll_services.generate_monthly_payroll(db_session, month=5, year=2024, actor_user_id=None)
    db_session.commit()

    assert again == []
    assert len(payroll_services.list_payroll(db_session, month=5, year=2024)) == 1


def test_consultant_paid_for_project_days_only(db_session):
    full = _employee(db_session, "C001", salary="4400.00", category=employee_models.EmployeeCategory.CONSULTANT)
    partial = _employee(db_session, "C002", salary="4400.00", category=employee_models.EmployeeCategory.CONSULTANT)
    idle = _employee(db_session, "C003", salary="4400.00", category=employee_models.EmployeeCategory.CONSULTANT)
    full_project = _assign(db_session, full, start=date(2024, 4, 1), end=date(2024, 4, 30))
    _assign(db_session, partial, start=date(2024, 4, 15), end=date(2024, 4, 30))
    _assign(
        db_session,
        idle,
        start=date(2024, 4, 1),
        end=date(2024, 4, 30),
        status=project_models.ProjectStatus.NOT_STARTED,
    )

    created = payroll_services.generate_monthly_payroll(db_session, month=4, year=2024, actor_user_id=None)
    db_session.commit()

    by_employee = {entry.employee_id: entry for entry in created}
    assert idle.id not in by_employee

    # 4400 / 22 = 200 a day
    assert by_employee[full.id].working_days == 22
    assert by_employee[full.id].basic_salary == Decimal("4400.00")
    assert by_employee[full.id].project_id == full_project.id
    assert by_employee[partial.id].working_days == 12
    assert by_employee[partial.id].basic_salary == Decimal("2400.00")

    expense = _gl(db_session, by_employee[full.id], ledger_models.GLReferenceType.PAYROLL)["Salary Expense"]
    assert expense.project_id == full_project.id


def test_additions_and_deductions_recompute_totals_and_gl(db_session):
    _employee(db_session, "AD001", salary="3000.00")
    [entry] = payroll_services.generate_monthly_payroll(db_session, month=6, year=2024, actor_user_id="user-1")
    db_session.commit()

    payroll_services.add_addition(
        db_session,
        entry_id=entry.id,
        payload=payroll_schemas.PayrollLineCreate(description="Bonus", amount=Decimal("500")),
        actor_user_id="user-1",
    )
    db_session.commit()
    assert entry.total_additions == Decimal("500.00")
    assert entry.total_amount == Decimal("3350.00")

    loan = payroll_services.add_deduction(
        db_session,
        entry_id=entry.id,
        payload=payroll_schemas.PayrollLineCreate(description="Staff Loan", amount=Decimal("200")),
        actor_user_id="user-1",
    )
    db_session.commit()
    assert entry.total_deductions == Decimal("350.00")
    assert entry.total_amount == Decimal("3150.00")

    lines = _gl(db_session, entry, ledger_models.GLReferenceType.PAYROLL)
    assert len(lines) == 2
    assert lines["Salary Expense"].debit_amount == Decimal("3150.00")

    payroll_services.update_deduction(
        db_session,
        deduction_id=loan.id,
        payload=payroll_schemas.PayrollLineUpdate(amount=Decimal("100")),
        actor_user_id="user-1",
    )
    db_session.commit()
    assert entry.total_amount == Decimal("3250.00")

    payroll_services.delete_deduction(db_session, deduction_id=loan.id, actor_user_id="user-1")
    db_session.commit()
    assert entry.total_amount == Decimal("3350.00")
    assert _gl(db_session, entry, ledger_models.GLReferenceType.PAYROLL)["Salary Payable"].credit_amount == Decimal("3350.00")


def test_status_moves_and_payment_posting(db_session):
    _employee(db_session, "S001", salary="2000.00")
    [entry] = payroll_services.generate_monthly_payroll(db_session, month=7, year=2024, actor_user_id=None)
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        payroll_services.update_payroll_entry(
            db_session,
            entry_id=entry.id,
            payload=payroll_schemas.PayrollEntryUpdate(status=payroll_models.PayrollStatus.PAID),
            actor_user_id=None,
        )
    assert exc.value.status_code == 409

    for target in (payroll_models.PayrollStatus.APPROVED, payroll_models.PayrollStatus.PAID):
        payroll_services.update_payroll_entry(
            db_session,
            entry_id=entry.id,
            payload=payroll_schemas.PayrollEntryUpdate(status=target),
            actor_user_id="user-2",
        )
        db_session.commit()

    payment = _gl(db_session, entry, ledger_models.GLReferenceType.PAYROLL_PAYMENT)
    assert payment["Salary Payable"].debit_amount == Decimal("1900.00")
    assert payment["Cash/Bank"].credit_amount == Decimal("1900.00")
    assert payment["Cash/Bank"].created_by == "user-2"

    with pytest.raises(HTTPException) as exc:
        payroll_services.add_addition(
            db_session,
            entry_id=entry.id,
            payload=payroll_schemas.PayrollLineCreate(description="Late bonus", amount=Decimal("10")),
            actor_user_id=None,
        )
    assert exc.value.status_code == 409


def test_basic_salary_change_refreshes_tds(db_session):
    _employee(db_session, "B001", salary="1000.00")
    [entry] = payroll_services.generate_monthly_payroll(db_session, month=8, year=2024, actor_user_id=None)
    db_session.commit()

    payroll_services.update_payroll_entry(
        db_session,
        entry_id=entry.id,
        payload=payroll_schemas.PayrollEntryUpdate(basic_salary=Decimal("2000")),
        actor_user_id=None,
    )
    db_session.commit()

    assert entry.total_deductions == Decimal("100.00")
    assert entry.total_amount == Decimal("1900.00")


def test_clear_period_removes_entries_and_postings(db_session):
    _employee(db_session, "CL001", salary="1000.00")
    [entry] = payroll_services.generate_monthly_payroll(db_session, month=9, year=2024, actor_user_id=None)
    db_session.commit()
    entry_id = entry.id

    result = payroll_services.clear_payroll_period(db_session, month=9, year=2024)
    db_session.commit()

    assert result.deleted_payroll_entries == 1
    assert result.deleted_general_ledger_entries == 2
    assert db_session.get(payroll_models.PayrollEntry, entry_id) is None
    assert db_session.query(payroll_models.PayrollDeduction).count() == 0


def test_clear_all_removes_paid_entries_and_their_payments(db_session):
    _employee(db_session, "CA001", salary="2000.00")
    _employee(db_session, "CA002", salary="1000.00")
    entries = payroll_services.generate_monthly_payroll(db_session, month=10, year=2024, actor_user_id=None)
    db_session.commit()
    paid = entries[0]
    for target in (payroll_models.PayrollStatus.APPROVED, payroll_models.PayrollStatus.PAID):
        payroll_services.update_payroll_entry(
            db_session,
            entry_id=paid.id,
            payload=payroll_schemas.PayrollEntryUpdate(status=target),
            actor_user_id=None,
        )
        db_session.commit()
    posted = db_session.query(ledger_models.GeneralLedgerEntry).count()

    result = payroll_services.clear_all_payroll(db_session, actor_user_id="admin-1")
    db_session.commit()

    assert result.deleted_payroll_entries == 2
    assert result.deleted_general_ledger_entries == posted
    assert db_session.query(payroll_models.PayrollEntry).count() == 0
    assert db_session.query(ledger_models.GeneralLedgerEntry).count() == 0
