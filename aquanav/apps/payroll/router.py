# aquanav/apps/payroll/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_admin, require_roles
from aquanav.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="/payroll", tags=["payroll"])

PAYROLL_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.FINANCE,
]


@router.get("", response_model=List[schemas.PayrollEntryRead])
def list_payroll(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    employee_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    entries = services.list_payroll(db, month=month, year=year, employee_id=employee_id)
    return [services.entry_to_read(entry) for entry in entries]


@router.post("/generate", response_model=List[schemas.PayrollEntryRead], status_code=status.HTTP_201_CREATED)
def generate_payroll(
    payload: schemas.GeneratePayrollRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    entries = services.generate_monthly_payroll(
        db,
        month=payload.month,
        year=payload.year,
        actor_user_id=current_user.id,
    )
    db.commit()
    return [services.entry_to_read(entry) for entry in entries]


@router.delete("/period", response_model=schemas.ClearPeriodResult)
def clear_payroll_period(
    month: int = Query(...),
    year: int = Query(...),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    result = services.clear_payroll_period(db, month=month, year=year, actor_user_id=current_user.id)
    db.commit()
    return result


@router.delete("/clear-all", response_model=schemas.ClearPeriodResult)
def clear_all_payroll(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    result = services.clear_all_payroll(db, actor_user_id=current_user.id)
    db.commit()
    return result


@router.get("/{entry_id}", response_model=schemas.PayrollEntryRead)
def get_payroll_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    return services.entry_to_read(services.get_payroll_entry(db, entry_id))


@router.put("/{entry_id}", response_model=schemas.PayrollEntryRead)
def update_payroll_entry(
    entry_id: int,
    payload: schemas.PayrollEntryUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    entry = services.update_payroll_entry(db, entry_id=entry_id, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(entry)
    return services.entry_to_read(entry)


# ---------------------------------------------------------------------------
# Additions / deductions
# ---------------------------------------------------------------------------


@router.post("/{entry_id}/additions", response_model=schemas.PayrollLineRead, status_code=status.HTTP_201_CREATED)
def add_addition(
    entry_id: int,
    payload: schemas.PayrollLineCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    addition = services.add_addition(db, entry_id=entry_id, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(addition)
    return addition


@router.put("/additions/{addition_id}", response_model=schemas.PayrollLineRead)
def update_addition(
    addition_id: int,
    payload: schemas.PayrollLineUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    addition = services.update_addition(db, addition_id=addition_id, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(addition)
    return addition


@router.delete("/additions/{addition_id}", response_model=schemas.PayrollEntryRead)
def delete_addition(
    addition_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    entry = services.delete_addition(db, addition_id=addition_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(entry)
    return services.entry_to_read(entry)


@router.post("/{entry_id}/deductions", response_model=schemas.PayrollLineRead, status_code=status.HTTP_201_CREATED)
def add_deduction(
    entry_id: int,
    payload: schemas.PayrollLineCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    deduction = services.add_deduction(db, entry_id=entry_id, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(deduction)
    return deduction


@router.put("/deductions/{deduction_id}", response_model=schemas.PayrollLineRead)
def update_deduction(
    deduction_id: int,
    payload: schemas.PayrollLineUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    deduction = services.update_deduction(db, deduction_id=deduction_id, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(deduction)
    return deduction


@router.delete("/deductions/{deduction_id}", response_model=schemas.PayrollEntryRead)
def delete_deduction(
    deduction_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PAYROLL_ROLES)),
):
    entry = services.delete_deduction(db, deduction_id=deduction_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(entry)
    return services.entry_to_read(entry)
