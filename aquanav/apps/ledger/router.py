# aquanav/apps/ledger/router.py

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_roles
from aquanav.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(prefix="/general-ledger", tags=["general-ledger"])

LEDGER_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.FINANCE,
]


@router.get("", response_model=List[schemas.GLEntryRead])
def list_entries(
    entry_type: Optional[models.GLEntryType] = None,
    reference_type: Optional[models.GLReferenceType] = None,
    reference_id: Optional[int] = None,
    account_name: Optional[str] = None,
    project_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    return services.list_entries(
        db,
        entry_type=entry_type,
        reference_type=reference_type,
        reference_id=reference_id,
        account_name=account_name,
        project_id=project_id,
        start=start,
        end=end,
    )


@router.post("", response_model=schemas.GLEntryRead, status_code=status.HTTP_201_CREATED)
def create_manual_entry(
    payload: schemas.ManualEntryCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    entry = services.create_manual_entry(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/journals", response_model=List[schemas.GLEntryRead], status_code=status.HTTP_201_CREATED)
def create_journal(
    payload: schemas.JournalCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    entries = services.create_journal(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    for entry in entries:
        db.refresh(entry)
    return entries


@router.get("/trial-balance", response_model=schemas.TrialBalance)
def trial_balance(
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    return services.trial_balance(db, as_of=as_of)


@router.get("/profit-loss", response_model=schemas.ProfitLossReport)
def profit_and_loss(
    start: Optional[date] = None,
    end: Optional[date] = None,
    project_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    return services.profit_and_loss(db, start=start, end=end, project_id=project_id)


@router.get("/receivables", response_model=schemas.AgingReport)
def receivables(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    return services.receivables(db)


@router.get("/payables", response_model=schemas.AgingReport)
def payables(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    return services.payables(db)


@router.get("/{entry_id}", response_model=schemas.GLEntryRead)
def get_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    return services.get_entry(db, entry_id)


@router.put("/{entry_id}", response_model=schemas.GLEntryRead)
def update_entry(
    entry_id: int,
    payload: schemas.GLEntryUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*LEDGER_ROLES)),
):
    entry = services.update_entry(db, entry_id=entry_id, payload=payload)
    db.commit()
    db.refresh(entry)
    return entry
