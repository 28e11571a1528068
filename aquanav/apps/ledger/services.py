# aquanav/apps/ledger/services.py

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from aquanav.apps.audit import schemas as audit_schemas
from aquanav.apps.audit import services as audit_services
from aquanav.apps.purchasing import models as purchasing_models
from aquanav.apps.sales import models as sales_models
from . import models, schemas

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")

ACCOUNTS_RECEIVABLE = "Accounts Receivable"
SALES_REVENUE = "Sales Revenue"
SALES_RETURNS = "Sales Returns"
VAT_PAYABLE = "VAT Payable"
ACCOUNTS_PAYABLE = "Accounts Payable"
PURCHASES = "Purchases"
VAT_RECEIVABLE = "VAT Receivable"
CASH_BANK = "Cash/Bank"
SALARY_EXPENSE = "Salary Expense"
SALARY_PAYABLE = "Salary Payable"
SUSPENSE = "Suspense"

CANONICAL_ACCOUNTS = (
    ACCOUNTS_RECEIVABLE,
    SALES_REVENUE,
    SALES_RETURNS,
    VAT_PAYABLE,
    ACCOUNTS_PAYABLE,
    PURCHASES,
    VAT_RECEIVABLE,
    CASH_BANK,
    SALARY_EXPENSE,
    SALARY_PAYABLE,
    SUSPENSE,
)

AGING_BUCKETS = ("current", "1-30", "31-60", "61-90", "90+")


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(MONEY)


def line(account_name: str, *, debit=0, credit=0) -> models.GeneralLedgerEntry:
    """Build an unsaved GL line; `post_entries` fills in the shared fields."""
    return models.GeneralLedgerEntry(
        account_name=account_name,
        debit_amount=money(debit),
        credit_amount=money(credit),
    )


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


# ---------------------------------------------------------------------------
# Posting
# ---------------------------------------------------------------------------


def post_entries(
    db: Session,
    *,
    lines: Iterable[models.GeneralLedgerEntry],
    entry_type: models.GLEntryType,
    reference_type: models.GLReferenceType,
    reference_id: Optional[int],
    description: str,
    transaction_date: date,
    actor_user_id: Optional[str],
    entity_id: Optional[int] = None,
    entity_name: Optional[str] = None,
    project_id: Optional[int] = None,
    invoice_number: Optional[str] = None,
    due_date: Optional[date] = None,
    status_value: models.GLStatus = models.GLStatus.POSTED,
) -> List[models.GeneralLedgerEntry]:
    """
    Write a balanced set of GL lines for one business event.

    Zero lines are dropped. Raises 400 when debits and credits differ;
    nothing is added to the session in that case. Manual postings have no
    business document, so their lines share the id of the first line as
    `reference_id`.
    """
    kept = [
        entry
        for entry in lines
        if money(entry.debit_amount) != 0 or money(entry.credit_amount) != 0
    ]
    total_debit = sum((money(entry.debit_amount) for entry in kept), Decimal("0"))
    total_credit = sum((money(entry.credit_amount) for entry in kept), Decimal("0"))
    if total_debit != total_credit:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Journal entry is not balanced.")
    if not kept:
        return []

    for entry in kept:
        entry.entry_type = entry_type
        entry.reference_type = reference_type
        entry.reference_id = reference_id
        entry.description = description
        entry.transaction_date = transaction_date
        entry.due_date = due_date
        entry.entity_id = entity_id
        entry.entity_name = entity_name
        entry.project_id = project_id
        entry.invoice_number = invoice_number
        entry.status = status_value
        entry.created_by = actor_user_id
        db.add(entry)
    db.flush()
    if reference_id is None:
        reference_id = kept[0].id
        for entry in kept:
            entry.reference_id = reference_id
        db.flush()

    _audit_event(
        db,
        entity_type="GeneralLedger",
        entity_id=f"{reference_type.value}:{reference_id}",
        action="post",
        actor_user_id=actor_user_id,
        after={
            "description": description,
            "amount": str(total_debit),
            "accounts": [entry.account_name for entry in kept],
        },
    )
    return kept


def delete_entries_for_reference(
    db: Session,
    *,
    reference_type: models.GLReferenceType,
    reference_id: int,
) -> int:
    deleted = (
        db.query(models.GeneralLedgerEntry)
        .filter(
            models.GeneralLedgerEntry.reference_type == reference_type,
            models.GeneralLedgerEntry.reference_id == reference_id,
        )
        .delete(synchronize_session="fetch")
    )
    db.flush()
    return deleted


def create_manual_entry(
    db: Session,
    *,
    payload: schemas.ManualEntryCreate,
    actor_user_id: Optional[str],
) -> models.GeneralLedgerEntry:
    """
    A single line keyed in by finance.

    The mirror-image line goes to `contra_account_name` (Suspense unless
    given) and both are posted as one balanced set. Returns the keyed line.
    """
    debit = money(payload.debit_amount)
    credit = money(payload.credit_amount)
    if debit == 0 and credit == 0:
        raise HTTPException(status_code=400, detail="Either debit or credit amount is required.")
    if payload.contra_account_name == payload.account_name:
        raise HTTPException(status_code=400, detail="Contra account must differ from the entry account.")

    keyed = line(payload.account_name, debit=debit, credit=credit)
    keyed.notes = payload.notes
    contra = line(payload.contra_account_name, debit=credit, credit=debit)
    contra.notes = payload.notes
    post_entries(
        db,
        lines=[keyed, contra],
        entry_type=payload.entry_type,
        reference_type=models.GLReferenceType.MANUAL,
        reference_id=None,
        description=payload.description,
        transaction_date=payload.transaction_date,
        due_date=payload.due_date,
        entity_id=payload.entity_id,
        entity_name=payload.entity_name,
        project_id=payload.project_id,
        invoice_number=payload.invoice_number,
        status_value=payload.status,
        actor_user_id=actor_user_id,
    )
    return keyed


def create_journal(
    db: Session,
    *,
    payload: schemas.JournalCreate,
    actor_user_id: Optional[str],
) -> List[models.GeneralLedgerEntry]:
    lines = [line(item.account_name, debit=item.debit, credit=item.credit) for item in payload.lines]
    entries = post_entries(
        db,
        lines=lines,
        entry_type=models.GLEntryType.JOURNAL,
        reference_type=models.GLReferenceType.MANUAL,
        reference_id=None,
        description=payload.description,
        transaction_date=payload.transaction_date,
        project_id=payload.project_id,
        actor_user_id=actor_user_id,
    )
    if len(entries) < 2:
        raise HTTPException(status_code=400, detail="A journal needs at least two non-zero lines.")
    return entries


def get_entry(db: Session, entry_id: int) -> models.GeneralLedgerEntry:
    entry = db.get(models.GeneralLedgerEntry, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Ledger entry not found")
    return entry


def update_entry(db: Session, *, entry_id: int, payload: schemas.GLEntryUpdate) -> models.GeneralLedgerEntry:
    """
    Notes and due date apply to the one line. A status change applies to
    every line sharing its reference.
    """
    entry = get_entry(db, entry_id)
    changes = payload.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)
    for field, value in changes.items():
        setattr(entry, field, value)
    if new_status is not None:
        for member in _posting_lines(db, entry):
            member.status = new_status
            db.add(member)
    db.add(entry)
    db.flush()
    return entry


def _posting_lines(db: Session, entry: models.GeneralLedgerEntry) -> List[models.GeneralLedgerEntry]:
    if entry.reference_id is None:
        return [entry]
    return (
        db.query(models.GeneralLedgerEntry)
        .filter(
            models.GeneralLedgerEntry.reference_type == entry.reference_type,
            models.GeneralLedgerEntry.reference_id == entry.reference_id,
        )
        .all()
    )


def list_entries(
    db: Session,
    *,
    entry_type: Optional[models.GLEntryType] = None,
    reference_type: Optional[models.GLReferenceType] = None,
    reference_id: Optional[int] = None,
    account_name: Optional[str] = None,
    project_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[models.GeneralLedgerEntry]:
    query = db.query(models.GeneralLedgerEntry)
    if entry_type is not None:
        query = query.filter(models.GeneralLedgerEntry.entry_type == entry_type)
    if reference_type is not None:
        query = query.filter(models.GeneralLedgerEntry.reference_type == reference_type)
    if reference_id is not None:
        query = query.filter(models.GeneralLedgerEntry.reference_id == reference_id)
    if account_name:
        query = query.filter(models.GeneralLedgerEntry.account_name == account_name)
    if project_id is not None:
        query = query.filter(models.GeneralLedgerEntry.project_id == project_id)
    if start:
        query = query.filter(models.GeneralLedgerEntry.transaction_date >= start)
    if end:
        query = query.filter(models.GeneralLedgerEntry.transaction_date <= end)
    return query.order_by(
        models.GeneralLedgerEntry.transaction_date.desc(),
        models.GeneralLedgerEntry.id.desc(),
    ).all()


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def trial_balance(db: Session, *, as_of: Optional[date] = None) -> schemas.TrialBalance:
    query = (
        db.query(
            models.GeneralLedgerEntry.account_name,
            func.coalesce(func.sum(models.GeneralLedgerEntry.debit_amount), 0),
            func.coalesce(func.sum(models.GeneralLedgerEntry.credit_amount), 0),
        )
        .filter(models.GeneralLedgerEntry.status != models.GLStatus.CANCELLED)
        .group_by(models.GeneralLedgerEntry.account_name)
        .order_by(models.GeneralLedgerEntry.account_name.asc())
    )
    if as_of:
        query = query.filter(models.GeneralLedgerEntry.transaction_date <= as_of)

    lines: List[schemas.TrialBalanceLine] = []
    total_debit = Decimal("0.00")
    total_credit = Decimal("0.00")
    for account_name, debit, credit in query.all():
        debit = money(debit)
        credit = money(credit)
        total_debit += debit
        total_credit += credit
        lines.append(
            schemas.TrialBalanceLine(
                account_name=account_name,
                debit=debit,
                credit=credit,
                balance=debit - credit,
            )
        )
    return schemas.TrialBalance(
        as_of=as_of,
        lines=lines,
        total_debit=total_debit,
        total_credit=total_credit,
    )


# Revenue accounts carry a credit balance, expense accounts a debit balance.
REVENUE_ACCOUNTS = (SALES_REVENUE, SALES_RETURNS)
EXPENSE_ACCOUNTS = (PURCHASES, SALARY_EXPENSE)


def profit_and_loss(
    db: Session,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    project_id: Optional[int] = None,
) -> schemas.ProfitLossReport:
    """Income statement over the GL, with a per-project breakdown.

    Sales returns reduce revenue. Cancelled lines are ignored.
    """
    if start and end and start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Start date must not be after end date")

    GL = models.GeneralLedgerEntry
    query = (
        db.query(
            GL.account_name,
            GL.project_id,
            func.coalesce(func.sum(GL.debit_amount), 0),
            func.coalesce(func.sum(GL.credit_amount), 0),
        )
        .filter(
            GL.status != models.GLStatus.CANCELLED,
            GL.account_name.in_(REVENUE_ACCOUNTS + EXPENSE_ACCOUNTS),
        )
        .group_by(GL.account_name, GL.project_id)
    )
    if start:
        query = query.filter(GL.transaction_date >= start)
    if end:
        query = query.filter(GL.transaction_date <= end)
    if project_id is not None:
        query = query.filter(GL.project_id == project_id)

    by_account: Dict[str, Decimal] = {name: Decimal("0.00") for name in REVENUE_ACCOUNTS + EXPENSE_ACCOUNTS}
    by_project: Dict[Optional[int], Dict[str, Decimal]] = {}
    for account_name, row_project_id, debit, credit in query.all():
        debit = money(debit)
        credit = money(credit)
        amount = credit - debit if account_name in REVENUE_ACCOUNTS else debit - credit
        by_account[account_name] += amount
        bucket = by_project.setdefault(
            row_project_id, {"revenue": Decimal("0.00"), "expenses": Decimal("0.00")}
        )
        bucket["revenue" if account_name in REVENUE_ACCOUNTS else "expenses"] += amount

    total_revenue = sum((by_account[name] for name in REVENUE_ACCOUNTS), Decimal("0.00"))
    total_expenses = sum((by_account[name] for name in EXPENSE_ACCOUNTS), Decimal("0.00"))
    net_profit = total_revenue - total_expenses
    profit_margin = Decimal("0.00")
    if total_revenue:
        profit_margin = money(net_profit * 100 / total_revenue)

    projects = [
        schemas.ProjectProfitLoss(
            project_id=key,
            revenue=values["revenue"],
            expenses=values["expenses"],
            net_profit=values["revenue"] - values["expenses"],
        )
        for key, values in sorted(by_project.items(), key=lambda item: (item[0] is None, item[0] or 0))
    ]
    return schemas.ProfitLossReport(
        start=start,
        end=end,
        project_id=project_id,
        revenue=[schemas.ProfitLossLine(account_name=name, amount=by_account[name]) for name in REVENUE_ACCOUNTS],
        expenses=[schemas.ProfitLossLine(account_name=name, amount=by_account[name]) for name in EXPENSE_ACCOUNTS],
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=net_profit,
        profit_margin=profit_margin,
        by_project=projects,
    )


def aging_bucket(days_past_due: int) -> str:
    if days_past_due <= 0:
        return "current"
    if days_past_due <= 30:
        return "1-30"
    if days_past_due <= 60:
        return "31-60"
    if days_past_due <= 90:
        return "61-90"
    return "90+"


def _aging_report(rows: Iterable[schemas.AgingItem], today: date) -> schemas.AgingReport:
    items = list(rows)
    buckets: Dict[str, Decimal] = {name: Decimal("0.00") for name in AGING_BUCKETS}
    for item in items:
        buckets[item.bucket] += item.outstanding
    return schemas.AgingReport(
        as_of=today,
        items=items,
        buckets=buckets,
        total_outstanding=sum((item.outstanding for item in items), Decimal("0.00")),
    )


def _aging_item(*, document, number, party, document_date, due_date, today: date) -> Optional[schemas.AgingItem]:
    total = money(document.total)
    paid = money(document.paid_amount)
    outstanding = total - paid
    if outstanding <= 0:
        return None
    days = (today - (due_date or document_date or today)).days
    return schemas.AgingItem(
        document_id=document.id,
        document_number=number,
        party_id=party.id if party else None,
        party_name=party.name if party else None,
        document_date=document_date,
        due_date=due_date,
        total=total,
        paid=paid,
        outstanding=outstanding,
        days_past_due=max(days, 0),
        bucket=aging_bucket(days),
    )


def receivables(db: Session, *, today: Optional[date] = None) -> schemas.AgingReport:
    today = today or date.today()
    invoices = (
        db.query(sales_models.SalesInvoice)
        .filter(sales_models.SalesInvoice.status != sales_models.SalesInvoiceStatus.DRAFT)
        .order_by(sales_models.SalesInvoice.due_date.asc())
        .all()
    )
    rows = []
    for invoice in invoices:
        item = _aging_item(
            document=invoice,
            number=invoice.invoice_number,
            party=invoice.customer,
            document_date=invoice.invoice_date,
            due_date=invoice.due_date,
            today=today,
        )
        if item:
            rows.append(item)
    return _aging_report(rows, today)


def payables(db: Session, *, today: Optional[date] = None) -> schemas.AgingReport:
    today = today or date.today()
    invoices = (
        db.query(purchasing_models.PurchaseInvoice)
        .filter(purchasing_models.PurchaseInvoice.approval_status == purchasing_models.ApprovalStatus.APPROVED)
        .order_by(purchasing_models.PurchaseInvoice.due_date.asc())
        .all()
    )
    rows = []
    for invoice in invoices:
        item = _aging_item(
            document=invoice,
            number=invoice.invoice_number,
            party=invoice.supplier,
            document_date=invoice.invoice_date,
            due_date=invoice.due_date,
            today=today,
        )
        if item:
            rows.append(item)
    return _aging_report(rows, today)


def outstanding_receivables(db: Session) -> Decimal:
    total = (
        db.query(
            func.coalesce(
                func.sum(sales_models.SalesInvoice.total - sales_models.SalesInvoice.paid_amount),
                0,
            )
        )
        .filter(sales_models.SalesInvoice.status != sales_models.SalesInvoiceStatus.DRAFT)
        .scalar()
    )
    return money(total)
