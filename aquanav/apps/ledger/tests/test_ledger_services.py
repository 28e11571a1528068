from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.ledger import models as ledger_models
from aquanav.apps.ledger import router as ledger_router
from aquanav.apps.ledger import schemas as ledger_schemas
from aquanav.apps.ledger import services as ledger_services
from aquanav.apps.parties import models as party_models
from aquanav.apps.sales import models as sales_models

R = ledger_models.GLReferenceType


def _post(db, lines, *, reference_id=1, when=date(2024, 6, 1)):
    entries = ledger_services.post_entries(
        db,
        lines=lines,
        entry_type=ledger_models.GLEntryType.RECEIVABLE,
        reference_type=R.SALES_INVOICE,
        reference_id=reference_id,
        description="Invoice approved",
        transaction_date=when,
        actor_user_id="fin-1",
    )
    db.commit()
    return entries


def test_post_entries_drops_zero_lines(db_session):
    entries = _post(
        db_session,
        [
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, debit="105"),
            ledger_services.line(ledger_services.SALES_REVENUE, credit="100"),
            ledger_services.line(ledger_services.VAT_PAYABLE, credit="5"),
            ledger_services.line(ledger_services.SALES_RETURNS),
        ],
    )

    assert [entry.account_name for entry in entries] == [
        ledger_services.ACCOUNTS_RECEIVABLE,
        ledger_services.SALES_REVENUE,
        ledger_services.VAT_PAYABLE,
    ]
    assert all(entry.reference_type == R.SALES_INVOICE for entry in entries)
    assert all(entry.status == ledger_models.GLStatus.POSTED for entry in entries)

    read = ledger_schemas.GLEntryRead.model_validate(entries[0])
    assert read.debit_amount == Decimal("105.00")
    assert read.reference_type == R.SALES_INVOICE


def test_unbalanced_post_rejected(db_session):
    with pytest.raises(HTTPException) as exc:
        _post(
            db_session,
            [
                ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, debit="105"),
                ledger_services.line(ledger_services.SALES_REVENUE, credit="100"),
            ],
        )
    assert exc.value.status_code == 400
    assert db_session.query(ledger_models.GeneralLedgerEntry).count() == 0


def test_delete_entries_for_reference(db_session):
    _post(
        db_session,
        [
            ledger_services.line(ledger_services.CASH_BANK, debit="50"),
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, credit="50"),
        ],
        reference_id=7,
    )

    deleted = ledger_services.delete_entries_for_reference(db_session, reference_type=R.SALES_INVOICE, reference_id=7)
    db_session.commit()

    assert deleted == 2
    assert ledger_services.list_entries(db_session, reference_id=7) == []


def test_manual_entry_requires_an_amount(db_session):
    with pytest.raises(HTTPException) as exc:
        ledger_services.create_manual_entry(
            db_session,
            payload=ledger_schemas.ManualEntryCreate(account_name="Cash/Bank", transaction_date=date(2024, 6, 1)),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400

    entry = ledger_services.create_manual_entry(
        db_session,
        payload=ledger_schemas.ManualEntryCreate(
            account_name="Cash/Bank",
            debit_amount=Decimal("250"),
            transaction_date=date(2024, 6, 1),
        ),
        actor_user_id="fin-1",
    )
    db_session.commit()
    assert entry.reference_type == R.MANUAL
    assert entry.account_name == "Cash/Bank"

    posting = ledger_services.list_entries(db_session, reference_type=R.MANUAL, reference_id=entry.reference_id)
    assert {(line.account_name, line.credit_amount) for line in posting} == {
        ("Cash/Bank", Decimal("0.00")),
        (ledger_services.SUSPENSE, Decimal("250.00")),
    }
    balance = ledger_services.trial_balance(db_session)
    assert balance.total_debit == balance.total_credit == Decimal("250.00")


def test_manual_entry_contra_must_differ(db_session):
    with pytest.raises(HTTPException) as exc:
        ledger_services.create_manual_entry(
            db_session,
            payload=ledger_schemas.ManualEntryCreate(
                account_name="Cash/Bank",
                contra_account_name="Cash/Bank",
                credit_amount=Decimal("40"),
                transaction_date=date(2024, 6, 1),
            ),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400


def test_cancelling_one_line_cancels_whole_posting(db_session):
    entries = _post(
        db_session,
        [
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, debit="105"),
            ledger_services.line(ledger_services.SALES_REVENUE, credit="100"),
            ledger_services.line(ledger_services.VAT_PAYABLE, credit="5"),
        ],
        reference_id=3,
    )
    _post(
        db_session,
        [
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, debit="60"),
            ledger_services.line(ledger_services.SALES_REVENUE, credit="60"),
        ],
        reference_id=4,
    )

    ledger_services.update_entry(
        db_session,
        entry_id=entries[1].id,
        payload=ledger_schemas.GLEntryUpdate(status=ledger_models.GLStatus.CANCELLED, notes="Raised in error"),
    )
    db_session.commit()

    statuses = {entry.reference_id: set() for entry in ledger_services.list_entries(db_session)}
    for entry in ledger_services.list_entries(db_session):
        statuses[entry.reference_id].add(entry.status)
    assert statuses == {3: {ledger_models.GLStatus.CANCELLED}, 4: {ledger_models.GLStatus.POSTED}}
    assert db_session.get(ledger_models.GeneralLedgerEntry, entries[0].id).notes is None

    balance = ledger_services.trial_balance(db_session)
    assert balance.total_debit == balance.total_credit == Decimal("60.00")


def test_journal_and_trial_balance(db_session):
    ledger_services.create_journal(
        db_session,
        payload=ledger_schemas.JournalCreate(
            description="Owner capital",
            transaction_date=date(2024, 6, 1),
            lines=[
                ledger_schemas.JournalLineCreate(account_name="Cash/Bank", debit=Decimal("1000")),
                ledger_schemas.JournalLineCreate(account_name="Owner Equity", credit=Decimal("1000")),
            ],
        ),
        actor_user_id="fin-1",
    )
    _post(
        db_session,
        [
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, debit="300"),
            ledger_services.line(ledger_services.SALES_REVENUE, credit="300"),
        ],
        when=date(2024, 7, 1),
    )

    balance = ledger_services.trial_balance(db_session)
    assert balance.total_debit == balance.total_credit == Decimal("1300.00")
    by_account = {line.account_name: line for line in balance.lines}
    assert by_account["Cash/Bank"].balance == Decimal("1000.00")
    assert by_account["Sales Revenue"].balance == Decimal("-300.00")

    june = ledger_services.trial_balance(db_session, as_of=date(2024, 6, 30))
    assert "Sales Revenue" not in {line.account_name for line in june.lines}


def test_journal_with_single_live_line_rejected(db_session):
    with pytest.raises(HTTPException) as exc:
        ledger_services.create_journal(
            db_session,
            payload=ledger_schemas.JournalCreate(
                description="Nothing",
                transaction_date=date(2024, 6, 1),
                lines=[
                    ledger_schemas.JournalLineCreate(account_name="Cash/Bank"),
                    ledger_schemas.JournalLineCreate(account_name="Owner Equity"),
                ],
            ),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400


@pytest.mark.parametrize(
    "days,bucket",
    [(-5, "current"), (0, "current"), (1, "1-30"), (30, "1-30"), (31, "31-60"), (75, "61-90"), (91, "90+")],
)
def test_aging_bucket(days, bucket):
    assert ledger_services.aging_bucket(days) == bucket


def test_receivables_aging(db_session):
    customer = party_models.Customer(name="Gulf Tankers LLC")
    db_session.add(customer)
    db_session.flush()
    db_session.add_all(
        [
            sales_models.SalesInvoice(
                invoice_number="INV-2024-0001",
                customer_id=customer.id,
                status=sales_models.SalesInvoiceStatus.OVERDUE,
                invoice_date=date(2024, 4, 1),
                due_date=date(2024, 5, 1),
                total=Decimal("1000"),
                paid_amount=Decimal("400"),
            ),
            sales_models.SalesInvoice(
                invoice_number="INV-2024-0002",
                customer_id=customer.id,
                status=sales_models.SalesInvoiceStatus.PAID,
                invoice_date=date(2024, 5, 1),
                due_date=date(2024, 5, 31),
                total=Decimal("200"),
                paid_amount=Decimal("200"),
            ),
        ]
    )
    db_session.commit()

    report = ledger_services.receivables(db_session, today=date(2024, 6, 15))

    assert [item.document_number for item in report.items] == ["INV-2024-0001"]
    assert report.items[0].days_past_due == 45
    assert report.buckets["31-60"] == Decimal("600.00")
    assert report.total_outstanding == Decimal("600.00")
    assert ledger_services.outstanding_receivables(db_session) == Decimal("600.00")


def _post_for_project(db, lines, *, reference_type, reference_id, project_id=None, **extra):
    ledger_services.post_entries(
        db,
        lines=lines,
        entry_type=ledger_models.GLEntryType.JOURNAL,
        reference_type=reference_type,
        reference_id=reference_id,
        description="Posting",
        transaction_date=date(2024, 6, 1),
        actor_user_id=None,
        project_id=project_id,
        **extra,
    )
    db.commit()


def test_profit_and_loss(db_session):
    L = ledger_services
    _post_for_project(
        db_session,
        [L.line(L.ACCOUNTS_RECEIVABLE, debit="1000"), L.line(L.SALES_REVENUE, credit="1000")],
        reference_type=R.SALES_INVOICE,
        reference_id=1,
        project_id=7,
    )
    _post_for_project(
        db_session,
        [L.line(L.SALES_RETURNS, debit="100"), L.line(L.ACCOUNTS_RECEIVABLE, credit="100")],
        reference_type=R.CREDIT_NOTE,
        reference_id=1,
        project_id=7,
    )
    _post_for_project(
        db_session,
        [L.line(L.PURCHASES, debit="400"), L.line(L.ACCOUNTS_PAYABLE, credit="400")],
        reference_type=R.PURCHASE_INVOICE,
        reference_id=1,
        project_id=7,
    )
    _post_for_project(
        db_session,
        [L.line(L.SALARY_EXPENSE, debit="300"), L.line(L.SALARY_PAYABLE, credit="300")],
        reference_type=R.PAYROLL,
        reference_id=1,
    )
    _post_for_project(
        db_session,
        [L.line(L.ACCOUNTS_RECEIVABLE, debit="50"), L.line(L.SALES_REVENUE, credit="50")],
        reference_type=R.SALES_INVOICE,
        reference_id=2,
        project_id=7,
        status_value=ledger_models.GLStatus.CANCELLED,
    )

    report = L.profit_and_loss(db_session)
    assert {line.account_name: line.amount for line in report.revenue} == {
        L.SALES_REVENUE: Decimal("1000.00"),
        L.SALES_RETURNS: Decimal("-100.00"),
    }
    assert report.total_revenue == Decimal("900.00")
    assert report.total_expenses == Decimal("700.00")
    assert report.net_profit == Decimal("200.00")
    assert report.profit_margin == Decimal("22.22")
    assert [(row.project_id, row.net_profit) for row in report.by_project] == [
        (7, Decimal("500.00")),
        (None, Decimal("-300.00")),
    ]

    project_only = L.profit_and_loss(db_session, project_id=7)
    assert project_only.total_expenses == Decimal("400.00")
    assert project_only.net_profit == Decimal("500.00")

    before = L.profit_and_loss(db_session, end=date(2024, 5, 31))
    assert before.total_revenue == Decimal("0.00")
    assert before.profit_margin == Decimal("0.00")

    with pytest.raises(HTTPException) as exc:
        L.profit_and_loss(db_session, start=date(2024, 7, 1), end=date(2024, 6, 1))
    assert exc.value.status_code == 400


def test_ledger_routes_registered():
    paths = {route.path for route in ledger_router.router.routes}
    assert "/general-ledger/trial-balance" in paths
    assert "/general-ledger/receivables" in paths
    assert "/general-ledger/journals" in paths
    assert "/general-ledger/profit-loss" in paths
