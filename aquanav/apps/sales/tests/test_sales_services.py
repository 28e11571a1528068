from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.ledger import models as ledger_models
from aquanav.apps.parties import schemas as party_schemas
from aquanav.apps.parties import services as party_services
from aquanav.apps.projects import models as project_models
from aquanav.apps.sales import models as sales_models
from aquanav.apps.sales import router as sales_router
from aquanav.apps.sales import schemas as sales_schemas
from aquanav.apps.sales import services as sales_services
from aquanav.utils.documents import compute_totals


def _customer(db):
    customer = party_services.create_customer(
        db,
        payload=party_schemas.CustomerCreate(name="Gulf Tankers LLC", phone="+971500000001"),
    )
    db.commit()
    return customer


def _lines():
    return [
        sales_schemas.LineItemCreate(
            description="Hull cleaning",
            quantity=Decimal("2"),
            unit_price=Decimal("500"),
            tax_rate=Decimal("5"),
        ),
        sales_schemas.LineItemCreate(description="Diver standby", quantity=Decimal("1"), unit_price=Decimal("200")),
    ]


def _draft_invoice(db, customer, *, project_id=None, due_in_days=30, discount=Decimal("0")):
    invoice = sales_services.create_invoice(
        db,
        payload=sales_schemas.SalesInvoiceCreate(
            customer_id=customer.id,
            project_id=project_id,
            invoice_date=date(2024, 5, 1),
            due_date=date(2024, 5, 1) + timedelta(days=due_in_days),
            discount=discount,
            items=_lines(),
        ),
        actor_user_id="fin-1",
    )
    db.commit()
    return invoice


def _gl(db, reference_type, reference_id):
    return {
        row.account_name: row
        for row in db.query(ledger_models.GeneralLedgerEntry)
        .filter(
            ledger_models.GeneralLedgerEntry.reference_type == reference_type,
            ledger_models.GeneralLedgerEntry.reference_id == reference_id,
        )
        .all()
    }


def test_compute_totals_applies_tax_and_discount():
    totals = compute_totals(_lines(), Decimal("100"))
    assert totals.subtotal == Decimal("1200.00")
    assert totals.tax_amount == Decimal("50.00")
    assert totals.total == Decimal("1150.00")
    assert totals.net == Decimal("1100.00")
    assert [line.line_total for line in totals.lines] == [Decimal("1000.00"), Decimal("200.00")]

    with pytest.raises(HTTPException) as exc:
        compute_totals(_lines(), Decimal("1200.01"))
    assert exc.value.status_code == 400


def test_invoice_is_created_as_draft_and_editable_only_while_draft(db_session):
    customer = _customer(db_session)
    invoice = _draft_invoice(db_session, customer)

    assert invoice.status == sales_models.SalesInvoiceStatus.DRAFT
    assert invoice.invoice_number is None
    assert invoice.total == Decimal("1250.00")
    assert len(invoice.items) == 2

    sales_services.update_invoice(
        db_session,
        invoice_id=invoice.id,
        payload=sales_schemas.SalesInvoiceUpdate(discount=Decimal("50")),
    )
    db_session.commit()
    assert invoice.total == Decimal("1200.00")

    sales_services.approve_sales_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1", today=date(2024, 5, 2))
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        sales_services.update_invoice(
            db_session,
            invoice_id=invoice.id,
            payload=sales_schemas.SalesInvoiceUpdate(remarks="late change"),
        )
    assert exc.value.status_code == 409


def test_approve_posts_receivable_and_numbers_invoice(db_session):
    customer = _customer(db_session)
    project = project_models.Project(title="Dry dock support", status=project_models.ProjectStatus.IN_PROGRESS)
    db_session.add(project)
    db_session.commit()
    invoice = _draft_invoice(db_session, customer, project_id=project.id, discount=Decimal("100"))

    sales_services.approve_sales_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1", today=date(2024, 5, 2))
    db_session.commit()

    assert invoice.invoice_number.startswith("INV-")
    assert invoice.status == sales_models.SalesInvoiceStatus.UNPAID

    lines = _gl(db_session, ledger_models.GLReferenceType.SALES_INVOICE, invoice.id)
    assert lines["Accounts Receivable"].debit_amount == Decimal("1150.00")
    assert lines["Sales Revenue"].credit_amount == Decimal("1100.00")
    assert lines["VAT Payable"].credit_amount == Decimal("50.00")
    assert lines["Accounts Receivable"].entity_name == "Gulf Tankers LLC"

    db_session.refresh(project)
    assert project.total_revenue == Decimal("1150.00")

    with pytest.raises(HTTPException) as exc:
        sales_services.approve_sales_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Only draft invoices can be approved"


def test_payments_move_status_and_reject_overpayment(db_session):
    customer = _customer(db_session)
    invoice = _draft_invoice(db_session, customer)

    with pytest.raises(HTTPException) as exc:
        sales_services.record_invoice_payment(
            db_session,
            invoice_id=invoice.id,
            payload=sales_schemas.InvoicePaymentCreate(amount=Decimal("100")),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400

    sales_services.approve_sales_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1", today=date(2024, 5, 2))
    db_session.commit()

    payment = sales_services.record_invoice_payment(
        db_session,
        invoice_id=invoice.id,
        payload=sales_schemas.InvoicePaymentCreate(amount=Decimal("250"), payment_date=date(2024, 5, 10)),
        actor_user_id="fin-1",
        today=date(2024, 5, 10),
    )
    db_session.commit()
    assert invoice.paid_amount == Decimal("250.00")
    assert invoice.status == sales_models.SalesInvoiceStatus.PARTIALLY_PAID

    cash = _gl(db_session, ledger_models.GLReferenceType.INVOICE_PAYMENT, payment.id)
    assert cash["Cash/Bank"].debit_amount == Decimal("250.00")
    assert cash["Accounts Receivable"].credit_amount == Decimal("250.00")

    with pytest.raises(HTTPException) as exc:
        sales_services.record_invoice_payment(
            db_session,
            invoice_id=invoice.id,
            payload=sales_schemas.InvoicePaymentCreate(amount=Decimal("1000.01")),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400

    sales_services.record_invoice_payment(
        db_session,
        invoice_id=invoice.id,
        payload=sales_schemas.InvoicePaymentCreate(amount=Decimal("1000")),
        actor_user_id="fin-1",
    )
    db_session.commit()
    assert invoice.status == sales_models.SalesInvoiceStatus.PAID


def test_payment_replay_with_idempotency_key(db_session):
    customer = _customer(db_session)
    invoice = _draft_invoice(db_session, customer)
    sales_services.approve_sales_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1", today=date(2024, 5, 2))
    db_session.commit()

    payload = sales_schemas.InvoicePaymentCreate(amount=Decimal("100"), payment_date=date(2024, 5, 3))
    first = sales_services.record_invoice_payment(
        db_session, invoice_id=invoice.id, payload=payload, actor_user_id="fin-1", idempotency_key="pay-1"
    )
    db_session.commit()
    again = sales_services.record_invoice_payment(
        db_session, invoice_id=invoice.id, payload=payload, actor_user_id="fin-1", idempotency_key="pay-1"
    )
    db_session.commit()

    assert again.id == first.id
    assert invoice.paid_amount == Decimal("100.00")

    with pytest.raises(HTTPException) as exc:
        sales_services.record_invoice_payment(
            db_session,
            invoice_id=invoice.id,
            payload=sales_schemas.InvoicePaymentCreate(amount=Decimal("200")),
            actor_user_id="fin-1",
            idempotency_key="pay-1",
        )
    assert exc.value.status_code == 409


def test_refresh_status_marks_overdue():
    invoice = sales_models.SalesInvoice(
        status=sales_models.SalesInvoiceStatus.UNPAID,
        total=Decimal("100.00"),
        paid_amount=Decimal("0"),
        due_date=date(2024, 1, 31),
    )
    sales_services.refresh_invoice_status(invoice, today=date(2024, 2, 1))
    assert invoice.status == sales_models.SalesInvoiceStatus.OVERDUE

    draft = sales_models.SalesInvoice(status=sales_models.SalesInvoiceStatus.DRAFT, total=Decimal("1"), paid_amount=0)
    sales_services.refresh_invoice_status(draft, today=date(2024, 2, 1))
    assert draft.status == sales_models.SalesInvoiceStatus.DRAFT


def test_quotation_to_proforma_to_invoice(db_session):
    customer = _customer(db_session)
    quotation = sales_services.create_quotation(
        db_session,
        payload=sales_schemas.QuotationCreate(customer_id=customer.id, items=_lines(), payment_terms="30 days"),
        actor_user_id="pm-1",
    )
    db_session.commit()
    assert quotation.quotation_number.startswith("QT-")

    with pytest.raises(HTTPException) as exc:
        sales_services.convert_quotation_to_proforma(db_session, quotation_id=quotation.id, actor_user_id="pm-1")
    assert exc.value.status_code == 400

    sales_services.approve_quotation(db_session, quotation_id=quotation.id, actor_user_id="admin-1")
    proforma = sales_services.convert_quotation_to_proforma(db_session, quotation_id=quotation.id, actor_user_id="pm-1")
    db_session.commit()

    assert quotation.status == sales_models.QuotationStatus.CONVERTED
    assert proforma.quotation_id == quotation.id
    assert proforma.total == quotation.total
    assert proforma.payment_terms == "30 days"
    assert len(proforma.items) == 2

    with pytest.raises(HTTPException) as exc:
        sales_services.convert_proforma_to_invoice(db_session, proforma_id=proforma.id, actor_user_id="fin-1")
    assert exc.value.detail == "Only approved proforma invoices can be converted to sales invoices"

    with pytest.raises(HTTPException) as exc:
        sales_services.update_proforma_status(
            db_session,
            proforma_id=proforma.id,
            new_status=sales_models.ProformaStatus.APPROVED,
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 409

    for new_status in (sales_models.ProformaStatus.SENT, sales_models.ProformaStatus.APPROVED):
        sales_services.update_proforma_status(
            db_session, proforma_id=proforma.id, new_status=new_status, actor_user_id="pm-1"
        )
    result = sales_services.convert_proforma_to_invoice(db_session, proforma_id=proforma.id, actor_user_id="fin-1")
    db_session.commit()

    invoice = result["sales_invoice"]
    assert result["proforma_invoice"].status == sales_models.ProformaStatus.CONVERTED
    assert invoice.status == sales_models.SalesInvoiceStatus.DRAFT
    assert invoice.invoice_number.startswith("SI-")
    assert invoice.total == proforma.total
    assert invoice.due_date == invoice.invoice_date + timedelta(days=30)

    with pytest.raises(HTTPException) as exc:
        sales_services.delete_proforma(db_session, proforma_id=proforma.id)
    assert exc.value.status_code == 409


def test_archived_quotations_hidden_by_default(db_session):
    customer = _customer(db_session)
    quotation = sales_services.create_quotation(
        db_session,
        payload=sales_schemas.QuotationCreate(customer_id=customer.id, items=_lines()),
        actor_user_id=None,
    )
    sales_services.set_quotation_archived(db_session, quotation_id=quotation.id, archived=True)
    db_session.commit()

    assert sales_services.list_quotations(db_session) == []
    assert len(sales_services.list_quotations(db_session, include_archived=True)) == 1


def test_issue_credit_note_applies_to_invoice(db_session):
    customer = _customer(db_session)
    invoice = _draft_invoice(db_session, customer)
    sales_services.approve_sales_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1", today=date(2024, 5, 2))
    db_session.commit()

    too_big = sales_services.create_credit_note(
        db_session,
        payload=sales_schemas.CreditNoteCreate(
            sales_invoice_id=invoice.id,
            items=[sales_schemas.LineItemCreate(description="Refund", quantity=1, unit_price=Decimal("2000"))],
        ),
        actor_user_id="fin-1",
    )
    db_session.commit()
    assert too_big.customer_id == customer.id
    with pytest.raises(HTTPException) as exc:
        sales_services.issue_credit_note(db_session, credit_note_id=too_big.id, actor_user_id="fin-1")
    assert exc.value.status_code == 400

    note = sales_services.create_credit_note(
        db_session,
        payload=sales_schemas.CreditNoteCreate(
            sales_invoice_id=invoice.id,
            reason="Diver standby not used",
            items=[
                sales_schemas.LineItemCreate(
                    description="Diver standby",
                    quantity=1,
                    unit_price=Decimal("200"),
                    tax_rate=Decimal("5"),
                )
            ],
        ),
        actor_user_id="fin-1",
    )
    sales_services.issue_credit_note(db_session, credit_note_id=note.id, actor_user_id="fin-1", today=date(2024, 5, 2))
    db_session.commit()

    assert note.status == sales_models.CreditNoteStatus.ISSUED
    assert invoice.paid_amount == Decimal("210.00")
    assert invoice.status == sales_models.SalesInvoiceStatus.PARTIALLY_PAID

    lines = _gl(db_session, ledger_models.GLReferenceType.CREDIT_NOTE, note.id)
    assert lines["Sales Returns"].debit_amount == Decimal("200.00")
    assert lines["VAT Payable"].debit_amount == Decimal("10.00")
    assert lines["Accounts Receivable"].credit_amount == Decimal("210.00")

    [applied] = [p for p in invoice.payments if p.payment_type == sales_models.PaymentType.CREDIT_NOTE]
    assert applied.credit_note_id == note.id

    with pytest.raises(HTTPException) as exc:
        sales_services.cancel_credit_note(db_session, credit_note_id=note.id, actor_user_id="fin-1")
    assert exc.value.status_code == 409


def test_sales_routes_registered():
    paths = {(route.path, method) for route in sales_router.router.routes for method in route.methods}
    assert ("/sales-invoices/{invoice_id}/approve", "POST") in paths
    assert ("/sales-invoices/{invoice_id}/payments", "POST") in paths
    assert ("/proforma-invoices/{proforma_id}/convert-to-invoice", "POST") in paths
    assert ("/credit-notes/{credit_note_id}/issue", "POST") in paths
