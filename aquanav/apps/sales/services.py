# aquanav/apps/sales/services.py

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from aquanav.apps.accounts import services as account_services
from aquanav.apps.audit import schemas as audit_schemas
from aquanav.apps.audit import services as audit_services
from aquanav.apps.ledger import models as ledger_models
from aquanav.apps.ledger import services as ledger_services
from aquanav.apps.parties import services as party_services
from aquanav.apps.projects import models as project_models
from aquanav.apps.projects import services as project_services
from aquanav.utils.documents import apply_totals, compute_totals, money, totals_from_document
from aquanav.utils.identifiers import generate_document_number
from . import models, schemas

logger = logging.getLogger(__name__)

INVOICE_PAYMENT_DAYS = 30

EDITABLE_QUOTATION_STATUSES = (models.QuotationStatus.DRAFT, models.QuotationStatus.SENT)
EDITABLE_PROFORMA_STATUSES = (models.ProformaStatus.DRAFT, models.ProformaStatus.SENT)

PROFORMA_STATUS_MOVES = {
    (models.ProformaStatus.DRAFT, models.ProformaStatus.SENT),
    (models.ProformaStatus.SENT, models.ProformaStatus.APPROVED),
    (models.ProformaStatus.SENT, models.ProformaStatus.REJECTED),
}


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
# Shared helpers
# ---------------------------------------------------------------------------


def _ensure_project(db: Session, project_id: Optional[int]) -> None:
    if project_id is not None and db.get(project_models.Project, project_id) is None:
        raise HTTPException(status_code=404, detail="Project not found")


def _ensure_unique_number(db: Session, column, value: str, label: str) -> None:
    if db.query(column.class_).filter(column == value).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{label} {value} already exists.",
        )


def _current_lines(document) -> List[Dict[str, Any]]:
    return [
        {
            "description": line.description,
            "quantity": line.quantity,
            "unit_price": line.unit_price,
            "tax_rate": line.tax_rate,
        }
        for line in document.items
    ]


def _apply_update(db: Session, document, payload, line_model) -> None:
    """
    Copy plain fields from an update payload; when lines or discount are
    sent, recompute the totals from the resulting lines.
    """
    data = payload.model_dump(exclude_unset=True)
    items = data.pop("items", None)
    discount = data.pop("discount", None)

    if data.get("customer_id") is not None:
        party_services.get_customer(db, data["customer_id"])
    if "project_id" in data:
        _ensure_project(db, data["project_id"])

    for field, value in data.items():
        setattr(document, field, value)

    if items is not None or discount is not None:
        totals = compute_totals(
            payload.items if items is not None else _current_lines(document),
            discount if discount is not None else document.discount,
        )
        apply_totals(document, totals, line_model)
    db.add(document)
    db.flush()


def _customer_name(document) -> Optional[str]:
    return document.customer.name if document.customer is not None else None


# ---------------------------------------------------------------------------
# Quotations
# ---------------------------------------------------------------------------


def list_quotations(
    db: Session,
    *,
    status_filter: Optional[models.QuotationStatus] = None,
    customer_id: Optional[int] = None,
    include_archived: bool = False,
) -> List[models.SalesQuotation]:
    query = db.query(models.SalesQuotation)
    if not include_archived:
        query = query.filter(models.SalesQuotation.is_archived.is_(False))
    if status_filter is not None:
        query = query.filter(models.SalesQuotation.status == status_filter)
    if customer_id is not None:
        query = query.filter(models.SalesQuotation.customer_id == customer_id)
    return query.order_by(models.SalesQuotation.created_at.desc(), models.SalesQuotation.id.desc()).all()


def get_quotation(db: Session, quotation_id: int) -> models.SalesQuotation:
    quotation = db.get(models.SalesQuotation, quotation_id)
    if not quotation:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return quotation


def create_quotation(
    db: Session,
    *,
    payload: schemas.QuotationCreate,
    actor_user_id: Optional[str],
) -> models.SalesQuotation:
    party_services.get_customer(db, payload.customer_id)
    number = payload.quotation_number or generate_document_number("QT")
    _ensure_unique_number(db, models.SalesQuotation.quotation_number, number, "Quotation")

    totals = compute_totals(payload.items, payload.discount)
    quotation = models.SalesQuotation(
        quotation_number=number,
        created_by=actor_user_id,
        **payload.model_dump(exclude={"quotation_number", "items", "discount"}),
    )
    apply_totals(quotation, totals, models.SalesQuotationItem)
    db.add(quotation)
    db.flush()
    _audit_event(
        db,
        entity_type="SalesQuotation",
        entity_id=str(quotation.id),
        action="create",
        actor_user_id=actor_user_id,
        after={"quotation_number": number, "total": str(quotation.total)},
    )
    return quotation


def update_quotation(
    db: Session,
    *,
    quotation_id: int,
    payload: schemas.QuotationUpdate,
) -> models.SalesQuotation:
    quotation = get_quotation(db, quotation_id)
    if quotation.status not in EDITABLE_QUOTATION_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft or sent quotations can be edited.",
        )
    if payload.status in (models.QuotationStatus.APPROVED, models.QuotationStatus.CONVERTED):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Use the approve or convert actions to change this status.",
        )
    _apply_update(db, quotation, payload, models.SalesQuotationItem)
    return quotation


def approve_quotation(db: Session, *, quotation_id: int, actor_user_id: Optional[str]) -> models.SalesQuotation:
    quotation = get_quotation(db, quotation_id)
    if quotation.status not in EDITABLE_QUOTATION_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft or sent quotations can be approved.",
        )
    quotation.status = models.QuotationStatus.APPROVED
    quotation.approved_by = actor_user_id
    db.add(quotation)
    db.flush()
    _audit_event(
        db,
        entity_type="SalesQuotation",
        entity_id=str(quotation.id),
        action="approve",
        actor_user_id=actor_user_id,
        after={"status": quotation.status.value},
    )
    return quotation


def set_quotation_archived(db: Session, *, quotation_id: int, archived: bool) -> models.SalesQuotation:
    quotation = get_quotation(db, quotation_id)
    quotation.is_archived = archived
    db.add(quotation)
    db.flush()
    return quotation


def convert_quotation_to_proforma(
    db: Session,
    *,
    quotation_id: int,
    actor_user_id: Optional[str],
    project_id: Optional[int] = None,
) -> models.ProformaInvoice:
    quotation = get_quotation(db, quotation_id)
    if quotation.status != models.QuotationStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only approved quotations can be converted to proforma invoices",
        )
    _ensure_project(db, project_id)

    proforma = models.ProformaInvoice(
        proforma_number=generate_document_number("PI"),
        customer_id=quotation.customer_id,
        project_id=project_id,
        quotation_id=quotation.id,
        status=models.ProformaStatus.DRAFT,
        invoice_date=date.today(),
        valid_until=quotation.valid_until,
        payment_terms=quotation.payment_terms,
        bank_account=quotation.bank_account,
        billing_address=quotation.billing_address,
        terms_and_conditions=quotation.terms_and_conditions,
        remarks=quotation.remarks,
        created_by=actor_user_id,
    )
    apply_totals(proforma, totals_from_document(quotation), models.ProformaInvoiceItem)
    db.add(proforma)

    quotation.status = models.QuotationStatus.CONVERTED
    db.add(quotation)
    db.flush()
    _audit_event(
        db,
        entity_type="SalesQuotation",
        entity_id=str(quotation.id),
        action="convert",
        actor_user_id=actor_user_id,
        after={"proforma_id": proforma.id, "proforma_number": proforma.proforma_number},
    )
    return proforma


# ---------------------------------------------------------------------------
# Proforma invoices
# ---------------------------------------------------------------------------


def list_proformas(
    db: Session,
    *,
    status_filter: Optional[models.ProformaStatus] = None,
    customer_id: Optional[int] = None,
    project_id: Optional[int] = None,
) -> List[models.ProformaInvoice]:
    query = db.query(models.ProformaInvoice)
    if status_filter is not None:
        query = query.filter(models.ProformaInvoice.status == status_filter)
    if customer_id is not None:
        query = query.filter(models.ProformaInvoice.customer_id == customer_id)
    if project_id is not None:
        query = query.filter(models.ProformaInvoice.project_id == project_id)
    return query.order_by(models.ProformaInvoice.created_at.desc(), models.ProformaInvoice.id.desc()).all()


def get_proforma(db: Session, proforma_id: int) -> models.ProformaInvoice:
    proforma = db.get(models.ProformaInvoice, proforma_id)
    if not proforma:
        raise HTTPException(status_code=404, detail="Proforma invoice not found")
    return proforma


def create_proforma(
    db: Session,
    *,
    payload: schemas.ProformaCreate,
    actor_user_id: Optional[str],
) -> models.ProformaInvoice:
    party_services.get_customer(db, payload.customer_id)
    _ensure_project(db, payload.project_id)
    number = payload.proforma_number or generate_document_number("PI")
    _ensure_unique_number(db, models.ProformaInvoice.proforma_number, number, "Proforma invoice")

    totals = compute_totals(payload.items, payload.discount)
    data = payload.model_dump(exclude={"proforma_number", "items", "discount"})
    data["invoice_date"] = data.get("invoice_date") or date.today()
    proforma = models.ProformaInvoice(proforma_number=number, created_by=actor_user_id, **data)
    apply_totals(proforma, totals, models.ProformaInvoiceItem)
    db.add(proforma)
    db.flush()
    return proforma


def update_proforma(
    db: Session,
    *,
    proforma_id: int,
    payload: schemas.ProformaUpdate,
) -> models.ProformaInvoice:
    proforma = get_proforma(db, proforma_id)
    if proforma.status not in EDITABLE_PROFORMA_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft or sent proforma invoices can be edited.",
        )
    _apply_update(db, proforma, payload, models.ProformaInvoiceItem)
    return proforma


def update_proforma_status(
    db: Session,
    *,
    proforma_id: int,
    new_status: models.ProformaStatus,
    actor_user_id: Optional[str],
) -> models.ProformaInvoice:
    proforma = get_proforma(db, proforma_id)
    if proforma.status == new_status:
        return proforma

    allowed = (proforma.status, new_status) in PROFORMA_STATUS_MOVES or (
        new_status == models.ProformaStatus.EXPIRED
        and proforma.status != models.ProformaStatus.CONVERTED
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move proforma invoice from {proforma.status.value} to {new_status.value}.",
        )
    previous = proforma.status
    proforma.status = new_status
    db.add(proforma)
    db.flush()
    _audit_event(
        db,
        entity_type="ProformaInvoice",
        entity_id=str(proforma.id),
        action="status_change",
        actor_user_id=actor_user_id,
        after={"from": previous.value, "to": new_status.value},
    )
    return proforma


def delete_proforma(db: Session, *, proforma_id: int) -> None:
    proforma = get_proforma(db, proforma_id)
    if proforma.status != models.ProformaStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft proforma invoices can be deleted.",
        )
    db.delete(proforma)
    db.flush()


def convert_proforma_to_invoice(
    db: Session,
    *,
    proforma_id: int,
    actor_user_id: Optional[str],
) -> Dict[str, Any]:
    proforma = get_proforma(db, proforma_id)
    if proforma.status != models.ProformaStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only approved proforma invoices can be converted to sales invoices",
        )

    today = date.today()
    invoice = models.SalesInvoice(
        invoice_number=generate_document_number("SI"),
        customer_id=proforma.customer_id,
        project_id=proforma.project_id,
        quotation_id=proforma.quotation_id,
        proforma_id=proforma.id,
        status=models.SalesInvoiceStatus.DRAFT,
        invoice_date=today,
        due_date=today + timedelta(days=INVOICE_PAYMENT_DAYS),
        paid_amount=Decimal("0.00"),
        payment_terms=proforma.payment_terms,
        bank_account=proforma.bank_account,
        billing_address=proforma.billing_address,
        terms_and_conditions=proforma.terms_and_conditions,
        remarks=proforma.remarks,
        created_by=actor_user_id,
    )
    apply_totals(invoice, totals_from_document(proforma), models.SalesInvoiceItem)
    db.add(invoice)

    proforma.status = models.ProformaStatus.CONVERTED
    db.add(proforma)
    db.flush()
    _audit_event(
        db,
        entity_type="ProformaInvoice",
        entity_id=str(proforma.id),
        action="convert",
        actor_user_id=actor_user_id,
        after={"sales_invoice_id": invoice.id, "invoice_number": invoice.invoice_number},
    )
    return {
        "message": "Proforma invoice converted to sales invoice successfully",
        "sales_invoice": invoice,
        "proforma_invoice": proforma,
    }


# ---------------------------------------------------------------------------
# Sales invoices
# ---------------------------------------------------------------------------


def list_invoices(
    db: Session,
    *,
    status_filter: Optional[models.SalesInvoiceStatus] = None,
    customer_id: Optional[int] = None,
    project_id: Optional[int] = None,
) -> List[models.SalesInvoice]:
    query = db.query(models.SalesInvoice)
    if status_filter is not None:
        query = query.filter(models.SalesInvoice.status == status_filter)
    if customer_id is not None:
        query = query.filter(models.SalesInvoice.customer_id == customer_id)
    if project_id is not None:
        query = query.filter(models.SalesInvoice.project_id == project_id)
    return query.order_by(models.SalesInvoice.invoice_date.desc(), models.SalesInvoice.id.desc()).all()


def get_invoice(db: Session, invoice_id: int) -> models.SalesInvoice:
    invoice = db.get(models.SalesInvoice, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    return invoice


def create_invoice(
    db: Session,
    *,
    payload: schemas.SalesInvoiceCreate,
    actor_user_id: Optional[str],
) -> models.SalesInvoice:
    """New invoices are always drafts; the number is given on approval."""
    party_services.get_customer(db, payload.customer_id)
    _ensure_project(db, payload.project_id)
    if payload.due_date < payload.invoice_date:
        raise HTTPException(status_code=400, detail="Due date cannot be before the invoice date.")

    totals = compute_totals(payload.items, payload.discount)
    invoice = models.SalesInvoice(
        status=models.SalesInvoiceStatus.DRAFT,
        paid_amount=Decimal("0.00"),
        created_by=actor_user_id,
        **payload.model_dump(exclude={"items", "discount"}),
    )
    apply_totals(invoice, totals, models.SalesInvoiceItem)
    db.add(invoice)
    db.flush()
    _audit_event(
        db,
        entity_type="SalesInvoice",
        entity_id=str(invoice.id),
        action="create",
        actor_user_id=actor_user_id,
        after={"total": str(invoice.total), "customer_id": invoice.customer_id},
    )
    return invoice


def update_invoice(
    db: Session,
    *,
    invoice_id: int,
    payload: schemas.SalesInvoiceUpdate,
) -> models.SalesInvoice:
    invoice = get_invoice(db, invoice_id)
    if invoice.status != models.SalesInvoiceStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft invoices can be edited.",
        )
    _apply_update(db, invoice, payload, models.SalesInvoiceItem)
    if invoice.due_date < invoice.invoice_date:
        raise HTTPException(status_code=400, detail="Due date cannot be before the invoice date.")
    return invoice


def outstanding_balance(invoice) -> Decimal:
    return money(invoice.total) - money(invoice.paid_amount)


def refresh_invoice_status(invoice: models.SalesInvoice, *, today: Optional[date] = None) -> models.SalesInvoice:
    """Derive the payment status of an approved invoice from what has been paid."""
    if invoice.status == models.SalesInvoiceStatus.DRAFT:
        return invoice
    today = today or date.today()
    paid = money(invoice.paid_amount)
    if paid >= money(invoice.total):
        invoice.status = models.SalesInvoiceStatus.PAID
    elif paid > 0:
        invoice.status = models.SalesInvoiceStatus.PARTIALLY_PAID
    elif invoice.due_date and invoice.due_date < today:
        invoice.status = models.SalesInvoiceStatus.OVERDUE
    else:
        invoice.status = models.SalesInvoiceStatus.UNPAID
    return invoice


def approve_sales_invoice(
    db: Session,
    *,
    invoice_id: int,
    actor_user_id: Optional[str],
    today: Optional[date] = None,
) -> models.SalesInvoice:
    """
    Number the invoice if needed and post the receivable:
    Dr Accounts Receivable / Cr Sales Revenue / Cr VAT Payable.
    """
    invoice = get_invoice(db, invoice_id)
    if invoice.status != models.SalesInvoiceStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only draft invoices can be approved",
        )

    if not invoice.invoice_number:
        invoice.invoice_number = generate_document_number("INV")
    invoice.status = models.SalesInvoiceStatus.UNPAID
    invoice.approved_by = actor_user_id
    invoice.approved_at = datetime.utcnow()
    db.add(invoice)
    db.flush()

    total = money(invoice.total)
    tax = money(invoice.tax_amount)
    ledger_services.post_entries(
        db,
        lines=[
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, debit=total),
            ledger_services.line(ledger_services.SALES_REVENUE, credit=total - tax),
            ledger_services.line(ledger_services.VAT_PAYABLE, credit=tax),
        ],
        entry_type=ledger_models.GLEntryType.RECEIVABLE,
        reference_type=ledger_models.GLReferenceType.SALES_INVOICE,
        reference_id=invoice.id,
        description=f"Sales invoice {invoice.invoice_number}",
        transaction_date=invoice.invoice_date,
        due_date=invoice.due_date,
        entity_id=invoice.customer_id,
        entity_name=_customer_name(invoice),
        project_id=invoice.project_id,
        invoice_number=invoice.invoice_number,
        actor_user_id=actor_user_id,
        status_value=ledger_models.GLStatus.PENDING,
    )

    refresh_invoice_status(invoice, today=today)
    db.add(invoice)
    db.flush()
    project_services.recalculate_for_project_id(db, invoice.project_id)

    _audit_event(
        db,
        entity_type="SalesInvoice",
        entity_id=str(invoice.id),
        action="approve",
        actor_user_id=actor_user_id,
        after={"invoice_number": invoice.invoice_number, "status": invoice.status.value},
    )
    logger.info(
        "Sales invoice approved",
        extra={"invoice_id": invoice.id, "invoice_number": invoice.invoice_number},
    )
    return invoice


def list_invoice_payments(db: Session, *, invoice_id: int) -> List[models.InvoicePayment]:
    get_invoice(db, invoice_id)
    return (
        db.query(models.InvoicePayment)
        .filter(models.InvoicePayment.invoice_id == invoice_id)
        .order_by(models.InvoicePayment.payment_date.asc(), models.InvoicePayment.id.asc())
        .all()
    )


def record_invoice_payment(
    db: Session,
    *,
    invoice_id: int,
    payload: schemas.InvoicePaymentCreate,
    actor_user_id: Optional[str],
    idempotency_key: Optional[str] = None,
    today: Optional[date] = None,
) -> models.InvoicePayment:
    """
    Apply a customer payment: Dr Cash/Bank / Cr Accounts Receivable.

    A retried request with the same Idempotency-Key returns the payment
    recorded the first time.
    """
    if idempotency_key:
        try:
            _, created = account_services.register_idempotency_key(
                db,
                scope="sales-invoice-payment",
                key=idempotency_key,
                payload={"invoice_id": invoice_id, **payload.model_dump(mode="json")},
            )
        except account_services.IdempotencyError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        if not created:
            existing = (
                db.query(models.InvoicePayment)
                .filter(models.InvoicePayment.idempotency_key == idempotency_key)
                .first()
            )
            if existing:
                return existing

    invoice = (
        db.query(models.SalesInvoice)
        .filter(models.SalesInvoice.id == invoice_id)
        .with_for_update()
        .first()
    )
    if not invoice:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    if invoice.status == models.SalesInvoiceStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invoice must be approved before recording payments",
        )

    amount = money(payload.amount)
    outstanding = outstanding_balance(invoice)
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Payment amount must be greater than zero")
    if amount > outstanding:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Payment amount exceeds outstanding balance of {outstanding}",
        )

    payment = models.InvoicePayment(
        invoice_id=invoice.id,
        amount=amount,
        payment_date=payload.payment_date or date.today(),
        payment_method=payload.payment_method,
        reference_number=payload.reference_number,
        notes=payload.notes,
        payment_type=models.PaymentType.PAYMENT,
        idempotency_key=idempotency_key,
        recorded_by=actor_user_id,
    )
    db.add(payment)
    invoice.paid_amount = money(invoice.paid_amount) + amount
    refresh_invoice_status(invoice, today=today)
    db.add(invoice)
    db.flush()

    ledger_services.post_entries(
        db,
        lines=[
            ledger_services.line(ledger_services.CASH_BANK, debit=amount),
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, credit=amount),
        ],
        entry_type=ledger_models.GLEntryType.RECEIVABLE,
        reference_type=ledger_models.GLReferenceType.INVOICE_PAYMENT,
        reference_id=payment.id,
        description=f"Payment received for invoice {invoice.invoice_number}",
        transaction_date=payment.payment_date,
        entity_id=invoice.customer_id,
        entity_name=_customer_name(invoice),
        project_id=invoice.project_id,
        invoice_number=invoice.invoice_number,
        actor_user_id=actor_user_id,
    )
    _audit_event(
        db,
        entity_type="SalesInvoice",
        entity_id=str(invoice.id),
        action="payment",
        actor_user_id=actor_user_id,
        after={"amount": str(amount), "paid_amount": str(invoice.paid_amount), "status": invoice.status.value},
    )
    return payment


# ---------------------------------------------------------------------------
# Credit notes
# ---------------------------------------------------------------------------


def list_credit_notes(
    db: Session,
    *,
    status_filter: Optional[models.CreditNoteStatus] = None,
    customer_id: Optional[int] = None,
    sales_invoice_id: Optional[int] = None,
) -> List[models.CreditNote]:
    query = db.query(models.CreditNote)
    if status_filter is not None:
        query = query.filter(models.CreditNote.status == status_filter)
    if customer_id is not None:
        query = query.filter(models.CreditNote.customer_id == customer_id)
    if sales_invoice_id is not None:
        query = query.filter(models.CreditNote.sales_invoice_id == sales_invoice_id)
    return query.order_by(models.CreditNote.credit_note_date.desc(), models.CreditNote.id.desc()).all()


def get_credit_note(db: Session, credit_note_id: int) -> models.CreditNote:
    note = db.get(models.CreditNote, credit_note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Credit note not found")
    return note


def _ensure_draft_credit_note(note: models.CreditNote, action: str) -> None:
    if note.status != models.CreditNoteStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only draft credit notes can be {action}.",
        )


def create_credit_note(
    db: Session,
    *,
    payload: schemas.CreditNoteCreate,
    actor_user_id: Optional[str],
) -> models.CreditNote:
    customer_id = payload.customer_id
    if payload.sales_invoice_id is not None:
        invoice = get_invoice(db, payload.sales_invoice_id)
        customer_id = customer_id or invoice.customer_id
    if customer_id is None:
        raise HTTPException(status_code=400, detail="A customer or sales invoice is required.")
    party_services.get_customer(db, customer_id)

    number = payload.credit_note_number or generate_document_number("CN")
    _ensure_unique_number(db, models.CreditNote.credit_note_number, number, "Credit note")

    totals = compute_totals(payload.items, payload.discount)
    note = models.CreditNote(
        credit_note_number=number,
        sales_invoice_id=payload.sales_invoice_id,
        customer_id=customer_id,
        status=models.CreditNoteStatus.DRAFT,
        credit_note_date=payload.credit_note_date or date.today(),
        reason=payload.reason,
        created_by=actor_user_id,
    )
    apply_totals(note, totals, models.CreditNoteItem)
    db.add(note)
    db.flush()
    return note


def update_credit_note(
    db: Session,
    *,
    credit_note_id: int,
    payload: schemas.CreditNoteUpdate,
) -> models.CreditNote:
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "edited")
    _apply_update(db, note, payload, models.CreditNoteItem)
    return note


def delete_credit_note(db: Session, *, credit_note_id: int) -> None:
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "deleted")
    db.delete(note)
    db.flush()


def issue_credit_note(
    db: Session,
    *,
    credit_note_id: int,
    actor_user_id: Optional[str],
    today: Optional[date] = None,
) -> models.CreditNote:
    """
    Post the credit: Dr Sales Returns / Dr VAT Payable / Cr Accounts
    Receivable. When linked to an invoice it is applied as a payment of
    type credit_note.
    """
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "issued")

    total = money(note.total)
    tax = money(note.tax_amount)
    invoice = note.invoice
    if invoice is not None:
        if invoice.status == models.SalesInvoiceStatus.DRAFT:
            raise HTTPException(status_code=400, detail="Cannot credit a draft invoice.")
        if total > outstanding_balance(invoice):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Credit note total exceeds the invoice outstanding balance",
            )

    ledger_services.post_entries(
        db,
        lines=[
            ledger_services.line(ledger_services.SALES_RETURNS, debit=total - tax),
            ledger_services.line(ledger_services.VAT_PAYABLE, debit=tax),
            ledger_services.line(ledger_services.ACCOUNTS_RECEIVABLE, credit=total),
        ],
        entry_type=ledger_models.GLEntryType.RECEIVABLE,
        reference_type=ledger_models.GLReferenceType.CREDIT_NOTE,
        reference_id=note.id,
        description=f"Credit note {note.credit_note_number}",
        transaction_date=note.credit_note_date,
        entity_id=note.customer_id,
        entity_name=_customer_name(note),
        project_id=invoice.project_id if invoice is not None else None,
        invoice_number=invoice.invoice_number if invoice is not None else None,
        actor_user_id=actor_user_id,
    )

    if invoice is not None:
        db.add(
            models.InvoicePayment(
                invoice_id=invoice.id,
                amount=total,
                payment_date=note.credit_note_date,
                reference_number=note.credit_note_number,
                notes=note.reason,
                payment_type=models.PaymentType.CREDIT_NOTE,
                credit_note_id=note.id,
                recorded_by=actor_user_id,
            )
        )
        invoice.paid_amount = money(invoice.paid_amount) + total
        refresh_invoice_status(invoice, today=today)
        db.add(invoice)

    note.status = models.CreditNoteStatus.ISSUED
    note.issued_at = datetime.utcnow()
    db.add(note)
    db.flush()
    _audit_event(
        db,
        entity_type="CreditNote",
        entity_id=str(note.id),
        action="issue",
        actor_user_id=actor_user_id,
        after={"total": str(total), "sales_invoice_id": note.sales_invoice_id},
    )
    return note


def cancel_credit_note(db: Session, *, credit_note_id: int, actor_user_id: Optional[str]) -> models.CreditNote:
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "cancelled")
    note.status = models.CreditNoteStatus.CANCELLED
    db.add(note)
    db.flush()
    _audit_event(
        db,
        entity_type="CreditNote",
        entity_id=str(note.id),
        action="cancel",
        actor_user_id=actor_user_id,
        after={"status": note.status.value},
    )
    return note
