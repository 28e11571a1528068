# aquanav/apps/purchasing/services.py

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from aquanav.apps.accounts import services as account_services
from aquanav.apps.assets import models as asset_models
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

SUPPLIER_PAYMENT_DAYS = 30
PURCHASE_LINE_EXTRAS = ("item_type", "inventory_item_id")

EDITABLE_ORDER_STATUSES = (models.PurchaseOrderStatus.DRAFT, models.PurchaseOrderStatus.SENT)


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


def _ensure_unique_number(db: Session, column, value: str, label: str, *, exclude_id: Optional[int] = None) -> None:
    model = column.class_
    query = db.query(model).filter(column == value)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{label} {value} already exists.",
        )


def _ensure_links(db: Session, *, project_id: Optional[int], asset_instance_id: Optional[int]) -> None:
    if project_id is not None and db.get(project_models.Project, project_id) is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if asset_instance_id is not None and db.get(asset_models.AssetInstance, asset_instance_id) is None:
        raise HTTPException(status_code=404, detail="Asset not found")


def _current_lines(document) -> List[Dict[str, Any]]:
    return [
        {
            "item_type": line.item_type,
            "inventory_item_id": line.inventory_item_id,
            "description": line.description,
            "quantity": line.quantity,
            "unit_price": line.unit_price,
            "tax_rate": line.tax_rate,
        }
        for line in document.items
    ]


def _apply_update(db: Session, document, payload, line_model) -> None:
    data = payload.model_dump(exclude_unset=True)
    items = data.pop("items", None)
    discount = data.pop("discount", None)

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


def _supplier_name(document) -> Optional[str]:
    return document.supplier.name if document.supplier is not None else None


# ---------------------------------------------------------------------------
# Purchase requests
# ---------------------------------------------------------------------------


def list_requests(
    db: Session,
    *,
    status_filter: Optional[models.PurchaseRequestStatus] = None,
) -> List[models.PurchaseRequest]:
    query = db.query(models.PurchaseRequest)
    if status_filter is not None:
        query = query.filter(models.PurchaseRequest.status == status_filter)
    return query.order_by(models.PurchaseRequest.created_at.desc(), models.PurchaseRequest.id.desc()).all()


def get_request(db: Session, request_id: int) -> models.PurchaseRequest:
    request = db.get(models.PurchaseRequest, request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Purchase request not found")
    return request


def create_request(
    db: Session,
    *,
    payload: schemas.PurchaseRequestCreate,
    actor_user_id: Optional[str],
) -> models.PurchaseRequest:
    if not payload.items:
        raise HTTPException(status_code=400, detail="At least one item is required")
    number = payload.request_number or generate_document_number("PR")
    _ensure_unique_number(db, models.PurchaseRequest.request_number, number, "Purchase request")

    request = models.PurchaseRequest(
        request_number=number,
        request_date=payload.request_date or date.today(),
        status=models.PurchaseRequestStatus.PENDING,
        urgency=payload.urgency,
        reason=payload.reason,
        notes=payload.notes,
        requested_by=actor_user_id,
        items=[models.PurchaseRequestItem(**item.model_dump()) for item in payload.items],
    )
    db.add(request)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseRequest",
        entity_id=str(request.id),
        action="create",
        actor_user_id=actor_user_id,
        after={"request_number": number, "items": len(request.items)},
    )
    return request


def _decide_request(
    db: Session,
    *,
    request_id: int,
    new_status: models.PurchaseRequestStatus,
    actor_user_id: Optional[str],
) -> models.PurchaseRequest:
    request = get_request(db, request_id)
    if request.status != models.PurchaseRequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Purchase request is already {request.status.value}.",
        )
    request.status = new_status
    request.approved_by = actor_user_id
    request.approval_date = datetime.utcnow()
    db.add(request)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseRequest",
        entity_id=str(request.id),
        action=new_status.value,
        actor_user_id=actor_user_id,
        after={"status": new_status.value},
    )
    return request


def approve_request(db: Session, *, request_id: int, actor_user_id: Optional[str]) -> models.PurchaseRequest:
    return _decide_request(
        db,
        request_id=request_id,
        new_status=models.PurchaseRequestStatus.APPROVED,
        actor_user_id=actor_user_id,
    )


def reject_request(db: Session, *, request_id: int, actor_user_id: Optional[str]) -> models.PurchaseRequest:
    return _decide_request(
        db,
        request_id=request_id,
        new_status=models.PurchaseRequestStatus.REJECTED,
        actor_user_id=actor_user_id,
    )


def delete_request(db: Session, *, request_id: int) -> None:
    request = get_request(db, request_id)
    if request.status != models.PurchaseRequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only pending purchase requests can be deleted.",
        )
    db.delete(request)
    db.flush()


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


def list_orders(
    db: Session,
    *,
    status_filter: Optional[models.PurchaseOrderStatus] = None,
    supplier_id: Optional[int] = None,
) -> List[models.PurchaseOrder]:
    query = db.query(models.PurchaseOrder)
    if status_filter is not None:
        query = query.filter(models.PurchaseOrder.status == status_filter)
    if supplier_id is not None:
        query = query.filter(models.PurchaseOrder.supplier_id == supplier_id)
    return query.order_by(models.PurchaseOrder.order_date.desc(), models.PurchaseOrder.id.desc()).all()


def get_order(db: Session, order_id: int) -> models.PurchaseOrder:
    order = db.get(models.PurchaseOrder, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return order


def create_order(
    db: Session,
    *,
    payload: schemas.PurchaseOrderCreate,
    actor_user_id: Optional[str],
) -> models.PurchaseOrder:
    party_services.get_supplier(db, payload.supplier_id)
    number = payload.po_number or generate_document_number("PO")
    _ensure_unique_number(db, models.PurchaseOrder.po_number, number, "Purchase order")

    totals = compute_totals(payload.items, payload.discount)
    data = payload.model_dump(exclude={"po_number", "items", "discount"})
    data["order_date"] = data.get("order_date") or date.today()
    order = models.PurchaseOrder(
        po_number=number,
        status=models.PurchaseOrderStatus.DRAFT,
        created_by=actor_user_id,
        **data,
    )
    apply_totals(order, totals, models.PurchaseOrderItem)
    db.add(order)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseOrder",
        entity_id=str(order.id),
        action="create",
        actor_user_id=actor_user_id,
        after={"po_number": number, "total": str(order.total)},
    )
    return order


def update_order(
    db: Session,
    *,
    order_id: int,
    payload: schemas.PurchaseOrderUpdate,
) -> models.PurchaseOrder:
    order = get_order(db, order_id)
    if order.status not in EDITABLE_ORDER_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft or sent purchase orders can be edited.",
        )
    _apply_update(db, order, payload, models.PurchaseOrderItem)
    return order


def delete_order(db: Session, *, order_id: int) -> None:
    order = get_order(db, order_id)
    if order.status != models.PurchaseOrderStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft purchase orders can be deleted.",
        )
    db.delete(order)
    db.flush()


def create_purchase_order_from_request(
    db: Session,
    *,
    request_id: int,
    payload: schemas.OrderFromRequest,
    actor_user_id: Optional[str],
) -> models.PurchaseOrder:
    """
    Build a draft order from an approved request. Lines without a price
    on the request are carried at zero for the buyer to fill in.
    """
    request = get_request(db, request_id)
    if request.status != models.PurchaseRequestStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only approved purchase requests can be converted to purchase orders",
        )
    party_services.get_supplier(db, payload.supplier_id)

    totals = compute_totals(
        [
            {
                "item_type": item.item_type,
                "inventory_item_id": item.inventory_item_id,
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": item.unit_price or 0,
                "tax_rate": 0,
            }
            for item in request.items
        ]
    )
    order = models.PurchaseOrder(
        po_number=generate_document_number("PO"),
        supplier_id=payload.supplier_id,
        request_id=request.id,
        status=models.PurchaseOrderStatus.DRAFT,
        order_date=payload.order_date or date.today(),
        expected_delivery_date=payload.expected_delivery_date,
        notes=request.notes,
        created_by=actor_user_id,
    )
    apply_totals(order, totals, models.PurchaseOrderItem)
    db.add(order)

    request.status = models.PurchaseRequestStatus.COMPLETED
    db.add(request)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseRequest",
        entity_id=str(request.id),
        action="convert",
        actor_user_id=actor_user_id,
        after={"purchase_order_id": order.id, "po_number": order.po_number},
    )
    return order


def convert_purchase_order_to_invoice(
    db: Session,
    *,
    order_id: int,
    payload: schemas.ConvertOrderToInvoice,
    actor_user_id: Optional[str],
) -> models.PurchaseInvoice:
    order = get_order(db, order_id)
    if order.status == models.PurchaseOrderStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cancelled purchase orders cannot be invoiced.",
        )
    already_invoiced = (
        db.query(models.PurchaseInvoice.id)
        .filter(models.PurchaseInvoice.po_id == order.id)
        .first()
    )
    if already_invoiced:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Purchase order has already been invoiced.",
        )
    _ensure_unique_number(db, models.PurchaseInvoice.invoice_number, payload.invoice_number, "Purchase invoice")
    _ensure_links(db, project_id=payload.project_id, asset_instance_id=None)

    invoice_date = payload.invoice_date or date.today()
    invoice = models.PurchaseInvoice(
        invoice_number=payload.invoice_number,
        supplier_id=order.supplier_id,
        po_id=order.id,
        project_id=payload.project_id,
        status=models.PurchaseInvoiceStatus.PENDING,
        approval_status=models.ApprovalStatus.PENDING,
        invoice_date=invoice_date,
        due_date=payload.due_date or invoice_date + timedelta(days=SUPPLIER_PAYMENT_DAYS),
        paid_amount=Decimal("0.00"),
        notes=order.notes,
        created_by=actor_user_id,
    )
    apply_totals(invoice, totals_from_document(order, PURCHASE_LINE_EXTRAS), models.PurchaseInvoiceItem)
    db.add(invoice)

    order.status = models.PurchaseOrderStatus.RECEIVED
    db.add(order)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseOrder",
        entity_id=str(order.id),
        action="convert",
        actor_user_id=actor_user_id,
        after={"purchase_invoice_id": invoice.id, "invoice_number": invoice.invoice_number},
    )
    return invoice


# ---------------------------------------------------------------------------
# Purchase invoices
# ---------------------------------------------------------------------------


def list_invoices(
    db: Session,
    *,
    status_filter: Optional[models.PurchaseInvoiceStatus] = None,
    approval_status: Optional[models.ApprovalStatus] = None,
    supplier_id: Optional[int] = None,
    project_id: Optional[int] = None,
) -> List[models.PurchaseInvoice]:
    query = db.query(models.PurchaseInvoice)
    if status_filter is not None:
        query = query.filter(models.PurchaseInvoice.status == status_filter)
    if approval_status is not None:
        query = query.filter(models.PurchaseInvoice.approval_status == approval_status)
    if supplier_id is not None:
        query = query.filter(models.PurchaseInvoice.supplier_id == supplier_id)
    if project_id is not None:
        query = query.filter(models.PurchaseInvoice.project_id == project_id)
    return query.order_by(models.PurchaseInvoice.invoice_date.desc(), models.PurchaseInvoice.id.desc()).all()


def get_invoice(db: Session, invoice_id: int) -> models.PurchaseInvoice:
    invoice = db.get(models.PurchaseInvoice, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Purchase invoice not found")
    return invoice


def create_invoice(
    db: Session,
    *,
    payload: schemas.PurchaseInvoiceCreate,
    actor_user_id: Optional[str],
) -> models.PurchaseInvoice:
    party_services.get_supplier(db, payload.supplier_id)
    _ensure_links(db, project_id=payload.project_id, asset_instance_id=payload.asset_instance_id)
    if payload.po_id is not None:
        get_order(db, payload.po_id)
    if payload.due_date < payload.invoice_date:
        raise HTTPException(status_code=400, detail="Due date cannot be before the invoice date.")
    _ensure_unique_number(db, models.PurchaseInvoice.invoice_number, payload.invoice_number, "Purchase invoice")

    totals = compute_totals(payload.items, payload.discount)
    invoice = models.PurchaseInvoice(
        status=models.PurchaseInvoiceStatus.PENDING,
        approval_status=models.ApprovalStatus.PENDING,
        paid_amount=Decimal("0.00"),
        created_by=actor_user_id,
        **payload.model_dump(exclude={"items", "discount"}),
    )
    apply_totals(invoice, totals, models.PurchaseInvoiceItem)
    db.add(invoice)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseInvoice",
        entity_id=str(invoice.id),
        action="create",
        actor_user_id=actor_user_id,
        after={"invoice_number": invoice.invoice_number, "total": str(invoice.total)},
    )
    return invoice


def update_invoice(
    db: Session,
    *,
    invoice_id: int,
    payload: schemas.PurchaseInvoiceUpdate,
) -> models.PurchaseInvoice:
    """Only invoices still awaiting approval can change; approved ones are in the ledger."""
    invoice = get_invoice(db, invoice_id)
    if invoice.approval_status != models.ApprovalStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only purchase invoices pending approval can be edited.",
        )
    data = payload.model_dump(exclude_unset=True)
    if data.get("invoice_number"):
        _ensure_unique_number(
            db,
            models.PurchaseInvoice.invoice_number,
            data["invoice_number"],
            "Purchase invoice",
            exclude_id=invoice.id,
        )
    _ensure_links(db, project_id=data.get("project_id"), asset_instance_id=data.get("asset_instance_id"))
    _apply_update(db, invoice, payload, models.PurchaseInvoiceItem)
    if invoice.due_date < invoice.invoice_date:
        raise HTTPException(status_code=400, detail="Due date cannot be before the invoice date.")
    return invoice


def outstanding_balance(invoice: models.PurchaseInvoice) -> Decimal:
    return money(invoice.total) - money(invoice.paid_amount)


def refresh_invoice_status(
    invoice: models.PurchaseInvoice,
    *,
    today: Optional[date] = None,
) -> models.PurchaseInvoice:
    today = today or date.today()
    paid = money(invoice.paid_amount)
    if paid >= money(invoice.total):
        invoice.status = models.PurchaseInvoiceStatus.PAID
    elif paid > 0:
        invoice.status = models.PurchaseInvoiceStatus.PARTIALLY_PAID
    elif invoice.due_date and invoice.due_date < today:
        invoice.status = models.PurchaseInvoiceStatus.OVERDUE
    else:
        invoice.status = models.PurchaseInvoiceStatus.PENDING
    return invoice


def approve_purchase_invoice(
    db: Session,
    *,
    invoice_id: int,
    actor_user_id: Optional[str],
) -> models.PurchaseInvoice:
    """
    Record the payable:
    Dr Purchases / Dr VAT Receivable / Cr Accounts Payable.
    """
    invoice = get_invoice(db, invoice_id)
    if invoice.approval_status != models.ApprovalStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Purchase invoice is already {invoice.approval_status.value}",
        )

    invoice.approval_status = models.ApprovalStatus.APPROVED
    invoice.approved_by = actor_user_id
    invoice.approved_at = datetime.utcnow()
    db.add(invoice)
    db.flush()

    total = money(invoice.total)
    tax = money(invoice.tax_amount)
    ledger_services.post_entries(
        db,
        lines=[
            ledger_services.line(ledger_services.PURCHASES, debit=total - tax),
            ledger_services.line(ledger_services.VAT_RECEIVABLE, debit=tax),
            ledger_services.line(ledger_services.ACCOUNTS_PAYABLE, credit=total),
        ],
        entry_type=ledger_models.GLEntryType.PAYABLE,
        reference_type=ledger_models.GLReferenceType.PURCHASE_INVOICE,
        reference_id=invoice.id,
        description=f"Purchase invoice {invoice.invoice_number}",
        transaction_date=invoice.invoice_date,
        due_date=invoice.due_date,
        entity_id=invoice.supplier_id,
        entity_name=_supplier_name(invoice),
        project_id=invoice.project_id,
        invoice_number=invoice.invoice_number,
        actor_user_id=actor_user_id,
        status_value=ledger_models.GLStatus.PENDING,
    )
    project_services.recalculate_for_project_id(db, invoice.project_id)

    _audit_event(
        db,
        entity_type="PurchaseInvoice",
        entity_id=str(invoice.id),
        action="approve",
        actor_user_id=actor_user_id,
        after={"approval_status": invoice.approval_status.value, "total": str(total)},
    )
    logger.info(
        "Purchase invoice approved",
        extra={"invoice_id": invoice.id, "invoice_number": invoice.invoice_number},
    )
    return invoice


def reject_purchase_invoice(
    db: Session,
    *,
    invoice_id: int,
    actor_user_id: Optional[str],
) -> models.PurchaseInvoice:
    invoice = get_invoice(db, invoice_id)
    if invoice.approval_status != models.ApprovalStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Purchase invoice is already {invoice.approval_status.value}",
        )
    invoice.approval_status = models.ApprovalStatus.REJECTED
    invoice.approved_by = actor_user_id
    invoice.approved_at = datetime.utcnow()
    db.add(invoice)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseInvoice",
        entity_id=str(invoice.id),
        action="reject",
        actor_user_id=actor_user_id,
        after={"approval_status": invoice.approval_status.value},
    )
    return invoice


def list_purchase_payments(db: Session, *, invoice_id: int) -> List[models.PurchaseInvoicePayment]:
    get_invoice(db, invoice_id)
    return (
        db.query(models.PurchaseInvoicePayment)
        .filter(models.PurchaseInvoicePayment.invoice_id == invoice_id)
        .order_by(models.PurchaseInvoicePayment.payment_date.asc(), models.PurchaseInvoicePayment.id.asc())
        .all()
    )


def record_purchase_payment(
    db: Session,
    *,
    invoice_id: int,
    payload: schemas.PurchasePaymentCreate,
    actor_user_id: Optional[str],
    idempotency_key: Optional[str] = None,
    today: Optional[date] = None,
) -> models.PurchaseInvoicePayment:
    """Pay a supplier: Dr Accounts Payable / Cr Cash/Bank."""
    if idempotency_key:
        try:
            _, created = account_services.register_idempotency_key(
                db,
                scope="purchase-invoice-payment",
                key=idempotency_key,
                payload={"invoice_id": invoice_id, **payload.model_dump(mode="json")},
            )
        except account_services.IdempotencyError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        if not created:
            existing = (
                db.query(models.PurchaseInvoicePayment)
                .filter(models.PurchaseInvoicePayment.idempotency_key == idempotency_key)
                .first()
            )
            if existing:
                return existing

    invoice = (
        db.query(models.PurchaseInvoice)
        .filter(models.PurchaseInvoice.id == invoice_id)
        .with_for_update()
        .first()
    )
    if not invoice:
        raise HTTPException(status_code=404, detail="Purchase invoice not found")
    if invoice.approval_status != models.ApprovalStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Purchase invoice must be approved before recording payments",
        )

    amount = money(payload.amount)
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Payment amount must be greater than zero")
    outstanding = outstanding_balance(invoice)
    if amount > outstanding:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Payment amount exceeds outstanding balance of {outstanding}",
        )

    payment = models.PurchaseInvoicePayment(
        invoice_id=invoice.id,
        amount=amount,
        payment_date=payload.payment_date or date.today(),
        payment_method=payload.payment_method,
        reference_number=payload.reference_number,
        notes=payload.notes,
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
            ledger_services.line(ledger_services.ACCOUNTS_PAYABLE, debit=amount),
            ledger_services.line(ledger_services.CASH_BANK, credit=amount),
        ],
        entry_type=ledger_models.GLEntryType.PAYABLE,
        reference_type=ledger_models.GLReferenceType.PURCHASE_PAYMENT,
        reference_id=payment.id,
        description=f"Payment made for purchase invoice {invoice.invoice_number}",
        transaction_date=payment.payment_date,
        entity_id=invoice.supplier_id,
        entity_name=_supplier_name(invoice),
        project_id=invoice.project_id,
        invoice_number=invoice.invoice_number,
        actor_user_id=actor_user_id,
    )
    _audit_event(
        db,
        entity_type="PurchaseInvoice",
        entity_id=str(invoice.id),
        action="payment",
        actor_user_id=actor_user_id,
        after={"amount": str(amount), "paid_amount": str(invoice.paid_amount), "status": invoice.status.value},
    )
    return payment


# ---------------------------------------------------------------------------
# Purchase credit notes
# ---------------------------------------------------------------------------


def list_credit_notes(
    db: Session,
    *,
    status_filter: Optional[models.CreditNoteStatus] = None,
    supplier_id: Optional[int] = None,
    purchase_invoice_id: Optional[int] = None,
) -> List[models.PurchaseCreditNote]:
    query = db.query(models.PurchaseCreditNote)
    if status_filter is not None:
        query = query.filter(models.PurchaseCreditNote.status == status_filter)
    if supplier_id is not None:
        query = query.filter(models.PurchaseCreditNote.supplier_id == supplier_id)
    if purchase_invoice_id is not None:
        query = query.filter(models.PurchaseCreditNote.purchase_invoice_id == purchase_invoice_id)
    return query.order_by(
        models.PurchaseCreditNote.credit_note_date.desc(),
        models.PurchaseCreditNote.id.desc(),
    ).all()


def get_credit_note(db: Session, credit_note_id: int) -> models.PurchaseCreditNote:
    note = db.get(models.PurchaseCreditNote, credit_note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Purchase credit note not found")
    return note


def _ensure_draft_credit_note(note: models.PurchaseCreditNote, action: str) -> None:
    if note.status != models.CreditNoteStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only draft credit notes can be {action}.",
        )


def create_credit_note(
    db: Session,
    *,
    payload: schemas.PurchaseCreditNoteCreate,
    actor_user_id: Optional[str],
) -> models.PurchaseCreditNote:
    supplier_id = payload.supplier_id
    if payload.purchase_invoice_id is not None:
        invoice = get_invoice(db, payload.purchase_invoice_id)
        supplier_id = supplier_id or invoice.supplier_id
    if supplier_id is None:
        raise HTTPException(status_code=400, detail="A supplier or purchase invoice is required.")
    party_services.get_supplier(db, supplier_id)

    number = payload.credit_note_number or generate_document_number("PCN")
    _ensure_unique_number(db, models.PurchaseCreditNote.credit_note_number, number, "Credit note")

    totals = compute_totals(payload.items, payload.discount)
    note = models.PurchaseCreditNote(
        credit_note_number=number,
        purchase_invoice_id=payload.purchase_invoice_id,
        supplier_id=supplier_id,
        status=models.CreditNoteStatus.DRAFT,
        credit_note_date=payload.credit_note_date or date.today(),
        reason=payload.reason,
        created_by=actor_user_id,
    )
    apply_totals(note, totals, models.PurchaseCreditNoteItem)
    db.add(note)
    db.flush()
    return note


def update_credit_note(
    db: Session,
    *,
    credit_note_id: int,
    payload: schemas.PurchaseCreditNoteUpdate,
) -> models.PurchaseCreditNote:
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "edited")
    _apply_update(db, note, payload, models.PurchaseCreditNoteItem)
    return note


def delete_credit_note(db: Session, *, credit_note_id: int) -> None:
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "deleted")
    db.delete(note)
    db.flush()


def issue_purchase_credit_note(
    db: Session,
    *,
    credit_note_id: int,
    actor_user_id: Optional[str],
    today: Optional[date] = None,
) -> models.PurchaseCreditNote:
    """
    Post the supplier credit: Dr Accounts Payable / Cr Purchases /
    Cr VAT Receivable, and count it against the linked invoice.
    """
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "issued")

    total = money(note.total)
    tax = money(note.tax_amount)
    invoice = note.invoice
    if invoice is not None:
        if invoice.approval_status != models.ApprovalStatus.APPROVED:
            raise HTTPException(status_code=400, detail="Purchase invoice must be approved before crediting.")
        if total > outstanding_balance(invoice):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Credit note total exceeds the invoice outstanding balance",
            )

    ledger_services.post_entries(
        db,
        lines=[
            ledger_services.line(ledger_services.ACCOUNTS_PAYABLE, debit=total),
            ledger_services.line(ledger_services.PURCHASES, credit=total - tax),
            ledger_services.line(ledger_services.VAT_RECEIVABLE, credit=tax),
        ],
        entry_type=ledger_models.GLEntryType.PAYABLE,
        reference_type=ledger_models.GLReferenceType.PURCHASE_CREDIT_NOTE,
        reference_id=note.id,
        description=f"Purchase credit note {note.credit_note_number}",
        transaction_date=note.credit_note_date,
        entity_id=note.supplier_id,
        entity_name=_supplier_name(note),
        project_id=invoice.project_id if invoice is not None else None,
        invoice_number=invoice.invoice_number if invoice is not None else None,
        actor_user_id=actor_user_id,
    )

    if invoice is not None:
        invoice.paid_amount = money(invoice.paid_amount) + total
        refresh_invoice_status(invoice, today=today)
        db.add(invoice)

    note.status = models.CreditNoteStatus.ISSUED
    note.issued_at = datetime.utcnow()
    db.add(note)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseCreditNote",
        entity_id=str(note.id),
        action="issue",
        actor_user_id=actor_user_id,
        after={"total": str(total), "purchase_invoice_id": note.purchase_invoice_id},
    )
    return note


def cancel_credit_note(
    db: Session,
    *,
    credit_note_id: int,
    actor_user_id: Optional[str],
) -> models.PurchaseCreditNote:
    note = get_credit_note(db, credit_note_id)
    _ensure_draft_credit_note(note, "cancelled")
    note.status = models.CreditNoteStatus.CANCELLED
    db.add(note)
    db.flush()
    _audit_event(
        db,
        entity_type="PurchaseCreditNote",
        entity_id=str(note.id),
        action="cancel",
        actor_user_id=actor_user_id,
        after={"status": note.status.value},
    )
    return note
