from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.ledger import models as ledger_models
from aquanav.apps.parties import schemas as party_schemas
from aquanav.apps.parties import services as party_services
from aquanav.apps.projects import models as project_models
from aquanav.apps.purchasing import models as purchasing_models
from aquanav.apps.purchasing import router as purchasing_router
from aquanav.apps.purchasing import schemas as purchasing_schemas
from aquanav.apps.purchasing import services as purchasing_services


def _supplier(db):
    supplier = party_services.create_supplier(
        db,
        payload=party_schemas.SupplierCreate(name="Marine Spares Trading", phone="+971500000077"),
    )
    db.commit()
    return supplier


def _lines():
    return [
        purchasing_schemas.PurchaseLineCreate(
            description="Anchor chain shackle",
            quantity=Decimal("4"),
            unit_price=Decimal("250"),
            tax_rate=Decimal("5"),
        ),
        purchasing_schemas.PurchaseLineCreate(
            item_type=purchasing_models.ItemType.SERVICE,
            description="Delivery to jetty",
            quantity=Decimal("1"),
            unit_price=Decimal("100"),
        ),
    ]


def _invoice(db, supplier, *, number="SUP-1001", project_id=None):
    invoice = purchasing_services.create_invoice(
        db,
        payload=purchasing_schemas.PurchaseInvoiceCreate(
            invoice_number=number,
            supplier_id=supplier.id,
            project_id=project_id,
            invoice_date=date(2024, 6, 1),
            due_date=date(2024, 7, 1),
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


def test_request_lifecycle_and_order_from_request(db_session):
    supplier = _supplier(db_session)

    with pytest.raises(HTTPException) as exc:
        purchasing_services.create_request(
            db_session,
            payload=purchasing_schemas.PurchaseRequestCreate(reason="empty"),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 400

    request = purchasing_services.create_request(
        db_session,
        payload=purchasing_schemas.PurchaseRequestCreate(
            reason="Spare parts for ROV",
            items=[
                purchasing_schemas.PurchaseRequestItemCreate(
                    description="Thruster seal kit",
                    quantity=Decimal("3"),
                    unit_price=Decimal("120"),
                ),
                purchasing_schemas.PurchaseRequestItemCreate(description="Tether clamp", quantity=Decimal("2")),
            ],
        ),
        actor_user_id="pm-1",
    )
    db_session.commit()
    assert request.request_number.startswith("PR-")
    assert request.status == purchasing_models.PurchaseRequestStatus.PENDING

    with pytest.raises(HTTPException) as exc:
        purchasing_services.create_purchase_order_from_request(
            db_session,
            request_id=request.id,
            payload=purchasing_schemas.OrderFromRequest(supplier_id=supplier.id),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400

    purchasing_services.approve_request(db_session, request_id=request.id, actor_user_id="admin-1")
    db_session.commit()
    assert request.approved_by == "admin-1"
    assert request.approval_date is not None

    with pytest.raises(HTTPException) as exc:
        purchasing_services.reject_request(db_session, request_id=request.id, actor_user_id="admin-1")
    assert exc.value.status_code == 409

    order = purchasing_services.create_purchase_order_from_request(
        db_session,
        request_id=request.id,
        payload=purchasing_schemas.OrderFromRequest(supplier_id=supplier.id),
        actor_user_id="fin-1",
    )
    db_session.commit()

    assert request.status == purchasing_models.PurchaseRequestStatus.COMPLETED
    assert order.request_id == request.id
    assert order.status == purchasing_models.PurchaseOrderStatus.DRAFT
    assert order.total == Decimal("360.00")
    assert [line.unit_price for line in order.items] == [Decimal("120"), Decimal("0")]

    with pytest.raises(HTTPException) as exc:
        purchasing_services.delete_request(db_session, request_id=request.id)
    assert exc.value.status_code == 409


def test_order_converts_to_pending_invoice(db_session):
    supplier = _supplier(db_session)
    order = purchasing_services.create_order(
        db_session,
        payload=purchasing_schemas.PurchaseOrderCreate(supplier_id=supplier.id, items=_lines()),
        actor_user_id="fin-1",
    )
    db_session.commit()
    assert order.po_number.startswith("PO-")
    assert order.total == Decimal("1150.00")

    invoice = purchasing_services.convert_purchase_order_to_invoice(
        db_session,
        order_id=order.id,
        payload=purchasing_schemas.ConvertOrderToInvoice(invoice_number="SUP-2001", invoice_date=date(2024, 6, 5)),
        actor_user_id="fin-1",
    )
    db_session.commit()

    assert order.status == purchasing_models.PurchaseOrderStatus.RECEIVED
    assert invoice.po_id == order.id
    assert invoice.supplier_id == supplier.id
    assert invoice.status == purchasing_models.PurchaseInvoiceStatus.PENDING
    assert invoice.approval_status == purchasing_models.ApprovalStatus.PENDING
    assert invoice.total == order.total
    assert invoice.due_date == date(2024, 7, 5)
    assert invoice.items[1].item_type == purchasing_models.ItemType.SERVICE

    with pytest.raises(HTTPException) as exc:
        purchasing_services.convert_purchase_order_to_invoice(
            db_session,
            order_id=order.id,
            payload=purchasing_schemas.ConvertOrderToInvoice(invoice_number="SUP-2002"),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 409
    assert exc.value.detail == "Purchase order has already been invoiced."

    with pytest.raises(HTTPException) as exc:
        purchasing_services.update_order(
            db_session,
            order_id=order.id,
            payload=purchasing_schemas.PurchaseOrderUpdate(notes="late"),
        )
    assert exc.value.status_code == 409


def test_cancelled_order_cannot_be_invoiced(db_session):
    supplier = _supplier(db_session)
    order = purchasing_services.create_order(
        db_session,
        payload=purchasing_schemas.PurchaseOrderCreate(supplier_id=supplier.id, items=_lines()),
        actor_user_id="fin-1",
    )
    purchasing_services.update_order(
        db_session,
        order_id=order.id,
        payload=purchasing_schemas.PurchaseOrderUpdate(status=purchasing_models.PurchaseOrderStatus.CANCELLED),
    )
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        purchasing_services.convert_purchase_order_to_invoice(
            db_session,
            order_id=order.id,
            payload=purchasing_schemas.ConvertOrderToInvoice(invoice_number="SUP-3001"),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 409


def test_approve_posts_payable_and_adds_project_cost(db_session):
    supplier = _supplier(db_session)
    project = project_models.Project(title="Pipeline survey", status=project_models.ProjectStatus.IN_PROGRESS)
    db_session.add(project)
    db_session.commit()
    invoice = _invoice(db_session, supplier, project_id=project.id)

    with pytest.raises(HTTPException) as exc:
        purchasing_services.record_purchase_payment(
            db_session,
            invoice_id=invoice.id,
            payload=purchasing_schemas.PurchasePaymentCreate(amount=Decimal("10")),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400
    assert exc.value.detail == "Purchase invoice must be approved before recording payments"

    purchasing_services.approve_purchase_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1")
    db_session.commit()

    rows = _gl(db_session, ledger_models.GLReferenceType.PURCHASE_INVOICE, invoice.id)
    assert rows["Purchases"].debit_amount == Decimal("1100.00")
    assert rows["VAT Receivable"].debit_amount == Decimal("50.00")
    assert rows["Accounts Payable"].credit_amount == Decimal("1150.00")
    assert rows["Accounts Payable"].entry_type == ledger_models.GLEntryType.PAYABLE
    assert rows["Accounts Payable"].entity_id == supplier.id
    assert project.actual_cost == Decimal("1150.00")

    with pytest.raises(HTTPException) as exc:
        purchasing_services.approve_purchase_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1")
    assert exc.value.status_code == 400


def test_payments_move_status_and_replay(db_session):
    supplier = _supplier(db_session)
    invoice = _invoice(db_session, supplier)
    purchasing_services.approve_purchase_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1")
    db_session.commit()

    first = purchasing_services.record_purchase_payment(
        db_session,
        invoice_id=invoice.id,
        payload=purchasing_schemas.PurchasePaymentCreate(amount=Decimal("150"), payment_date=date(2024, 6, 10)),
        actor_user_id="fin-1",
        idempotency_key="pay-sup-1",
        today=date(2024, 6, 10),
    )
    db_session.commit()
    assert invoice.status == purchasing_models.PurchaseInvoiceStatus.PARTIALLY_PAID

    with pytest.raises(HTTPException) as exc:
        purchasing_services.record_purchase_payment(
            db_session,
            invoice_id=invoice.id,
            payload=purchasing_schemas.PurchasePaymentCreate(amount=Decimal("0.004")),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400
    assert exc.value.detail == "Payment amount must be greater than zero"

    replay = purchasing_services.record_purchase_payment(
        db_session,
        invoice_id=invoice.id,
        payload=purchasing_schemas.PurchasePaymentCreate(amount=Decimal("150"), payment_date=date(2024, 6, 10)),
        actor_user_id="fin-1",
        idempotency_key="pay-sup-1",
    )
    assert replay.id == first.id
    assert invoice.paid_amount == Decimal("150.00")

    rows = _gl(db_session, ledger_models.GLReferenceType.PURCHASE_PAYMENT, first.id)
    assert rows["Accounts Payable"].debit_amount == Decimal("150.00")
    assert rows["Cash/Bank"].credit_amount == Decimal("150.00")

    with pytest.raises(HTTPException) as exc:
        purchasing_services.record_purchase_payment(
            db_session,
            invoice_id=invoice.id,
            payload=purchasing_schemas.PurchasePaymentCreate(amount=Decimal("1000.01")),
            actor_user_id="fin-1",
        )
    assert exc.value.status_code == 400

    purchasing_services.record_purchase_payment(
        db_session,
        invoice_id=invoice.id,
        payload=purchasing_schemas.PurchasePaymentCreate(amount=Decimal("1000")),
        actor_user_id="fin-1",
    )
    db_session.commit()
    assert invoice.status == purchasing_models.PurchaseInvoiceStatus.PAID


def test_refresh_status_marks_overdue():
    invoice = purchasing_models.PurchaseInvoice(
        total=Decimal("100"),
        paid_amount=Decimal("0"),
        due_date=date(2024, 1, 31),
    )
    purchasing_services.refresh_invoice_status(invoice, today=date(2024, 2, 1))
    assert invoice.status == purchasing_models.PurchaseInvoiceStatus.OVERDUE
    purchasing_services.refresh_invoice_status(invoice, today=date(2024, 1, 15))
    assert invoice.status == purchasing_models.PurchaseInvoiceStatus.PENDING


def test_issue_purchase_credit_note(db_session):
    supplier = _supplier(db_session)
    invoice = _invoice(db_session, supplier)
    purchasing_services.approve_purchase_invoice(db_session, invoice_id=invoice.id, actor_user_id="admin-1")
    db_session.commit()

    note = purchasing_services.create_credit_note(
        db_session,
        payload=purchasing_schemas.PurchaseCreditNoteCreate(
            purchase_invoice_id=invoice.id,
            reason="One shackle damaged",
            items=[
                purchasing_schemas.PurchaseLineCreate(
                    description="Anchor chain shackle",
                    quantity=Decimal("1"),
                    unit_price=Decimal("250"),
                    tax_rate=Decimal("5"),
                )
            ],
        ),
        actor_user_id="fin-1",
    )
    db_session.commit()
    assert note.supplier_id == supplier.id
    assert note.total == Decimal("262.50")

    purchasing_services.issue_purchase_credit_note(db_session, credit_note_id=note.id, actor_user_id="fin-1")
    db_session.commit()

    assert note.status == purchasing_models.CreditNoteStatus.ISSUED
    assert invoice.paid_amount == Decimal("262.50")
    assert invoice.status == purchasing_models.PurchaseInvoiceStatus.PARTIALLY_PAID

    rows = _gl(db_session, ledger_models.GLReferenceType.PURCHASE_CREDIT_NOTE, note.id)
    assert rows["Accounts Payable"].debit_amount == Decimal("262.50")
    assert rows["Purchases"].credit_amount == Decimal("250.00")
    assert rows["VAT Receivable"].credit_amount == Decimal("12.50")

    assert [n.id for n in purchasing_services.list_credit_notes(db_session, purchase_invoice_id=invoice.id)] == [note.id]

    with pytest.raises(HTTPException) as exc:
        purchasing_services.delete_credit_note(db_session, credit_note_id=note.id)
    assert exc.value.status_code == 409


def test_purchasing_routes_registered():
    paths = {(route.path, method) for route in purchasing_router.router.routes for method in route.methods}
    assert ("/purchase-requests", "POST") in paths
    assert ("/purchase-requests/{request_id}/create-order", "POST") in paths
    assert ("/purchase-orders/{order_id}/convert-to-invoice", "POST") in paths
    assert ("/purchase-invoices/{invoice_id}/approve", "POST") in paths
    assert ("/purchase-invoices/{invoice_id}/payments", "POST") in paths
    assert ("/purchase-credit-notes/{credit_note_id}/issue", "POST") in paths
