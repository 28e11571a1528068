# aquanav/apps/purchasing/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_roles
from aquanav.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(tags=["purchasing"])

PURCHASING_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.FINANCE,
]
REQUESTER_ROLES = PURCHASING_ROLES + [account_models.AccountRole.PROJECT_MANAGER]


# ---------------------------------------------------------------------------
# Purchase requests
# ---------------------------------------------------------------------------


@router.get("/purchase-requests", response_model=List[schemas.PurchaseRequestRead])
def list_requests(
    status_filter: Optional[models.PurchaseRequestStatus] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*REQUESTER_ROLES)),
):
    return services.list_requests(db, status_filter=status_filter)


@router.post("/purchase-requests", response_model=schemas.PurchaseRequestRead, status_code=status.HTTP_201_CREATED)
def create_request(
    payload: schemas.PurchaseRequestCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*REQUESTER_ROLES)),
):
    request = services.create_request(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(request)
    return request


@router.get("/purchase-requests/{request_id}", response_model=schemas.PurchaseRequestRead)
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*REQUESTER_ROLES)),
):
    return services.get_request(db, request_id)


@router.post("/purchase-requests/{request_id}/approve", response_model=schemas.PurchaseRequestRead)
def approve_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    request = services.approve_request(db, request_id=request_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(request)
    return request


@router.post("/purchase-requests/{request_id}/reject", response_model=schemas.PurchaseRequestRead)
def reject_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    request = services.reject_request(db, request_id=request_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(request)
    return request


@router.delete("/purchase-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    services.delete_request(db, request_id=request_id)
    db.commit()


@router.post(
    "/purchase-requests/{request_id}/create-order",
    response_model=schemas.PurchaseOrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order_from_request(
    request_id: int,
    payload: schemas.OrderFromRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    order = services.create_purchase_order_from_request(
        db,
        request_id=request_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(order)
    return order


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


@router.get("/purchase-orders", response_model=List[schemas.PurchaseOrderRead])
def list_orders(
    status_filter: Optional[models.PurchaseOrderStatus] = None,
    supplier_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    return services.list_orders(db, status_filter=status_filter, supplier_id=supplier_id)


@router.post("/purchase-orders", response_model=schemas.PurchaseOrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: schemas.PurchaseOrderCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    order = services.create_order(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(order)
    return order


@router.get("/purchase-orders/{order_id}", response_model=schemas.PurchaseOrderRead)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    return services.get_order(db, order_id)


@router.put("/purchase-orders/{order_id}", response_model=schemas.PurchaseOrderRead)
def update_order(
    order_id: int,
    payload: schemas.PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    order = services.update_order(db, order_id=order_id, payload=payload)
    db.commit()
    db.refresh(order)
    return order


@router.delete("/purchase-orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    services.delete_order(db, order_id=order_id)
    db.commit()


@router.post(
    "/purchase-orders/{order_id}/convert-to-invoice",
    response_model=schemas.PurchaseInvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
def convert_order_to_invoice(
    order_id: int,
    payload: schemas.ConvertOrderToInvoice,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    invoice = services.convert_purchase_order_to_invoice(
        db,
        order_id=order_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(invoice)
    return invoice


# ---------------------------------------------------------------------------
# Purchase invoices
# ---------------------------------------------------------------------------


@router.get("/purchase-invoices", response_model=List[schemas.PurchaseInvoiceRead])
def list_invoices(
    status_filter: Optional[models.PurchaseInvoiceStatus] = None,
    approval_status: Optional[models.ApprovalStatus] = None,
    supplier_id: Optional[int] = None,
    project_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    return services.list_invoices(
        db,
        status_filter=status_filter,
        approval_status=approval_status,
        supplier_id=supplier_id,
        project_id=project_id,
    )


@router.post("/purchase-invoices", response_model=schemas.PurchaseInvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: schemas.PurchaseInvoiceCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    invoice = services.create_invoice(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.get("/purchase-invoices/{invoice_id}", response_model=schemas.PurchaseInvoiceRead)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    return services.get_invoice(db, invoice_id)


@router.put("/purchase-invoices/{invoice_id}", response_model=schemas.PurchaseInvoiceRead)
def update_invoice(
    invoice_id: int,
    payload: schemas.PurchaseInvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    invoice = services.update_invoice(db, invoice_id=invoice_id, payload=payload)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/purchase-invoices/{invoice_id}/approve", response_model=schemas.PurchaseInvoiceRead)
def approve_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    invoice = services.approve_purchase_invoice(db, invoice_id=invoice_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/purchase-invoices/{invoice_id}/reject", response_model=schemas.PurchaseInvoiceRead)
def reject_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    invoice = services.reject_purchase_invoice(db, invoice_id=invoice_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.get("/purchase-invoices/{invoice_id}/payments", response_model=List[schemas.PurchasePaymentRead])
def list_payments(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    return services.list_purchase_payments(db, invoice_id=invoice_id)


@router.post(
    "/purchase-invoices/{invoice_id}/payments",
    response_model=schemas.PurchasePaymentRead,
    status_code=status.HTTP_201_CREATED,
)
def record_payment(
    invoice_id: int,
    payload: schemas.PurchasePaymentCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    payment = services.record_purchase_payment(
        db,
        invoice_id=invoice_id,
        payload=payload,
        actor_user_id=current_user.id,
        idempotency_key=idempotency_key,
    )
    db.commit()
    db.refresh(payment)
    return payment


@router.get("/purchase-invoices/{invoice_id}/credit-notes", response_model=List[schemas.PurchaseCreditNoteRead])
def list_invoice_credit_notes(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    services.get_invoice(db, invoice_id)
    return services.list_credit_notes(db, purchase_invoice_id=invoice_id)


# ---------------------------------------------------------------------------
# Purchase credit notes
# ---------------------------------------------------------------------------


@router.get("/purchase-credit-notes", response_model=List[schemas.PurchaseCreditNoteRead])
def list_credit_notes(
    status_filter: Optional[models.CreditNoteStatus] = None,
    supplier_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    return services.list_credit_notes(db, status_filter=status_filter, supplier_id=supplier_id)


@router.post(
    "/purchase-credit-notes",
    response_model=schemas.PurchaseCreditNoteRead,
    status_code=status.HTTP_201_CREATED,
)
def create_credit_note(
    payload: schemas.PurchaseCreditNoteCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    note = services.create_credit_note(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(note)
    return note


@router.get("/purchase-credit-notes/{credit_note_id}", response_model=schemas.PurchaseCreditNoteRead)
def get_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    return services.get_credit_note(db, credit_note_id)


@router.put("/purchase-credit-notes/{credit_note_id}", response_model=schemas.PurchaseCreditNoteRead)
def update_credit_note(
    credit_note_id: int,
    payload: schemas.PurchaseCreditNoteUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    note = services.update_credit_note(db, credit_note_id=credit_note_id, payload=payload)
    db.commit()
    db.refresh(note)
    return note


@router.delete("/purchase-credit-notes/{credit_note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    services.delete_credit_note(db, credit_note_id=credit_note_id)
    db.commit()


@router.post("/purchase-credit-notes/{credit_note_id}/issue", response_model=schemas.PurchaseCreditNoteRead)
def issue_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    note = services.issue_purchase_credit_note(db, credit_note_id=credit_note_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(note)
    return note


@router.post("/purchase-credit-notes/{credit_note_id}/cancel", response_model=schemas.PurchaseCreditNoteRead)
def cancel_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    note = services.cancel_credit_note(db, credit_note_id=credit_note_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(note)
    return note
