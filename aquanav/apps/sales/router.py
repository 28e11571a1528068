# aquanav/apps/sales/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_admin, require_roles
from aquanav.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(tags=["sales"])

SALES_READ_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.FINANCE,
    account_models.AccountRole.PROJECT_MANAGER,
]
SALES_WRITE_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.FINANCE,
]
# Quotations and proformas are also prepared by project managers
QUOTE_WRITE_ROLES = SALES_READ_ROLES


# ---------------------------------------------------------------------------
# Quotations
# ---------------------------------------------------------------------------


@router.get("/sales-quotations", response_model=List[schemas.QuotationRead])
def list_quotations(
    status_filter: Optional[models.QuotationStatus] = None,
    customer_id: Optional[int] = None,
    include_archived: bool = False,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.list_quotations(
        db,
        status_filter=status_filter,
        customer_id=customer_id,
        include_archived=include_archived,
    )


@router.post("/sales-quotations", response_model=schemas.QuotationRead, status_code=status.HTTP_201_CREATED)
def create_quotation(
    payload: schemas.QuotationCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    quotation = services.create_quotation(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(quotation)
    return quotation


@router.get("/sales-quotations/{quotation_id}", response_model=schemas.QuotationRead)
def get_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.get_quotation(db, quotation_id)


@router.put("/sales-quotations/{quotation_id}", response_model=schemas.QuotationRead)
def update_quotation(
    quotation_id: int,
    payload: schemas.QuotationUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    quotation = services.update_quotation(db, quotation_id=quotation_id, payload=payload)
    db.commit()
    db.refresh(quotation)
    return quotation


@router.post("/sales-quotations/{quotation_id}/approve", response_model=schemas.QuotationRead)
def approve_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    quotation = services.approve_quotation(db, quotation_id=quotation_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(quotation)
    return quotation


@router.post("/sales-quotations/{quotation_id}/archive", response_model=schemas.QuotationRead)
def archive_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    quotation = services.set_quotation_archived(db, quotation_id=quotation_id, archived=True)
    db.commit()
    db.refresh(quotation)
    return quotation


@router.post("/sales-quotations/{quotation_id}/unarchive", response_model=schemas.QuotationRead)
def unarchive_quotation(
    quotation_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    quotation = services.set_quotation_archived(db, quotation_id=quotation_id, archived=False)
    db.commit()
    db.refresh(quotation)
    return quotation


@router.post(
    "/sales-quotations/{quotation_id}/convert-to-proforma",
    response_model=schemas.ProformaRead,
    status_code=status.HTTP_201_CREATED,
)
def convert_quotation_to_proforma(
    quotation_id: int,
    payload: Optional[schemas.ConvertQuotationRequest] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    proforma = services.convert_quotation_to_proforma(
        db,
        quotation_id=quotation_id,
        actor_user_id=current_user.id,
        project_id=payload.project_id if payload else None,
    )
    db.commit()
    db.refresh(proforma)
    return proforma


# ---------------------------------------------------------------------------
# Proforma invoices
# ---------------------------------------------------------------------------


@router.get("/proforma-invoices", response_model=List[schemas.ProformaRead])
def list_proformas(
    status_filter: Optional[models.ProformaStatus] = None,
    customer_id: Optional[int] = None,
    project_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.list_proformas(db, status_filter=status_filter, customer_id=customer_id, project_id=project_id)


@router.post("/proforma-invoices", response_model=schemas.ProformaRead, status_code=status.HTTP_201_CREATED)
def create_proforma(
    payload: schemas.ProformaCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    proforma = services.create_proforma(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(proforma)
    return proforma


@router.get("/proforma-invoices/{proforma_id}", response_model=schemas.ProformaRead)
def get_proforma(
    proforma_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.get_proforma(db, proforma_id)


@router.put("/proforma-invoices/{proforma_id}", response_model=schemas.ProformaRead)
def update_proforma(
    proforma_id: int,
    payload: schemas.ProformaUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    proforma = services.update_proforma(db, proforma_id=proforma_id, payload=payload)
    db.commit()
    db.refresh(proforma)
    return proforma


@router.patch("/proforma-invoices/{proforma_id}/status", response_model=schemas.ProformaRead)
def update_proforma_status(
    proforma_id: int,
    payload: schemas.ProformaStatusUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    proforma = services.update_proforma_status(
        db,
        proforma_id=proforma_id,
        new_status=payload.status,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(proforma)
    return proforma


@router.delete("/proforma-invoices/{proforma_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_proforma(
    proforma_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*QUOTE_WRITE_ROLES)),
):
    services.delete_proforma(db, proforma_id=proforma_id)
    db.commit()


@router.post(
    "/proforma-invoices/{proforma_id}/convert-to-invoice",
    response_model=schemas.ProformaConversionResult,
    status_code=status.HTTP_201_CREATED,
)
def convert_proforma_to_invoice(
    proforma_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    result = services.convert_proforma_to_invoice(db, proforma_id=proforma_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(result["sales_invoice"])
    db.refresh(result["proforma_invoice"])
    return result


# ---------------------------------------------------------------------------
# Sales invoices
# ---------------------------------------------------------------------------


@router.get("/sales-invoices", response_model=List[schemas.SalesInvoiceRead])
def list_invoices(
    status_filter: Optional[models.SalesInvoiceStatus] = None,
    customer_id: Optional[int] = None,
    project_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.list_invoices(db, status_filter=status_filter, customer_id=customer_id, project_id=project_id)


@router.post("/sales-invoices", response_model=schemas.SalesInvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: schemas.SalesInvoiceCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    invoice = services.create_invoice(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.get("/sales-invoices/{invoice_id}", response_model=schemas.SalesInvoiceRead)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.get_invoice(db, invoice_id)


@router.put("/sales-invoices/{invoice_id}", response_model=schemas.SalesInvoiceRead)
def update_invoice(
    invoice_id: int,
    payload: schemas.SalesInvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    invoice = services.update_invoice(db, invoice_id=invoice_id, payload=payload)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/sales-invoices/{invoice_id}/approve", response_model=schemas.SalesInvoiceRead)
def approve_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    invoice = services.approve_sales_invoice(db, invoice_id=invoice_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(invoice)
    return invoice


@router.get("/sales-invoices/{invoice_id}/payments", response_model=List[schemas.InvoicePaymentRead])
def list_invoice_payments(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.list_invoice_payments(db, invoice_id=invoice_id)


@router.post(
    "/sales-invoices/{invoice_id}/payments",
    response_model=schemas.InvoicePaymentRead,
    status_code=status.HTTP_201_CREATED,
)
def record_invoice_payment(
    invoice_id: int,
    payload: schemas.InvoicePaymentCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    payment = services.record_invoice_payment(
        db,
        invoice_id=invoice_id,
        payload=payload,
        actor_user_id=current_user.id,
        idempotency_key=idempotency_key,
    )
    db.commit()
    db.refresh(payment)
    return payment


@router.get("/sales-invoices/{invoice_id}/credit-notes", response_model=List[schemas.CreditNoteRead])
def list_invoice_credit_notes(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    services.get_invoice(db, invoice_id)
    return services.list_credit_notes(db, sales_invoice_id=invoice_id)


# ---------------------------------------------------------------------------
# Credit notes
# ---------------------------------------------------------------------------


@router.get("/credit-notes", response_model=List[schemas.CreditNoteRead])
def list_credit_notes(
    status_filter: Optional[models.CreditNoteStatus] = None,
    customer_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.list_credit_notes(db, status_filter=status_filter, customer_id=customer_id)


@router.post("/credit-notes", response_model=schemas.CreditNoteRead, status_code=status.HTTP_201_CREATED)
def create_credit_note(
    payload: schemas.CreditNoteCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    note = services.create_credit_note(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(note)
    return note


@router.get("/credit-notes/{credit_note_id}", response_model=schemas.CreditNoteRead)
def get_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_READ_ROLES)),
):
    return services.get_credit_note(db, credit_note_id)


@router.put("/credit-notes/{credit_note_id}", response_model=schemas.CreditNoteRead)
def update_credit_note(
    credit_note_id: int,
    payload: schemas.CreditNoteUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    note = services.update_credit_note(db, credit_note_id=credit_note_id, payload=payload)
    db.commit()
    db.refresh(note)
    return note


@router.delete("/credit-notes/{credit_note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    services.delete_credit_note(db, credit_note_id=credit_note_id)
    db.commit()


@router.post("/credit-notes/{credit_note_id}/issue", response_model=schemas.CreditNoteRead)
def issue_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    note = services.issue_credit_note(db, credit_note_id=credit_note_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(note)
    return note


@router.post("/credit-notes/{credit_note_id}/cancel", response_model=schemas.CreditNoteRead)
def cancel_credit_note(
    credit_note_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*SALES_WRITE_ROLES)),
):
    note = services.cancel_credit_note(db, credit_note_id=credit_note_id, actor_user_id=current_user.id)
    db.commit()
    db.refresh(note)
    return note
