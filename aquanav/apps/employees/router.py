# aquanav/apps/employees/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_roles, require_staff
from aquanav.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(prefix="/employees", tags=["employees"])

EMPLOYEE_WRITE_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.PROJECT_MANAGER,
]


@router.get("", response_model=List[schemas.EmployeeRead])
def list_employees(
    category: Optional[models.EmployeeCategory] = None,
    is_active: Optional[bool] = True,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_employees(db, category=category, is_active=is_active, search=search)


@router.get("/documents/expiring", response_model=List[schemas.ExpiringDocumentRead])
def expiring_documents(
    within_days: int = Query(30, ge=0, le=365),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    return services.expiring_documents(db, within_days=within_days)


@router.post("", response_model=schemas.EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: schemas.EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    employee = services.create_employee(db, payload=payload)
    db.commit()
    db.refresh(employee)
    return employee


@router.get("/{employee_id}", response_model=schemas.EmployeeDetailRead)
def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.get_employee(db, employee_id)


@router.put("/{employee_id}", response_model=schemas.EmployeeRead)
def update_employee(
    employee_id: int,
    payload: schemas.EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    employee = services.update_employee(db, employee_id=employee_id, payload=payload)
    db.commit()
    db.refresh(employee)
    return employee


@router.delete("/{employee_id}", response_model=schemas.EmployeeRead)
def deactivate_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    employee = services.deactivate_employee(db, employee_id=employee_id)
    db.commit()
    db.refresh(employee)
    return employee


# ---------------------------------------------------------------------------
# NEXT OF KIN
# ---------------------------------------------------------------------------


@router.get("/{employee_id}/next-of-kin", response_model=List[schemas.NextOfKinRead])
def list_next_of_kin(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_next_of_kin(db, employee_id=employee_id)


@router.post(
    "/{employee_id}/next-of-kin",
    response_model=schemas.NextOfKinRead,
    status_code=status.HTTP_201_CREATED,
)
def add_next_of_kin(
    employee_id: int,
    payload: schemas.NextOfKinCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    kin = services.add_next_of_kin(db, employee_id=employee_id, payload=payload)
    db.commit()
    db.refresh(kin)
    return kin


@router.delete("/{employee_id}/next-of-kin/{kin_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_next_of_kin(
    employee_id: int,
    kin_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    services.delete_next_of_kin(db, employee_id=employee_id, kin_id=kin_id)
    db.commit()


# ---------------------------------------------------------------------------
# TRAINING RECORDS
# ---------------------------------------------------------------------------


@router.get("/{employee_id}/training-records", response_model=List[schemas.TrainingRecordRead])
def list_training_records(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_training_records(db, employee_id=employee_id)


@router.post(
    "/{employee_id}/training-records",
    response_model=schemas.TrainingRecordRead,
    status_code=status.HTTP_201_CREATED,
)
def add_training_record(
    employee_id: int,
    payload: schemas.TrainingRecordCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    record = services.add_training_record(db, employee_id=employee_id, payload=payload)
    db.commit()
    db.refresh(record)
    return record


@router.put(
    "/{employee_id}/training-records/{record_id}",
    response_model=schemas.TrainingRecordRead,
)
def update_training_record(
    employee_id: int,
    record_id: int,
    payload: schemas.TrainingRecordUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    record = services.update_training_record(
        db,
        employee_id=employee_id,
        record_id=record_id,
        payload=payload,
    )
    db.commit()
    db.refresh(record)
    return record


# ---------------------------------------------------------------------------
# DOCUMENTS
# ---------------------------------------------------------------------------


@router.get("/{employee_id}/documents", response_model=List[schemas.EmployeeDocumentRead])
def list_documents(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_documents(db, employee_id=employee_id)


@router.post(
    "/{employee_id}/documents",
    response_model=schemas.EmployeeDocumentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_document(
    employee_id: int,
    payload: schemas.EmployeeDocumentCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    document = services.add_document(db, employee_id=employee_id, payload=payload)
    db.commit()
    db.refresh(document)
    return document


@router.put(
    "/{employee_id}/documents/{document_id}",
    response_model=schemas.EmployeeDocumentRead,
)
def update_document(
    employee_id: int,
    document_id: int,
    payload: schemas.EmployeeDocumentUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    document = services.update_document(
        db,
        employee_id=employee_id,
        document_id=document_id,
        payload=payload,
    )
    db.commit()
    db.refresh(document)
    return document


@router.delete("/{employee_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    employee_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*EMPLOYEE_WRITE_ROLES)),
):
    services.delete_document(db, employee_id=employee_id, document_id=document_id)
    db.commit()
