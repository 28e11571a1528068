# aquanav/apps/employees/services.py

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


def list_employees(
    db: Session,
    *,
    category: Optional[models.EmployeeCategory] = None,
    is_active: Optional[bool] = True,
    search: Optional[str] = None,
) -> List[models.Employee]:
    query = db.query(models.Employee)
    if category is not None:
        query = query.filter(models.Employee.category == category)
    if is_active is not None:
        query = query.filter(models.Employee.is_active.is_(is_active))
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(models.Employee.first_name).like(pattern),
                func.lower(models.Employee.last_name).like(pattern),
                func.lower(models.Employee.employee_code).like(pattern),
                func.lower(models.Employee.position).like(pattern),
            )
        )
    return query.order_by(models.Employee.first_name.asc(), models.Employee.last_name.asc()).all()


def get_employee(db: Session, employee_id: int) -> models.Employee:
    employee = db.get(models.Employee, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


def _ensure_unique_code(db: Session, code: str, *, exclude_id: Optional[int] = None) -> None:
    query = db.query(models.Employee).filter(models.Employee.employee_code == code)
    if exclude_id is not None:
        query = query.filter(models.Employee.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Employee code already exists",
        )


def create_employee(db: Session, *, payload: schemas.EmployeeCreate) -> models.Employee:
    code = payload.employee_code.strip().upper()
    _ensure_unique_code(db, code)
    data = payload.model_dump()
    data["employee_code"] = code
    employee = models.Employee(**data)
    db.add(employee)
    db.flush()
    logger.info(
        "Employee created",
        extra={"employee_id": employee.id, "category": employee.category.value},
    )
    return employee


def update_employee(db: Session, *, employee_id: int, payload: schemas.EmployeeUpdate) -> models.Employee:
    employee = get_employee(db, employee_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("employee_code"):
        data["employee_code"] = data["employee_code"].strip().upper()
        _ensure_unique_code(db, data["employee_code"], exclude_id=employee.id)
    for field, value in data.items():
        setattr(employee, field, value)
    db.add(employee)
    db.flush()
    return employee


def deactivate_employee(db: Session, *, employee_id: int) -> models.Employee:
    employee = get_employee(db, employee_id)
    employee.is_active = False
    db.add(employee)
    db.flush()
    return employee


# ---------------------------------------------------------------------------
# Next of kin
# ---------------------------------------------------------------------------


def list_next_of_kin(db: Session, *, employee_id: int) -> List[models.EmployeeNextOfKin]:
    get_employee(db, employee_id)
    return (
        db.query(models.EmployeeNextOfKin)
        .filter(models.EmployeeNextOfKin.employee_id == employee_id)
        .order_by(models.EmployeeNextOfKin.is_primary.desc(), models.EmployeeNextOfKin.id.asc())
        .all()
    )


def add_next_of_kin(
    db: Session,
    *,
    employee_id: int,
    payload: schemas.NextOfKinCreate,
) -> models.EmployeeNextOfKin:
    get_employee(db, employee_id)
    if payload.is_primary:
        # Only one primary contact per employee
        (
            db.query(models.EmployeeNextOfKin)
            .filter(
                models.EmployeeNextOfKin.employee_id == employee_id,
                models.EmployeeNextOfKin.is_primary.is_(True),
            )
            .update({models.EmployeeNextOfKin.is_primary: False}, synchronize_session="fetch")
        )
    kin = models.EmployeeNextOfKin(employee_id=employee_id, **payload.model_dump())
    db.add(kin)
    db.flush()
    return kin


def delete_next_of_kin(db: Session, *, employee_id: int, kin_id: int) -> None:
    kin = (
        db.query(models.EmployeeNextOfKin)
        .filter(
            models.EmployeeNextOfKin.id == kin_id,
            models.EmployeeNextOfKin.employee_id == employee_id,
        )
        .first()
    )
    if not kin:
        raise HTTPException(status_code=404, detail="Next of kin not found")
    db.delete(kin)
    db.flush()


# ---------------------------------------------------------------------------
# Training records
# ---------------------------------------------------------------------------


def _derive_training_status(record: models.EmployeeTrainingRecord, today: date) -> None:
    if record.status == models.TrainingStatus.CANCELLED:
        return
    if record.expiry_date and record.expiry_date < today:
        record.status = models.TrainingStatus.EXPIRED


def list_training_records(db: Session, *, employee_id: int) -> List[models.EmployeeTrainingRecord]:
    get_employee(db, employee_id)
    return (
        db.query(models.EmployeeTrainingRecord)
        .filter(models.EmployeeTrainingRecord.employee_id == employee_id)
        .order_by(models.EmployeeTrainingRecord.training_date.desc())
        .all()
    )


def add_training_record(
    db: Session,
    *,
    employee_id: int,
    payload: schemas.TrainingRecordCreate,
    today: Optional[date] = None,
) -> models.EmployeeTrainingRecord:
    get_employee(db, employee_id)
    record = models.EmployeeTrainingRecord(employee_id=employee_id, **payload.model_dump())
    _derive_training_status(record, today or date.today())
    db.add(record)
    db.flush()
    return record


def update_training_record(
    db: Session,
    *,
    employee_id: int,
    record_id: int,
    payload: schemas.TrainingRecordUpdate,
    today: Optional[date] = None,
) -> models.EmployeeTrainingRecord:
    record = (
        db.query(models.EmployeeTrainingRecord)
        .filter(
            models.EmployeeTrainingRecord.id == record_id,
            models.EmployeeTrainingRecord.employee_id == employee_id,
        )
        .first()
    )
    if not record:
        raise HTTPException(status_code=404, detail="Training record not found")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(record, field, value)
    _derive_training_status(record, today or date.today())
    db.add(record)
    db.flush()
    return record


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def _get_document(db: Session, employee_id: int, document_id: int) -> models.EmployeeDocument:
    document = (
        db.query(models.EmployeeDocument)
        .filter(
            models.EmployeeDocument.id == document_id,
            models.EmployeeDocument.employee_id == employee_id,
        )
        .first()
    )
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


def list_documents(db: Session, *, employee_id: int) -> List[models.EmployeeDocument]:
    get_employee(db, employee_id)
    return (
        db.query(models.EmployeeDocument)
        .filter(models.EmployeeDocument.employee_id == employee_id)
        .order_by(models.EmployeeDocument.document_type.asc())
        .all()
    )


def add_document(
    db: Session,
    *,
    employee_id: int,
    payload: schemas.EmployeeDocumentCreate,
) -> models.EmployeeDocument:
    get_employee(db, employee_id)
    document = models.EmployeeDocument(employee_id=employee_id, **payload.model_dump())
    db.add(document)
    db.flush()
    return document


def update_document(
    db: Session,
    *,
    employee_id: int,
    document_id: int,
    payload: schemas.EmployeeDocumentUpdate,
) -> models.EmployeeDocument:
    document = _get_document(db, employee_id, document_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(document, field, value)
    db.add(document)
    db.flush()
    return document


def delete_document(db: Session, *, employee_id: int, document_id: int) -> None:
    db.delete(_get_document(db, employee_id, document_id))
    db.flush()


def expiring_documents(
    db: Session,
    *,
    within_days: int = 30,
    today: Optional[date] = None,
) -> List[schemas.ExpiringDocumentRead]:
    """
    Active documents of active employees that lapse within the window.

    ILO medicals carry `valid_till` instead of `expiry_date`; whichever is
    set is used. Documents already past their date are included with a
    negative `days_remaining`.
    """
    today = today or date.today()
    horizon = today + timedelta(days=within_days)
    expires_on = func.coalesce(models.EmployeeDocument.expiry_date, models.EmployeeDocument.valid_till)
    rows = (
        db.query(models.EmployeeDocument, models.Employee)
        .join(models.Employee, models.Employee.id == models.EmployeeDocument.employee_id)
        .filter(
            models.EmployeeDocument.status == models.DocumentStatus.ACTIVE,
            models.Employee.is_active.is_(True),
            expires_on.isnot(None),
            expires_on <= horizon,
        )
        .all()
    )

    results = []
    for document, employee in rows:
        lapse = document.expiry_date or document.valid_till
        results.append(
            schemas.ExpiringDocumentRead(
                document=schemas.EmployeeDocumentRead.model_validate(document),
                employee_id=employee.id,
                employee_code=employee.employee_code,
                employee_name=employee.full_name,
                expires_on=lapse,
                days_remaining=(lapse - today).days,
            )
        )
    results.sort(key=lambda r: r.expires_on)
    return results
