from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.employees import models as employee_models
from aquanav.apps.employees import schemas as employee_schemas
from aquanav.apps.employees import services as employee_services


def _employee(db, code: str = "AQ-001", **extra):
    data = {"employee_code": code, "first_name": "Ravi", "last_name": "Menon", "salary": Decimal("6000")}
    data.update(extra)
    employee = employee_services.create_employee(db, payload=employee_schemas.EmployeeCreate(**data))
    db.commit()
    return employee


def test_duplicate_employee_code_is_conflict(db_session):
    _employee(db_session, "aq-001")
    with pytest.raises(HTTPException) as exc:
        _employee(db_session, "AQ-001")
    assert exc.value.status_code == 409


def test_list_filters_category_and_hides_inactive(db_session):
    _employee(db_session, "AQ-001")
    consultant = _employee(db_session, "AQ-002", category=employee_models.EmployeeCategory.CONSULTANT)
    leaver = _employee(db_session, "AQ-003", first_name="Old")
    employee_services.deactivate_employee(db_session, employee_id=leaver.id)
    db_session.commit()

    active = employee_services.list_employees(db_session)
    assert {e.employee_code for e in active} == {"AQ-001", "AQ-002"}

    consultants = employee_services.list_employees(
        db_session,
        category=employee_models.EmployeeCategory.CONSULTANT,
    )
    assert [e.id for e in consultants] == [consultant.id]


def test_only_one_primary_next_of_kin(db_session):
    employee = _employee(db_session)
    first = employee_services.add_next_of_kin(
        db_session,
        employee_id=employee.id,
        payload=employee_schemas.NextOfKinCreate(name="Asha", relationship="spouse", is_primary=True),
    )
    second = employee_services.add_next_of_kin(
        db_session,
        employee_id=employee.id,
        payload=employee_schemas.NextOfKinCreate(name="Mohan", relationship="parent", is_primary=True),
    )
    db_session.commit()
    db_session.refresh(first)

    assert first.is_primary is False
    assert second.is_primary is True


def test_training_record_expires_unless_cancelled(db_session):
    employee = _employee(db_session)
    today = date(2024, 6, 1)

    expired = employee_services.add_training_record(
        db_session,
        employee_id=employee.id,
        payload=employee_schemas.TrainingRecordCreate(
            training_name="BOSIET",
            training_date=date(2020, 1, 1),
            expiry_date=date(2024, 1, 1),
        ),
        today=today,
    )
    cancelled = employee_services.add_training_record(
        db_session,
        employee_id=employee.id,
        payload=employee_schemas.TrainingRecordCreate(
            training_name="HUET",
            training_date=date(2020, 1, 1),
            expiry_date=date(2024, 1, 1),
            status=employee_models.TrainingStatus.CANCELLED,
        ),
        today=today,
    )

    assert expired.status == employee_models.TrainingStatus.EXPIRED
    assert expired.provider == "Aquanav"
    assert cancelled.status == employee_models.TrainingStatus.CANCELLED


def test_expiring_documents_uses_expiry_or_valid_till(db_session):
    employee = _employee(db_session)
    today = date(2024, 6, 1)
    for doc in (
        employee_schemas.EmployeeDocumentCreate(document_type="passport", expiry_date=date(2024, 6, 20)),
        employee_schemas.EmployeeDocumentCreate(document_type="ilo_medical", valid_till=date(2024, 6, 10)),
        employee_schemas.EmployeeDocumentCreate(document_type="cdc", expiry_date=date(2025, 1, 1)),
    ):
        employee_services.add_document(db_session, employee_id=employee.id, payload=doc)
    db_session.commit()

    expiring = employee_services.expiring_documents(db_session, within_days=30, today=today)

    assert [e.document.document_type for e in expiring] == ["ilo_medical", "passport"]
    assert expiring[0].days_remaining == 9
    assert expiring[0].employee_name == "Ravi Menon"
