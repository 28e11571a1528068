from __future__ import annotations

import io
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.assets import models as asset_models
from aquanav.apps.assets import router as asset_router
from aquanav.apps.assets import schemas as asset_schemas
from aquanav.apps.assets import services as asset_services
from aquanav.apps.employees import models as employee_models
from aquanav.apps.projects import models as project_models

S = asset_models.AssetStatus


def _crane_type(db, **overrides):
    data = dict(
        name="Marine Crane",
        category=asset_models.AssetCategory.EQUIPMENT,
        default_monthly_rental_rate=Decimal("2000"),
        maintenance_interval_days=60,
    )
    data.update(overrides)
    asset_type = asset_services.create_asset_type(db, payload=asset_schemas.AssetTypeCreate(**data))
    db.commit()
    return asset_type


def _instance(db, asset_type, tag="CRN-001", **extra):
    instance = asset_services.create_instance(
        db,
        payload=asset_schemas.AssetInstanceCreate(
            asset_type_id=asset_type.id,
            asset_tag=tag,
            location="Marine Yard A",
            current_value=Decimal("150000"),
            **extra,
        ),
        actor_user_id="pm-1",
    )
    db.commit()
    return instance


def _project(db):
    project = project_models.Project(title="Jetty rehabilitation", status=project_models.ProjectStatus.IN_PROGRESS)
    db.add(project)
    db.commit()
    return project


def test_instance_defaults_and_duplicate_tag(db_session):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane, acquisition_date=date(2024, 1, 1))

    assert instance.status == S.AVAILABLE
    assert instance.monthly_rental_amount == Decimal("2000")
    assert instance.warranty_expiry_date is not None
    assert asset_services.get_instance_by_tag(db_session, "CRN-001").id == instance.id

    with pytest.raises(HTTPException) as exc:
        _instance(db_session, crane)
    assert exc.value.status_code == 400
    assert exc.value.detail == "Asset tag already exists"


def test_invalid_currency_is_rejected(db_session):
    with pytest.raises(HTTPException) as exc:
        _crane_type(db_session, currency="XYZ")
    assert exc.value.status_code == 400


def test_assign_and_return_record_movements(db_session):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane)
    project = _project(db_session)

    with pytest.raises(HTTPException) as exc:
        asset_services.assign_instance(
            db_session,
            instance_id=instance.id,
            payload=asset_schemas.AssignRequest(location="Berth 4"),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 400

    asset_services.assign_instance(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.AssignRequest(project_id=project.id, location="Berth 4", reason="Lift works"),
        actor_user_id="pm-1",
    )
    db_session.commit()
    assert instance.status == S.IN_USE
    assert instance.project_id == project.id
    assert instance.location == "Berth 4"

    with pytest.raises(HTTPException) as exc:
        asset_services.assign_instance(
            db_session,
            instance_id=instance.id,
            payload=asset_schemas.AssignRequest(project_id=project.id),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 409
    assert exc.value.detail == "Asset is not available for assignment"

    asset_services.return_instance(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.ReturnRequest(location="Marine Yard A", condition=asset_models.AssetCondition.FAIR),
        actor_user_id="pm-1",
    )
    db_session.commit()
    assert instance.status == S.AVAILABLE
    assert instance.project_id is None
    assert instance.assigned_to_id is None
    assert instance.condition == asset_models.AssetCondition.FAIR

    with pytest.raises(HTTPException) as exc:
        asset_services.return_instance(
            db_session,
            instance_id=instance.id,
            payload=asset_schemas.ReturnRequest(),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 409

    movements = asset_services.list_movements(db_session, instance_id=instance.id)
    assert [m.movement_type for m in movements] == [
        asset_models.MovementType.RETURN,
        asset_models.MovementType.ASSIGNMENT,
    ]
    assert movements[1].from_location == "Marine Yard A"
    assert movements[1].to_location == "Berth 4"
    assert movements[0].project_id == project.id


def test_assign_to_employee_and_transfer(db_session):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane)
    employee = employee_models.Employee(employee_code="E-77", first_name="Ravi", last_name="Nair", is_active=True)
    db_session.add(employee)
    db_session.commit()

    asset_services.assign_instance(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.AssignRequest(employee_id=employee.id),
        actor_user_id="pm-1",
    )
    asset_services.transfer_instance(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.TransferRequest(to_location="Khalifa Port"),
        actor_user_id="pm-1",
    )
    db_session.commit()

    assert instance.assigned_to_id == employee.id
    assert instance.location == "Khalifa Port"
    latest = asset_services.list_movements(db_session, instance_id=instance.id)[0]
    assert latest.movement_type == asset_models.MovementType.TRANSFER
    assert latest.employee_id == employee.id


def test_status_changes_follow_transition_table(db_session):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane)

    asset_services.update_instance(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.AssetInstanceUpdate(status=S.RETIRED),
        actor_user_id="admin-1",
    )
    db_session.commit()
    assert instance.status == S.RETIRED

    with pytest.raises(HTTPException) as exc:
        asset_services.update_instance(
            db_session,
            instance_id=instance.id,
            payload=asset_schemas.AssetInstanceUpdate(status=S.AVAILABLE),
            actor_user_id="admin-1",
        )
    assert exc.value.status_code == 409

    for source, allowed in asset_services.ALLOWED_TRANSITIONS.items():
        assert source not in allowed
    assert asset_services.ALLOWED_TRANSITIONS[S.LOST] == {S.AVAILABLE}


def test_update_cannot_bypass_assign_or_return(db_session):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane)
    project = _project(db_session)

    with pytest.raises(HTTPException) as exc:
        asset_services.update_instance(
            db_session,
            instance_id=instance.id,
            payload=asset_schemas.AssetInstanceUpdate(status=S.IN_USE),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 409

    asset_services.assign_instance(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.AssignRequest(project_id=project.id),
        actor_user_id="pm-1",
    )
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        asset_services.update_instance(
            db_session,
            instance_id=instance.id,
            payload=asset_schemas.AssetInstanceUpdate(status=S.AVAILABLE, location="Yard B"),
            actor_user_id="pm-1",
        )
    assert exc.value.status_code == 409
    db_session.rollback()
    assert instance.status == S.IN_USE
    assert instance.project_id == project.id
    assert instance.location == "Marine Yard A"

    asset_services.update_instance(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.AssetInstanceUpdate(status=S.LOST),
        actor_user_id="pm-1",
    )
    db_session.commit()
    assert instance.status == S.LOST
    assert instance.project_id is None
    assert instance.assigned_to_id is None


def test_maintenance_side_effects(db_session):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane)

    record = asset_services.create_maintenance_record(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.MaintenanceRecordCreate(
            maintenance_type=asset_models.MaintenanceType.CORRECTIVE,
            status=asset_models.MaintenanceStatus.IN_PROGRESS,
            description="Replace hoist cable",
            maintenance_date=date(2024, 6, 10),
        ),
        actor_user_id="pm-1",
    )
    db_session.commit()
    assert instance.status == S.MAINTENANCE
    assert asset_services.list_movements(db_session, instance_id=instance.id)[0].movement_type == (
        asset_models.MovementType.MAINTENANCE
    )

    asset_services.update_maintenance_record(
        db_session,
        record_id=record.id,
        payload=asset_schemas.MaintenanceRecordUpdate(
            status=asset_models.MaintenanceStatus.COMPLETED,
            cost=Decimal("850"),
        ),
        actor_user_id="pm-1",
    )
    db_session.commit()
    assert instance.status == S.AVAILABLE
    assert instance.last_maintenance_date == date(2024, 6, 10)
    assert instance.next_maintenance_date == date(2024, 8, 9)


def test_upcoming_maintenance_window(db_session):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane)
    for day, state in ((5, "scheduled"), (20, "scheduled"), (45, "scheduled"), (3, "completed")):
        asset_services.create_maintenance_record(
            db_session,
            instance_id=instance.id,
            payload=asset_schemas.MaintenanceRecordCreate(
                maintenance_type=asset_models.MaintenanceType.PREVENTIVE,
                status=asset_models.MaintenanceStatus(state),
                description=f"Service day {day}",
                maintenance_date=date(2024, 7, 1) + timedelta(days=day - 1),
            ),
            actor_user_id="pm-1",
        )
    db_session.commit()

    upcoming = asset_services.upcoming_maintenance(db_session, today=date(2024, 7, 1))
    assert [r.description for r in upcoming] == ["Service day 5", "Service day 20"]


def test_attach_file_checks_type_and_size(db_session, tmp_path, monkeypatch):
    crane = _crane_type(db_session)
    instance = _instance(db_session, crane)
    record = asset_services.create_maintenance_record(
        db_session,
        instance_id=instance.id,
        payload=asset_schemas.MaintenanceRecordCreate(
            maintenance_type=asset_models.MaintenanceType.INSPECTION,
            description="Annual load test",
            maintenance_date=date(2024, 6, 1),
        ),
        actor_user_id="pm-1",
    )
    db_session.commit()

    attachment = asset_services.attach_maintenance_file(
        db_session,
        record_id=record.id,
        filename="load-test.pdf",
        content_type="application/pdf",
        stream=io.BytesIO(b"%PDF-1.4 test"),
        actor_user_id="pm-1",
        upload_dir=tmp_path,
    )
    db_session.commit()
    assert attachment.original_name == "load-test.pdf"
    assert attachment.file_size == 13
    assert (tmp_path / str(record.id) / attachment.file_name).exists()
    assert [f.id for f in asset_services.list_maintenance_files(db_session, record_id=record.id)] == [attachment.id]

    with pytest.raises(HTTPException) as exc:
        asset_services.attach_maintenance_file(
            db_session,
            record_id=record.id,
            filename="payload.exe",
            content_type="application/octet-stream",
            stream=io.BytesIO(b"MZ"),
            actor_user_id="pm-1",
            upload_dir=tmp_path,
        )
    assert exc.value.status_code == 400

    monkeypatch.setattr(asset_services, "MAINTENANCE_MAX_UPLOAD_BYTES", 8)
    with pytest.raises(HTTPException) as exc:
        asset_services.attach_maintenance_file(
            db_session,
            record_id=record.id,
            filename="photo.jpg",
            content_type="image/jpeg",
            stream=io.BytesIO(b"x" * 64),
            actor_user_id="pm-1",
            upload_dir=tmp_path,
        )
    assert exc.value.status_code == 413


def test_delete_type_refused_with_active_instances(db_session):
    crane = _crane_type(db_session)
    _instance(db_session, crane)

    with pytest.raises(HTTPException) as exc:
        asset_services.delete_asset_type(db_session, asset_type_id=crane.id)
    assert exc.value.status_code == 409

    spare = _crane_type(db_session, name="Spare Winch")
    asset_services.delete_asset_type(db_session, asset_type_id=spare.id)
    db_session.commit()
    assert [t.name for t in asset_services.list_asset_types(db_session)] == ["Marine Crane"]


def test_summary_and_seed(db_session):
    created = asset_services.seed_default_assets(db_session)
    db_session.commit()
    assert {t.name for t in created} == {
        "Marine Excavator",
        "Underwater Welding Machine",
        "Marine Crane",
        "Project Vehicle",
    }
    assert asset_services.seed_default_assets(db_session) == []

    crane = next(t for t in created if t.name == "Marine Crane")
    first = _instance(db_session, crane, tag="CRN-001")
    _instance(db_session, crane, tag="CRN-002")
    asset_services.assign_instance(
        db_session,
        instance_id=first.id,
        payload=asset_schemas.AssignRequest(project_id=_project(db_session).id),
        actor_user_id="pm-1",
    )
    db_session.commit()

    summary = asset_services.asset_summary(db_session)
    assert summary.total_assets == 2
    assert summary.total_value == Decimal("300000.00")
    assert summary.available == 1
    assert summary.in_use == 1
    assert summary.status_counts["stolen"] == 0
    assert summary.types[0].instance_count == 2
    assert summary.types[0].available_count == 1
    assert asset_services.count_assets_in_use(db_session) == 1


def test_asset_routes_registered():
    paths = {(route.path, method) for route in asset_router.router.routes for method in route.methods}
    assert ("/assets/instances/{instance_id}/assign", "POST") in paths
    assert ("/assets/instances/{instance_id}/return", "POST") in paths
    assert ("/assets/maintenance/{record_id}/files", "POST") in paths
    assert ("/assets/maintenance/files/{file_id}/download", "GET") in paths
    assert ("/assets/summary", "GET") in paths
