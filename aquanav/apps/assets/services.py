# aquanav/apps/assets/services.py

from __future__ import annotations

import logging
import os
import uuid
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Set

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from aquanav.apps.audit import schemas as audit_schemas
from aquanav.apps.audit import services as audit_services
from aquanav.apps.employees import models as employee_models
from aquanav.apps.projects import models as project_models
from aquanav.utils import currency
from . import models, schemas

logger = logging.getLogger(__name__)

# Override per environment, e.g. MAINTENANCE_UPLOAD_DIR=/var/lib/aquanav/uploads/maintenance
MAINTENANCE_UPLOAD_DIR = Path(os.getenv("MAINTENANCE_UPLOAD_DIR", "uploads/maintenance")).resolve()
MAINTENANCE_MAX_UPLOAD_BYTES = int(os.getenv("MAINTENANCE_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
ALLOWED_MAINTENANCE_EXTS = {
    ".jpeg",
    ".jpg",
    ".png",
    ".gif",
    ".pdf",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
    ".txt",
}

UPCOMING_MAINTENANCE_DAYS = 30

S = models.AssetStatus
ALLOWED_TRANSITIONS: Dict[models.AssetStatus, Set[models.AssetStatus]] = {
    S.AVAILABLE: {S.IN_USE, S.MAINTENANCE, S.UNDER_REPAIR, S.RETIRED, S.LOST, S.STOLEN},
    S.IN_USE: {S.AVAILABLE, S.MAINTENANCE, S.UNDER_REPAIR, S.LOST, S.STOLEN},
    S.MAINTENANCE: {S.AVAILABLE, S.RETIRED},
    S.UNDER_REPAIR: {S.AVAILABLE, S.RETIRED},
    S.RETIRED: set(),
    S.LOST: {S.AVAILABLE},
    S.STOLEN: {S.AVAILABLE},
}

DEFAULT_ASSET_TYPES = [
    {
        "name": "Marine Excavator",
        "category": models.AssetCategory.EQUIPMENT,
        "manufacturer": "Caterpillar",
        "model": "320D",
        "description": "Heavy duty excavator for marine construction projects",
        "default_monthly_rental_rate": Decimal("1200.00"),
        "warranty_period_months": 24,
        "maintenance_interval_days": 90,
    },
    {
        "name": "Underwater Welding Machine",
        "category": models.AssetCategory.EQUIPMENT,
        "manufacturer": "Miller",
        "model": "Syncrowave 200",
        "description": "Welding equipment for underwater and surface welding",
        "default_monthly_rental_rate": Decimal("150.00"),
        "warranty_period_months": 12,
        "maintenance_interval_days": 30,
    },
    {
        "name": "Marine Crane",
        "category": models.AssetCategory.EQUIPMENT,
        "manufacturer": "Liebherr",
        "model": "LTM 1030-2.1",
        "description": "Mobile crane for heavy lifting in port operations",
        "default_monthly_rental_rate": Decimal("2000.00"),
        "warranty_period_months": 36,
        "maintenance_interval_days": 60,
    },
    {
        "name": "Project Vehicle",
        "category": models.AssetCategory.VEHICLES,
        "manufacturer": "Ford",
        "model": "F-150",
        "description": "Pickup truck for project transportation and light duty work",
        "default_monthly_rental_rate": Decimal("80.00"),
        "warranty_period_months": 36,
        "maintenance_interval_days": 180,
    },
]


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


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


# ---------------------------------------------------------------------------
# Asset types
# ---------------------------------------------------------------------------


def list_asset_types(db: Session) -> List[models.AssetType]:
    return (
        db.query(models.AssetType)
        .filter(models.AssetType.is_active.is_(True))
        .order_by(models.AssetType.name.asc())
        .all()
    )


def get_asset_type(db: Session, asset_type_id: int) -> models.AssetType:
    asset_type = db.get(models.AssetType, asset_type_id)
    if not asset_type:
        raise HTTPException(status_code=404, detail="Asset type not found")
    return asset_type


def create_asset_type(db: Session, *, payload: schemas.AssetTypeCreate) -> models.AssetType:
    if db.query(models.AssetType).filter(models.AssetType.name == payload.name).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Asset type name already exists")
    data = payload.model_dump()
    data["currency"] = currency.require_valid_currency(data["currency"])
    asset_type = models.AssetType(**data)
    db.add(asset_type)
    db.flush()
    logger.info("Asset type created", extra={"asset_type_id": asset_type.id, "asset_type": asset_type.name})
    return asset_type


def update_asset_type(
    db: Session,
    *,
    asset_type_id: int,
    payload: schemas.AssetTypeUpdate,
) -> models.AssetType:
    asset_type = get_asset_type(db, asset_type_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("currency") is not None:
        data["currency"] = currency.require_valid_currency(data["currency"])
    for field, value in data.items():
        setattr(asset_type, field, value)
    db.add(asset_type)
    db.flush()
    return asset_type


def delete_asset_type(db: Session, *, asset_type_id: int) -> None:
    """Deactivates the type. Refused while active instances still use it."""
    asset_type = get_asset_type(db, asset_type_id)
    in_use = (
        db.query(func.count(models.AssetInstance.id))
        .filter(
            models.AssetInstance.asset_type_id == asset_type.id,
            models.AssetInstance.is_active.is_(True),
        )
        .scalar()
    )
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Asset type has {in_use} active instance(s) and cannot be deleted.",
        )
    asset_type.is_active = False
    db.add(asset_type)
    db.flush()


def seed_default_assets(db: Session) -> List[models.AssetType]:
    """Create the standard asset types that do not exist yet. Safe to rerun."""
    existing = {name for (name,) in db.query(models.AssetType.name).all()}
    created = []
    for defaults in DEFAULT_ASSET_TYPES:
        if defaults["name"] in existing:
            continue
        asset_type = models.AssetType(currency=currency.DEFAULT_CURRENCY, is_active=True, **defaults)
        db.add(asset_type)
        created.append(asset_type)
    db.flush()
    if created:
        logger.info("Seeded asset types", extra={"count": len(created)})
    return created


# ---------------------------------------------------------------------------
# Asset instances
# ---------------------------------------------------------------------------


def list_instances(
    db: Session,
    *,
    status_filter: Optional[models.AssetStatus] = None,
    category: Optional[models.AssetCategory] = None,
    project_id: Optional[int] = None,
    assigned_to_id: Optional[int] = None,
) -> List[models.AssetInstance]:
    query = db.query(models.AssetInstance).filter(models.AssetInstance.is_active.is_(True))
    if status_filter is not None:
        query = query.filter(models.AssetInstance.status == status_filter)
    if category is not None:
        query = query.join(models.AssetType, models.AssetInstance.asset_type_id == models.AssetType.id).filter(
            models.AssetType.category == category
        )
    if project_id is not None:
        query = query.filter(models.AssetInstance.project_id == project_id)
    if assigned_to_id is not None:
        query = query.filter(models.AssetInstance.assigned_to_id == assigned_to_id)
    return query.order_by(models.AssetInstance.asset_tag.asc()).all()


def get_instance(db: Session, instance_id: int) -> models.AssetInstance:
    instance = db.get(models.AssetInstance, instance_id)
    if not instance:
        raise HTTPException(status_code=404, detail="Asset not found")
    return instance


def get_instance_by_tag(db: Session, asset_tag: str) -> models.AssetInstance:
    instance = db.query(models.AssetInstance).filter(models.AssetInstance.asset_tag == asset_tag).first()
    if not instance:
        raise HTTPException(status_code=404, detail="Asset not found")
    return instance


def _lock_instance(db: Session, instance_id: int) -> models.AssetInstance:
    instance = (
        db.query(models.AssetInstance)
        .filter(models.AssetInstance.id == instance_id)
        .with_for_update()
        .first()
    )
    if not instance:
        raise HTTPException(status_code=404, detail="Asset not found")
    return instance


def create_instance(
    db: Session,
    *,
    payload: schemas.AssetInstanceCreate,
    actor_user_id: Optional[str],
) -> models.AssetInstance:
    asset_type = get_asset_type(db, payload.asset_type_id)
    if db.query(models.AssetInstance).filter(models.AssetInstance.asset_tag == payload.asset_tag).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Asset tag already exists")

    data = payload.model_dump()
    if data["monthly_rental_amount"] is None:
        data["monthly_rental_amount"] = asset_type.default_monthly_rental_rate
    if data["warranty_expiry_date"] is None and data["acquisition_date"] is not None:
        data["warranty_expiry_date"] = data["acquisition_date"] + timedelta(
            days=30 * (asset_type.warranty_period_months or 0)
        )
    instance = models.AssetInstance(created_by=actor_user_id, **data)
    db.add(instance)
    db.flush()
    _audit_event(
        db,
        entity_type="AssetInstance",
        entity_id=str(instance.id),
        action="create",
        actor_user_id=actor_user_id,
        after={"asset_tag": instance.asset_tag, "status": instance.status.value},
    )
    return instance


def _ensure_transition(instance: models.AssetInstance, new_status: models.AssetStatus) -> None:
    if new_status == instance.status:
        return
    if new_status not in ALLOWED_TRANSITIONS[instance.status]:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move asset from {instance.status.value} to {new_status.value}.",
        )


def _record_movement(
    db: Session,
    instance: models.AssetInstance,
    *,
    movement_type: models.MovementType,
    from_location: Optional[str],
    to_location: Optional[str],
    actor_user_id: Optional[str],
    project_id: Optional[int] = None,
    employee_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> models.AssetMovement:
    movement = models.AssetMovement(
        asset_instance_id=instance.id,
        movement_type=movement_type,
        from_location=from_location,
        to_location=to_location,
        project_id=project_id,
        employee_id=employee_id,
        reason=reason,
        created_by=actor_user_id,
    )
    db.add(movement)
    return movement


def update_instance(
    db: Session,
    *,
    instance_id: int,
    payload: schemas.AssetInstanceUpdate,
    actor_user_id: Optional[str],
) -> models.AssetInstance:
    instance = _lock_instance(db, instance_id)
    data = payload.model_dump(exclude_unset=True)
    new_status = data.pop("status", None)
    status_changed = new_status is not None and new_status != instance.status
    if status_changed:
        _ensure_transition(instance, new_status)
        if new_status == S.IN_USE:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Use the assign action to put an asset in use",
            )
        if instance.status == S.IN_USE and new_status == S.AVAILABLE:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Use the return action to make an asset in use available",
            )

    previous_location = instance.location
    for field, value in data.items():
        setattr(instance, field, value)

    if status_changed:
        previous = instance.status
        instance.status = new_status
        if previous == S.IN_USE:
            # leaving in_use ends the current assignment
            instance.project_id = None
            instance.assigned_to_id = None
        if new_status in (S.MAINTENANCE, S.UNDER_REPAIR):
            _record_movement(
                db,
                instance,
                movement_type=(
                    models.MovementType.MAINTENANCE if new_status == S.MAINTENANCE else models.MovementType.REPAIR
                ),
                from_location=previous_location,
                to_location=instance.location,
                actor_user_id=actor_user_id,
            )
        _audit_event(
            db,
            entity_type="AssetInstance",
            entity_id=str(instance.id),
            action="status_change",
            actor_user_id=actor_user_id,
            after={"from": previous.value, "to": new_status.value},
        )

    db.add(instance)
    db.flush()
    return instance


def assign_instance(
    db: Session,
    *,
    instance_id: int,
    payload: schemas.AssignRequest,
    actor_user_id: Optional[str],
) -> models.AssetInstance:
    if payload.project_id is None and payload.employee_id is None:
        raise HTTPException(status_code=400, detail="A project or an employee is required")
    if payload.project_id is not None and db.get(project_models.Project, payload.project_id) is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if payload.employee_id is not None and db.get(employee_models.Employee, payload.employee_id) is None:
        raise HTTPException(status_code=404, detail="Employee not found")

    instance = _lock_instance(db, instance_id)
    if instance.status != S.AVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Asset is not available for assignment",
        )

    from_location = instance.location
    instance.status = S.IN_USE
    instance.project_id = payload.project_id
    instance.assigned_to_id = payload.employee_id
    if payload.location:
        instance.location = payload.location
    db.add(instance)
    _record_movement(
        db,
        instance,
        movement_type=models.MovementType.ASSIGNMENT,
        from_location=from_location,
        to_location=instance.location,
        project_id=payload.project_id,
        employee_id=payload.employee_id,
        reason=payload.reason,
        actor_user_id=actor_user_id,
    )
    db.flush()
    _audit_event(
        db,
        entity_type="AssetInstance",
        entity_id=str(instance.id),
        action="assign",
        actor_user_id=actor_user_id,
        after={"project_id": payload.project_id, "employee_id": payload.employee_id},
    )
    logger.info(
        "Asset assigned",
        extra={"asset_id": instance.id, "project_id": payload.project_id, "employee_id": payload.employee_id},
    )
    return instance


def return_instance(
    db: Session,
    *,
    instance_id: int,
    payload: schemas.ReturnRequest,
    actor_user_id: Optional[str],
) -> models.AssetInstance:
    instance = _lock_instance(db, instance_id)
    if instance.status != S.IN_USE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only assets in use can be returned",
        )

    from_location = instance.location
    project_id = instance.project_id
    employee_id = instance.assigned_to_id
    instance.status = S.AVAILABLE
    instance.project_id = None
    instance.assigned_to_id = None
    if payload.location:
        instance.location = payload.location
    if payload.condition is not None:
        instance.condition = payload.condition
    db.add(instance)
    _record_movement(
        db,
        instance,
        movement_type=models.MovementType.RETURN,
        from_location=from_location,
        to_location=instance.location,
        project_id=project_id,
        employee_id=employee_id,
        reason=payload.reason,
        actor_user_id=actor_user_id,
    )
    db.flush()
    _audit_event(
        db,
        entity_type="AssetInstance",
        entity_id=str(instance.id),
        action="return",
        actor_user_id=actor_user_id,
        after={"condition": instance.condition.value, "location": instance.location},
    )
    return instance


def transfer_instance(
    db: Session,
    *,
    instance_id: int,
    payload: schemas.TransferRequest,
    actor_user_id: Optional[str],
) -> models.AssetInstance:
    if payload.project_id is not None and db.get(project_models.Project, payload.project_id) is None:
        raise HTTPException(status_code=404, detail="Project not found")

    instance = _lock_instance(db, instance_id)
    if instance.status not in (S.IN_USE, S.AVAILABLE):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only available or in-use assets can be transferred",
        )

    from_location = instance.location
    instance.location = payload.to_location
    if payload.project_id is not None:
        instance.project_id = payload.project_id
    db.add(instance)
    _record_movement(
        db,
        instance,
        movement_type=models.MovementType.TRANSFER,
        from_location=from_location,
        to_location=payload.to_location,
        project_id=instance.project_id,
        employee_id=instance.assigned_to_id,
        reason=payload.reason,
        actor_user_id=actor_user_id,
    )
    db.flush()
    return instance


def list_movements(db: Session, *, instance_id: int) -> List[models.AssetMovement]:
    get_instance(db, instance_id)
    return (
        db.query(models.AssetMovement)
        .filter(models.AssetMovement.asset_instance_id == instance_id)
        .order_by(models.AssetMovement.created_at.desc(), models.AssetMovement.id.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


def get_maintenance_record(db: Session, record_id: int) -> models.MaintenanceRecord:
    record = db.get(models.MaintenanceRecord, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Maintenance record not found")
    return record


def list_maintenance_records(
    db: Session,
    *,
    instance_id: Optional[int] = None,
) -> List[models.MaintenanceRecord]:
    query = db.query(models.MaintenanceRecord)
    if instance_id is not None:
        query = query.filter(models.MaintenanceRecord.asset_instance_id == instance_id)
    return query.order_by(
        models.MaintenanceRecord.maintenance_date.desc(),
        models.MaintenanceRecord.id.desc(),
    ).all()


def _apply_maintenance_effects(
    db: Session,
    record: models.MaintenanceRecord,
    instance: models.AssetInstance,
    *,
    actor_user_id: Optional[str],
) -> None:
    if record.status == models.MaintenanceStatus.IN_PROGRESS and instance.status != S.MAINTENANCE:
        _ensure_transition(instance, S.MAINTENANCE)
        instance.status = S.MAINTENANCE
        _record_movement(
            db,
            instance,
            movement_type=models.MovementType.MAINTENANCE,
            from_location=instance.location,
            to_location=instance.location,
            reason=record.description,
            actor_user_id=actor_user_id,
        )
    elif record.status == models.MaintenanceStatus.COMPLETED:
        interval = instance.asset_type.maintenance_interval_days if instance.asset_type else 90
        instance.last_maintenance_date = record.maintenance_date
        instance.next_maintenance_date = record.next_scheduled_date or (
            record.maintenance_date + timedelta(days=interval)
        )
        if instance.status == S.MAINTENANCE:
            instance.status = S.AVAILABLE
    db.add(instance)


def create_maintenance_record(
    db: Session,
    *,
    instance_id: int,
    payload: schemas.MaintenanceRecordCreate,
    actor_user_id: Optional[str],
) -> models.MaintenanceRecord:
    instance = _lock_instance(db, instance_id)
    record = models.MaintenanceRecord(
        asset_instance_id=instance.id,
        created_by=actor_user_id,
        **payload.model_dump(),
    )
    db.add(record)
    _apply_maintenance_effects(db, record, instance, actor_user_id=actor_user_id)
    db.flush()
    _audit_event(
        db,
        entity_type="MaintenanceRecord",
        entity_id=str(record.id),
        action="create",
        actor_user_id=actor_user_id,
        after={"asset_instance_id": instance.id, "status": record.status.value},
    )
    return record


def update_maintenance_record(
    db: Session,
    *,
    record_id: int,
    payload: schemas.MaintenanceRecordUpdate,
    actor_user_id: Optional[str],
) -> models.MaintenanceRecord:
    record = get_maintenance_record(db, record_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(record, field, value)
    db.add(record)
    instance = _lock_instance(db, record.asset_instance_id)
    _apply_maintenance_effects(db, record, instance, actor_user_id=actor_user_id)
    db.flush()
    return record


def upcoming_maintenance(
    db: Session,
    *,
    days: int = UPCOMING_MAINTENANCE_DAYS,
    today: Optional[date] = None,
) -> List[models.MaintenanceRecord]:
    horizon = (today or date.today()) + timedelta(days=days)
    return (
        db.query(models.MaintenanceRecord)
        .filter(
            models.MaintenanceRecord.status == models.MaintenanceStatus.SCHEDULED,
            models.MaintenanceRecord.maintenance_date <= horizon,
        )
        .order_by(models.MaintenanceRecord.maintenance_date.asc(), models.MaintenanceRecord.id.asc())
        .all()
    )


def _ensure_safe_path(base_dir: Path, path: Path) -> Path:
    resolved = path.resolve()
    if not str(resolved).startswith(str(base_dir.resolve())):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file path.")
    return resolved


def _save_upload(stream: BinaryIO, dest_path: Path, max_bytes: int) -> int:
    total = 0
    with dest_path.open("wb") as out:
        while True:
            chunk = stream.read(1024 * 1024)
            if not chunk:
                break
            total += len(chunk)
            if max_bytes and total > max_bytes:
                out.close()
                dest_path.unlink()
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail="File exceeds the 10 MB upload limit.",
                )
            out.write(chunk)
    return total


def attach_maintenance_file(
    db: Session,
    *,
    record_id: int,
    filename: Optional[str],
    content_type: Optional[str],
    stream: BinaryIO,
    actor_user_id: Optional[str],
    upload_dir: Optional[Path] = None,
) -> models.MaintenanceFile:
    record = get_maintenance_record(db, record_id)
    original_name = filename or "attachment"
    ext = Path(original_name).suffix.lower()
    if ext not in ALLOWED_MAINTENANCE_EXTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File type not allowed. Use one of: " + ", ".join(sorted(ALLOWED_MAINTENANCE_EXTS)),
        )

    base_dir = (upload_dir or MAINTENANCE_UPLOAD_DIR).resolve()
    folder = base_dir / str(record.id)
    folder.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}{ext}"
    dest_path = _ensure_safe_path(base_dir, folder / stored_name)
    size = _save_upload(stream, dest_path, MAINTENANCE_MAX_UPLOAD_BYTES)

    attachment = models.MaintenanceFile(
        maintenance_record_id=record.id,
        file_name=stored_name,
        original_name=original_name,
        file_path=str(dest_path),
        file_size=size,
        mime_type=content_type,
        uploaded_by=actor_user_id,
    )
    db.add(attachment)
    db.flush()
    logger.info(
        "Maintenance file stored",
        extra={"maintenance_record_id": record.id, "file_id": attachment.id, "size": size},
    )
    return attachment


def list_maintenance_files(db: Session, *, record_id: int) -> List[models.MaintenanceFile]:
    return list(get_maintenance_record(db, record_id).files)


def get_maintenance_file(db: Session, *, file_id: int) -> models.MaintenanceFile:
    attachment = db.get(models.MaintenanceFile, file_id)
    if not attachment:
        raise HTTPException(status_code=404, detail="File not found")
    return attachment


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def asset_summary(db: Session) -> schemas.AssetSummary:
    instances = db.query(models.AssetInstance).filter(models.AssetInstance.is_active.is_(True)).all()

    status_counts = {s.value: 0 for s in models.AssetStatus}
    per_type: Dict[int, schemas.AssetTypeSummary] = {}
    total_value = Decimal("0.00")
    for instance in instances:
        value = _money(instance.current_value)
        total_value += value
        status_counts[instance.status.value] += 1

        row = per_type.get(instance.asset_type_id)
        if row is None:
            row = schemas.AssetTypeSummary(
                asset_type_id=instance.asset_type_id,
                name=instance.asset_type.name,
                category=instance.asset_type.category,
                instance_count=0,
                available_count=0,
                total_value=Decimal("0.00"),
            )
            per_type[instance.asset_type_id] = row
        row.instance_count += 1
        if instance.status == S.AVAILABLE:
            row.available_count += 1
        row.total_value += value

    return schemas.AssetSummary(
        total_assets=len(instances),
        total_value=total_value,
        status_counts=status_counts,
        types=sorted(per_type.values(), key=lambda r: r.name),
        available=status_counts[S.AVAILABLE.value],
        in_use=status_counts[S.IN_USE.value],
        maintenance=status_counts[S.MAINTENANCE.value],
        retired=status_counts[S.RETIRED.value],
    )


def count_assets_in_use(db: Session) -> int:
    return (
        db.query(func.count(models.AssetInstance.id))
        .filter(models.AssetInstance.is_active.is_(True), models.AssetInstance.status == S.IN_USE)
        .scalar()
    )
