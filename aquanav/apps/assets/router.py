# aquanav/apps/assets/router.py

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import require_admin, require_roles, require_staff
from aquanav.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(prefix="/assets", tags=["assets"])

ASSET_WRITE_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.PROJECT_MANAGER,
]


# ---------------------------------------------------------------------------
# Asset types
# ---------------------------------------------------------------------------


@router.get("/types", response_model=List[schemas.AssetTypeRead])
def list_asset_types(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_asset_types(db)


@router.post("/types", response_model=schemas.AssetTypeRead, status_code=status.HTTP_201_CREATED)
def create_asset_type(
    payload: schemas.AssetTypeCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    asset_type = services.create_asset_type(db, payload=payload)
    db.commit()
    db.refresh(asset_type)
    return asset_type


@router.get("/types/{asset_type_id}", response_model=schemas.AssetTypeRead)
def get_asset_type(
    asset_type_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.get_asset_type(db, asset_type_id)


@router.put("/types/{asset_type_id}", response_model=schemas.AssetTypeRead)
def update_asset_type(
    asset_type_id: int,
    payload: schemas.AssetTypeUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    asset_type = services.update_asset_type(db, asset_type_id=asset_type_id, payload=payload)
    db.commit()
    db.refresh(asset_type)
    return asset_type


@router.delete("/types/{asset_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset_type(
    asset_type_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    services.delete_asset_type(db, asset_type_id=asset_type_id)
    db.commit()


@router.post("/seed", response_model=List[schemas.AssetTypeRead])
def seed_default_assets(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    created = services.seed_default_assets(db)
    db.commit()
    return created


@router.get("/summary", response_model=schemas.AssetSummary)
def asset_summary(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.asset_summary(db)


# ---------------------------------------------------------------------------
# Asset instances
# ---------------------------------------------------------------------------


@router.get("/instances", response_model=List[schemas.AssetInstanceRead])
def list_instances(
    status_filter: Optional[models.AssetStatus] = None,
    category: Optional[models.AssetCategory] = None,
    project_id: Optional[int] = None,
    assigned_to_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_instances(
        db,
        status_filter=status_filter,
        category=category,
        project_id=project_id,
        assigned_to_id=assigned_to_id,
    )


@router.post("/instances", response_model=schemas.AssetInstanceRead, status_code=status.HTTP_201_CREATED)
def create_instance(
    payload: schemas.AssetInstanceCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    instance = services.create_instance(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(instance)
    return instance


@router.get("/instances/by-tag/{asset_tag}", response_model=schemas.AssetInstanceRead)
def get_instance_by_tag(
    asset_tag: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.get_instance_by_tag(db, asset_tag)


@router.get("/instances/{instance_id}", response_model=schemas.AssetInstanceRead)
def get_instance(
    instance_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.get_instance(db, instance_id)


@router.put("/instances/{instance_id}", response_model=schemas.AssetInstanceRead)
def update_instance(
    instance_id: int,
    payload: schemas.AssetInstanceUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    instance = services.update_instance(
        db,
        instance_id=instance_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(instance)
    return instance


@router.post("/instances/{instance_id}/assign", response_model=schemas.AssetInstanceRead)
def assign_instance(
    instance_id: int,
    payload: schemas.AssignRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    instance = services.assign_instance(
        db,
        instance_id=instance_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(instance)
    return instance


@router.post("/instances/{instance_id}/return", response_model=schemas.AssetInstanceRead)
def return_instance(
    instance_id: int,
    payload: schemas.ReturnRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    instance = services.return_instance(
        db,
        instance_id=instance_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(instance)
    return instance


@router.post("/instances/{instance_id}/transfer", response_model=schemas.AssetInstanceRead)
def transfer_instance(
    instance_id: int,
    payload: schemas.TransferRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    instance = services.transfer_instance(
        db,
        instance_id=instance_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(instance)
    return instance


@router.get("/instances/{instance_id}/movements", response_model=List[schemas.AssetMovementRead])
def list_movements(
    instance_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_movements(db, instance_id=instance_id)


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


@router.get("/instances/{instance_id}/maintenance", response_model=List[schemas.MaintenanceRecordRead])
def list_instance_maintenance(
    instance_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    services.get_instance(db, instance_id)
    return services.list_maintenance_records(db, instance_id=instance_id)


@router.post(
    "/instances/{instance_id}/maintenance",
    response_model=schemas.MaintenanceRecordRead,
    status_code=status.HTTP_201_CREATED,
)
def create_maintenance_record(
    instance_id: int,
    payload: schemas.MaintenanceRecordCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    record = services.create_maintenance_record(
        db,
        instance_id=instance_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(record)
    return record


@router.get("/maintenance", response_model=List[schemas.MaintenanceRecordRead])
def list_maintenance_records(
    instance_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_maintenance_records(db, instance_id=instance_id)


@router.get("/maintenance/upcoming", response_model=List[schemas.MaintenanceRecordRead])
def upcoming_maintenance(
    days: int = Query(services.UPCOMING_MAINTENANCE_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.upcoming_maintenance(db, days=days)


@router.put("/maintenance/{record_id}", response_model=schemas.MaintenanceRecordRead)
def update_maintenance_record(
    record_id: int,
    payload: schemas.MaintenanceRecordUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    record = services.update_maintenance_record(
        db,
        record_id=record_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(record)
    return record


@router.post(
    "/maintenance/{record_id}/files",
    response_model=schemas.MaintenanceFileRead,
    status_code=status.HTTP_201_CREATED,
)
def upload_maintenance_file(
    record_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*ASSET_WRITE_ROLES)),
):
    attachment = services.attach_maintenance_file(
        db,
        record_id=record_id,
        filename=file.filename,
        content_type=file.content_type,
        stream=file.file,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(attachment)
    return attachment


@router.get("/maintenance/{record_id}/files", response_model=List[schemas.MaintenanceFileRead])
def list_maintenance_files(
    record_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_maintenance_files(db, record_id=record_id)


@router.get("/maintenance/files/{file_id}/download", response_class=FileResponse)
def download_maintenance_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    attachment = services.get_maintenance_file(db, file_id=file_id)
    path = Path(attachment.file_path)
    if not path.exists():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File is missing from storage.")
    return FileResponse(
        path=str(path),
        media_type=attachment.mime_type or "application/octet-stream",
        filename=attachment.original_name,
    )
