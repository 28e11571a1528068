# aquanav/apps/projects/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import get_current_active_user, require_roles, require_staff
from aquanav.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(tags=["projects"])

PROJECT_WRITE_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.PROJECT_MANAGER,
]

PROJECT_FINANCE_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.FINANCE,
]

PLANNING_ROLES = [
    account_models.AccountRole.ADMIN,
    account_models.AccountRole.PROJECT_MANAGER,
    account_models.AccountRole.EMPLOYEE,
]


@router.get("/projects", response_model=List[schemas.ProjectRead])
def list_projects(
    status: Optional[models.ProjectStatus] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_projects(db, current_user=current_user, status=status, search=search)


@router.post("/projects", response_model=schemas.ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: schemas.ProjectCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    project = services.create_project(db, payload=payload)
    db.commit()
    db.refresh(project)
    return project


# Declared before /projects/{project_id} so "revenues" is not read as an id
@router.get("/projects/revenues", response_model=List[schemas.ProjectRevenueRead])
def project_revenues(
    project_ids: Optional[str] = Query(None, description="Comma-separated project ids"),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_FINANCE_ROLES)),
):
    results = services.project_revenues(db, project_ids=services.parse_project_ids(project_ids))
    db.commit()
    return results


@router.get("/projects/{project_id}", response_model=schemas.ProjectRead)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_project(db, project_id, current_user=current_user)


@router.put("/projects/{project_id}", response_model=schemas.ProjectRead)
def update_project(
    project_id: int,
    payload: schemas.ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    project = services.update_project(db, project_id=project_id, payload=payload)
    db.commit()
    db.refresh(project)
    return project


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    services.delete_project(db, project_id=project_id)
    db.commit()


@router.get("/projects/{project_id}/revenue", response_model=schemas.ProjectRevenueRead)
def project_revenue(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_FINANCE_ROLES)),
):
    result = services.project_revenue(db, project_id=project_id)
    db.commit()
    return result


# ---------------------------------------------------------------------------
# CREW
# ---------------------------------------------------------------------------


@router.get("/projects/{project_id}/employees", response_model=List[schemas.ProjectEmployeeRead])
def list_project_employees(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    rows = services.list_project_employees(db, project_id=project_id)
    return [services.assignment_to_read(row) for row in rows]


@router.post(
    "/projects/{project_id}/employees",
    response_model=List[schemas.ProjectEmployeeRead],
    status_code=status.HTTP_201_CREATED,
)
def assign_employees(
    project_id: int,
    payload: schemas.AssignEmployeesRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    rows = services.assign_employees(db, project_id=project_id, payload=payload)
    db.commit()
    for row in rows:
        db.refresh(row)
    return [services.assignment_to_read(row) for row in rows]


@router.delete("/projects/{project_id}/employees/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_employee(
    project_id: int,
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    services.remove_employee(db, project_id=project_id, employee_id=employee_id)
    db.commit()


# ---------------------------------------------------------------------------
# DAILY ACTIVITIES
# ---------------------------------------------------------------------------


@router.get("/daily-activities", response_model=List[schemas.DailyActivityRead])
def list_all_daily_activities(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    return services.list_daily_activities(db)


@router.get("/projects/{project_id}/daily-activities", response_model=List[schemas.DailyActivityRead])
def list_daily_activities(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_daily_activities(db, project_id=project_id)


@router.post(
    "/projects/{project_id}/daily-activities",
    response_model=schemas.DailyActivityRead,
    status_code=status.HTTP_201_CREATED,
)
def add_daily_activity(
    project_id: int,
    payload: schemas.DailyActivityCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    activity = services.add_daily_activity(
        db,
        project_id=project_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(activity)
    return activity


@router.get("/projects/{project_id}/planned-activities", response_model=schemas.PlannedActivityPage)
def list_planned_activities(
    project_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(services.DEFAULT_PAGE_SIZE, ge=1, le=services.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_planned_activities(db, project_id=project_id, page=page, limit=limit)


@router.post(
    "/projects/{project_id}/planned-activities",
    response_model=List[schemas.PlannedActivityRead],
    status_code=status.HTTP_201_CREATED,
)
def save_planned_activities(
    project_id: int,
    payload: List[schemas.PlannedActivityCreate],
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PLANNING_ROLES)),
):
    rows = services.save_planned_activities(
        db,
        project_id=project_id,
        activities=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


# ---------------------------------------------------------------------------
# CONSUMABLES
# ---------------------------------------------------------------------------


@router.get("/projects/{project_id}/consumables", response_model=List[schemas.ConsumableRead])
def list_consumables(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_staff),
):
    return services.list_consumables(db, project_id=project_id)


@router.post(
    "/projects/{project_id}/consumables",
    response_model=schemas.ConsumableRead,
    status_code=status.HTTP_201_CREATED,
)
def record_consumables(
    project_id: int,
    payload: schemas.ConsumableCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PROJECT_WRITE_ROLES)),
):
    consumable = services.record_consumables(
        db,
        project_id=project_id,
        payload=payload,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(consumable)
    return consumable
