# aquanav/apps/dashboard/services.py

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from aquanav.apps.assets import services as asset_services
from aquanav.apps.employees import models as employee_models
from aquanav.apps.inventory import services as inventory_services
from aquanav.apps.ledger import services as ledger_services
from aquanav.apps.projects import models as project_models
from aquanav.apps.sales import models as sales_models
from . import schemas

MONEY = Decimal("0.01")


def _month_bounds(day: date) -> Tuple[date, date]:
    """Return (first day of the month, first day of the next month)."""
    start = day.replace(day=1)
    next_start = (start + timedelta(days=32)).replace(day=1)
    return start, next_start


def _count_projects(db: Session, status_value: project_models.ProjectStatus) -> int:
    return (
        db.query(func.count(project_models.Project.id))
        .filter(project_models.Project.status == status_value)
        .scalar()
        or 0
    )


def _revenue_between(db: Session, start: date, end: date) -> Decimal:
    SI = sales_models.SalesInvoice
    total = (
        db.query(func.coalesce(func.sum(SI.total), 0))
        .filter(
            SI.status != sales_models.SalesInvoiceStatus.DRAFT,
            SI.invoice_date >= start,
            SI.invoice_date < end,
        )
        .scalar()
    )
    return Decimal(str(total or 0)).quantize(MONEY)


def _change_percent(current: Decimal, previous: Decimal) -> float:
    if previous == 0:
        return 0.0
    return round(float((current - previous) / previous * 100), 2)


def dashboard_stats(db: Session, *, today: Optional[date] = None) -> schemas.DashboardStats:
    today = today or date.today()
    month_start, next_month_start = _month_bounds(today)
    previous_month_start, _ = _month_bounds(month_start - timedelta(days=1))

    monthly = _revenue_between(db, month_start, next_month_start)
    previous = _revenue_between(db, previous_month_start, month_start)

    total_employees = (
        db.query(func.count(employee_models.Employee.id))
        .filter(employee_models.Employee.is_active.is_(True))
        .scalar()
        or 0
    )

    return schemas.DashboardStats(
        active_projects=_count_projects(db, project_models.ProjectStatus.IN_PROGRESS),
        completed_projects=_count_projects(db, project_models.ProjectStatus.COMPLETED),
        total_employees=total_employees,
        low_stock_items=inventory_services.count_low_stock_items(db),
        monthly_revenue=monthly,
        previous_month_revenue=previous,
        revenue_change_percent=_change_percent(monthly, previous),
        outstanding_receivables=ledger_services.outstanding_receivables(db),
        upcoming_maintenance=len(asset_services.upcoming_maintenance(db, today=today)),
        assets_in_use=asset_services.count_assets_in_use(db) or 0,
    )
