# aquanav/apps/dashboard/schemas.py

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class DashboardStats(BaseModel):
    active_projects: int
    completed_projects: int
    total_employees: int
    low_stock_items: int
    monthly_revenue: Decimal
    previous_month_revenue: Decimal
    revenue_change_percent: float
    outstanding_receivables: Decimal
    upcoming_maintenance: int
    assets_in_use: int
