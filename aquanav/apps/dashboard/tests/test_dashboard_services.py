from __future__ import annotations

from datetime import date
from decimal import Decimal

from aquanav.apps.assets import models as asset_models
from aquanav.apps.dashboard import router as dashboard_router
from aquanav.apps.dashboard import services as dashboard_services
from aquanav.apps.employees import models as employee_models
from aquanav.apps.inventory import models as inventory_models
from aquanav.apps.projects import models as project_models
from aquanav.apps.sales import models as sales_models

TODAY = date(2024, 6, 15)


def _invoice(db, invoice_date, total, *, status=sales_models.SalesInvoiceStatus.UNPAID, paid="0"):
    db.add(
        sales_models.SalesInvoice(
            invoice_date=invoice_date,
            due_date=invoice_date,
            status=status,
            subtotal=Decimal(total),
            total=Decimal(total),
            paid_amount=Decimal(paid),
        )
    )


def test_empty_database_gives_zeroes(db_session):
    stats = dashboard_services.dashboard_stats(db_session, today=TODAY)

    assert stats.active_projects == 0
    assert stats.monthly_revenue == Decimal("0.00")
    assert stats.revenue_change_percent == 0.0
    assert stats.assets_in_use == 0


def test_dashboard_stats_counts_and_revenue(db_session):
    P = project_models.ProjectStatus
    db_session.add_all(
        [
            project_models.Project(title="Hull survey", status=P.IN_PROGRESS, locations=[]),
            project_models.Project(title="Propeller polish", status=P.IN_PROGRESS, locations=[]),
            project_models.Project(title="Anode renewal", status=P.COMPLETED, locations=[]),
            employee_models.Employee(employee_code="EMP-001", first_name="Sam", last_name="Diver"),
            employee_models.Employee(
                employee_code="EMP-002", first_name="Alex", last_name="Tender", is_active=False
            ),
            inventory_models.InventoryItem(
                name="Welding rods",
                category=inventory_models.InventoryCategoryEnum.CONSUMABLES,
                unit="box",
                current_stock=2,
                min_stock_level=5,
            ),
            inventory_models.InventoryItem(
                name="Gloves",
                category=inventory_models.InventoryCategoryEnum.CONSUMABLES,
                unit="pair",
                current_stock=50,
                min_stock_level=5,
            ),
        ]
    )
    _invoice(db_session, date(2024, 6, 3), "1500", paid="500")
    _invoice(db_session, date(2024, 6, 20), "500")
    _invoice(db_session, date(2024, 6, 10), "9999", status=sales_models.SalesInvoiceStatus.DRAFT)
    _invoice(db_session, date(2024, 5, 31), "1000", status=sales_models.SalesInvoiceStatus.PAID, paid="1000")

    asset_type = asset_models.AssetType(
        name="Dive Compressor",
        category=asset_models.AssetCategory.EQUIPMENT,
    )
    db_session.add(asset_type)
    db_session.flush()
    db_session.add(
        asset_models.AssetInstance(
            asset_type_id=asset_type.id,
            asset_tag="AST-0001",
            status=asset_models.AssetStatus.IN_USE,
        )
    )
    db_session.commit()

    stats = dashboard_services.dashboard_stats(db_session, today=TODAY)

    assert stats.active_projects == 2
    assert stats.completed_projects == 1
    assert stats.total_employees == 1
    assert stats.low_stock_items == 1
    assert stats.monthly_revenue == Decimal("2000.00")
    assert stats.previous_month_revenue == Decimal("1000.00")
    assert stats.revenue_change_percent == 100.0
    assert stats.outstanding_receivables == Decimal("1500.00")
    assert stats.assets_in_use == 1
    assert stats.upcoming_maintenance == 0


def test_month_bounds_across_year_end():
    assert dashboard_services._month_bounds(date(2024, 12, 31)) == (date(2024, 12, 1), date(2025, 1, 1))


def test_dashboard_route_registered():
    paths = {route.path for route in dashboard_router.router.routes}
    assert "/dashboard/stats" in paths
