# aquanav/__init__.py
"""
Import ORM models from each app so that Alembic and
Base.metadata.create_all() see every table.

The model classes themselves live in aquanav/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # users, company, idempotency keys
from .apps.audit import models as audit_models                # audit trail
from .apps.parties import models as parties_models            # customers + suppliers
from .apps.employees import models as employees_models        # crew + office staff
from .apps.inventory import models as inventory_models        # stock items + transactions
from .apps.projects import models as projects_models          # vessel engagements
from .apps.payroll import models as payroll_models            # monthly payroll
from .apps.sales import models as sales_models                # quotations, invoices, credit notes
from .apps.purchasing import models as purchasing_models      # requests, orders, supplier invoices
from .apps.ledger import models as ledger_models              # general ledger
from .apps.assets import models as assets_models              # asset register + maintenance
from .apps.error_logs import models as error_logs_models      # client error reports

__all__ = [
    "accounts_models",
    "audit_models",
    "parties_models",
    "employees_models",
    "inventory_models",
    "projects_models",
    "payroll_models",
    "sales_models",
    "purchasing_models",
    "ledger_models",
    "assets_models",
    "error_logs_models",
]
