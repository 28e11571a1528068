"""
Projects app.

Vessel engagements with their crew assignments, daily activity log and
consumables, plus the cost and revenue rollup fed by inventory,
payroll, purchasing and sales.
"""

from . import models  # noqa: F401
