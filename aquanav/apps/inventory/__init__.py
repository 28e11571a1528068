"""
Inventory app.

Items with running stock and weighted average cost. Goods receipts
write inflow transactions; goods issues write outflows, optionally
costed to a project.
"""

from . import models  # noqa: F401
