"""
Purchasing app.

Purchase request -> purchase order -> supplier invoice, with payments and
supplier credit notes. Invoice approval posts the payable to the ledger.
"""

from . import models  # noqa: F401
