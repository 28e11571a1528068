"""
Sales app.

Quotation -> proforma -> sales invoice, with payments and credit notes
against invoices. Approval and payments post to the general ledger.
"""

from . import models  # noqa: F401
