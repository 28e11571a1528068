"""
Payroll app.

Monthly entries per employee with addition and deduction lines. Every
change to an entry's totals rewrites its salary postings in the ledger.
"""

from . import models  # noqa: F401
