"""
General ledger app.

Named-account debit/credit lines written in balanced sets by the sales,
purchasing and payroll services, plus manual journals and the trial
balance and aging reports.
"""

from . import models  # noqa: F401
