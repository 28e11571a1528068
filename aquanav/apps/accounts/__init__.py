"""
Accounts app.

Users, roles and login, the single company profile, and the
idempotency keys used by retry-safe write endpoints.
"""

from . import models  # noqa: F401
