"""
Audit app.

Append-only record of who changed which entity, written by the other
apps' services in the same transaction as the change itself.
"""

from . import models  # noqa: F401
