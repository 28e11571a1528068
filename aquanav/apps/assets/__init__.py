"""
Assets app.

Rental equipment, tools and vehicles: asset types, tagged instances,
custody movements and maintenance records with file attachments.
"""

from . import models  # noqa: F401
