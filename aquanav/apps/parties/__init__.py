"""Parties app: customers, suppliers and supplier catalogues."""

from . import models  # noqa: F401
