"""Employees app: crew records, next of kin, training and documents."""

from . import models  # noqa: F401
