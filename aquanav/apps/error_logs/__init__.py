"""Client error reports posted by the browser, reviewed by admins."""

from . import models  # noqa: F401
