"""Initial schema: every Aquanav table.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2024-05-01 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
from sqlalchemy import inspect

import aquanav  # noqa: F401  registers every app's tables
from aquanav.database import Base


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return bool(insp.has_table(table_name))


def upgrade() -> None:
    bind = op.get_bind()
    # sorted_tables is in foreign-key dependency order
    for table in Base.metadata.sorted_tables:
        if _table_exists(table.name):
            continue
        table.create(bind=bind, checkfirst=False)


def downgrade() -> None:
    bind = op.get_bind()
    for table in reversed(Base.metadata.sorted_tables):
        if _table_exists(table.name):
            table.drop(bind=bind, checkfirst=False)
