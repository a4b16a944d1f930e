"""Member search indexes: pg_trgm GIN on name/email/phone, lower() B-tree for exact matches.

The GIN indexes serve the ILIKE and % prefilters of the pushed-down member
search; similarity() and strpos() are only evaluated on the rows they return.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op


revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ILIKE '%q%' and col % q on the searchable columns
    op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")
    for column in ("name", "email", "phone"):
        op.execute(
            f"CREATE INDEX IF NOT EXISTS ix_members_{column}_gin_trgm "
            f"ON members USING GIN ({column} gin_trgm_ops)"
        )

    # exact matches compare lower(column)
    for column in ("name", "email"):
        op.execute(
            f"CREATE INDEX IF NOT EXISTS ix_members_{column}_lower "
            f"ON members (lower({column}))"
        )


def downgrade() -> None:
    for column in ("name", "email"):
        op.execute(f"DROP INDEX IF EXISTS ix_members_{column}_lower")
    for column in ("name", "email", "phone"):
        op.execute(f"DROP INDEX IF EXISTS ix_members_{column}_gin_trgm")
