"""0001_documents

Create the shared ``documents`` table holding the drivers, jobs and
receipts collections.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("collection", sa.String(64), nullable=False),
        sa.Column("id", sa.String(128), nullable=False),
        sa.Column(
            "data",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.current_timestamp(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.current_timestamp(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("collection", "id", name="pk_documents"),
    )

    # Snapshot ordering keys
    op.execute(
        "CREATE INDEX ix_documents_jobs_assigned_at ON documents "
        "((data ->> 'assignedAt') DESC) WHERE collection = 'jobs'"
    )
    op.execute(
        "CREATE INDEX ix_documents_receipts_date ON documents "
        "((data ->> 'date') DESC) WHERE collection = 'receipts'"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_documents_receipts_date")
    op.execute("DROP INDEX IF EXISTS ix_documents_jobs_assigned_at")
    op.drop_table("documents")
