"""create tt_tasks

Revision ID: 5c1e2a9d7b40
Revises:
Create Date: 2026-10-19 10:12:41.318220

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5c1e2a9d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "tt_tasks",
        sa.Column("id", sa.String(length=64), primary_key=True),

        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),

        # whole aggregate: subtasks + dateAssignments
        sa.Column("document", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),

        sa.Column("row_version", sa.Integer(), nullable=False, server_default="1"),

        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),

        sa.CheckConstraint("row_version >= 1", name="ck_tt_tasks_row_version_positive"),
    )

    op.create_index("ix_tt_tasks_location", "tt_tasks", ["location"])


def downgrade():
    op.drop_index("ix_tt_tasks_location", table_name="tt_tasks")
    op.drop_table("tt_tasks")
