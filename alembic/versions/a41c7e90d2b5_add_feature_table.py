"""add_feature_table

Revision ID: a41c7e90d2b5
Revises:
Create Date: 2026-10-12 09:14:52.118304

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a41c7e90d2b5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "feature",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("initiative_id", sa.Uuid(), nullable=True),
        sa.Column("track_id", sa.Uuid(), nullable=True),
        sa.Column("board_column", sa.String(length=32), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "board_column IN ('inbox', 'discovery', 'backlog', 'design',"
            " 'development', 'onHold', 'done', 'cancelled')",
            name="ck_feature_board_column",
        ),
        sa.CheckConstraint("position >= 0", name="ck_feature_position_nonneg"),
    )
    op.create_index("ix_feature_owner_id", "feature", ["owner_id"])
    op.create_index(
        "ix_feature_owner_column_position",
        "feature",
        ["owner_id", "board_column", "position"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_feature_owner_column_position", table_name="feature")
    op.drop_index("ix_feature_owner_id", table_name="feature")
    op.drop_table("feature")
