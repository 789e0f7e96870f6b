"""Create diary table

Revision ID: 001
Revises: None
Create Date: 2026-10-16 00:00:00.000000+00:00

What:  Creates the `diary` table holding one row per diary entry.
Rollback: downgrade() drops the table (all entries are lost; image
          directories on disk are not touched).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "diary",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(50), nullable=False),
        sa.Column("content", sa.String(500), nullable=False),
        sa.Column(
            "image_path",
            sa.String(255),
            nullable=True,
            comment="File name of the current image inside images/<id>/",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("diary")
