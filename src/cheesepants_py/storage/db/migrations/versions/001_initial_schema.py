"""Initial schema for game records.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from advanced_alchemy.types import GUID, DateTimeUTC
from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the game_records table."""
    op.create_table(
        "game_records",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("game_id", sa.String(255), nullable=False),
        sa.Column("phase", sa.String(20), nullable=False, server_default="lobby"),
        sa.Column("state", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("sa_orm_sentinel", sa.Integer(), nullable=True),
        sa.Column("created_at", DateTimeUTC(), nullable=False),
        sa.Column("updated_at", DateTimeUTC(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("ix_game_records_game_id", "game_records", ["game_id"], unique=True)
    op.create_index("ix_game_records_phase", "game_records", ["phase"])


def downgrade() -> None:
    """Drop the game_records table."""
    op.drop_index("ix_game_records_phase", "game_records")
    op.drop_index("ix_game_records_game_id", "game_records")
    op.drop_table("game_records")
