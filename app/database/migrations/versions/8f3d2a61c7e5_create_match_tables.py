"""create match_profiles and match_interactions tables

Revision ID: 8f3d2a61c7e5
Revises: e6a90f15b7c2
Create Date: 2026-10-13 09:02:31.407551

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy import func

# revision identifiers, used by Alembic.
revision: str = '8f3d2a61c7e5'
down_revision: Union[str, Sequence[str], None] = 'e6a90f15b7c2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

HOBBY_COLUMNS = (
    "likes_hiking",
    "likes_gardening",
    "likes_board_games",
    "likes_singing",
    "likes_reading",
    "likes_walking",
    "likes_cooking",
    "likes_movies",
    "likes_tai_chi",
)


def upgrade() -> None:
    op.create_table(
        "match_profiles",
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("bio", sa.Text, nullable=False, server_default=""),
        *[
            sa.Column(name, sa.Boolean, nullable=False, server_default=sa.text("false"))
            for name in HOBBY_COLUMNS
        ],
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False, server_default=func.now()),
    )
    op.create_table(
        "match_interactions",
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("target_user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=func.now()),
    )
    op.create_index("ix_match_interactions_target", "match_interactions", ["target_user_id", "user_id"])


def downgrade() -> None:
    op.drop_index("ix_match_interactions_target", table_name="match_interactions")
    op.drop_table("match_interactions")
    op.drop_table("match_profiles")
