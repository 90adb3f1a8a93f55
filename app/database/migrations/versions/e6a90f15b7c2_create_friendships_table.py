"""create friendships table

Revision ID: e6a90f15b7c2
Revises: 5b1e7c9a2d40
Create Date: 2026-10-12 10:26:03.994127

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy import func

# revision identifiers, used by Alembic.
revision: str = 'e6a90f15b7c2'
down_revision: Union[str, Sequence[str], None] = '5b1e7c9a2d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "friendships",
        sa.Column("user_id_1", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id_2", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=func.now()),
        sa.CheckConstraint("user_id_1 < user_id_2", name="ck_friendship_ordered_pair"),
    )
    op.create_index("ix_friendships_user_id_2", "friendships", ["user_id_2"])


def downgrade() -> None:
    op.drop_index("ix_friendships_user_id_2", table_name="friendships")
    op.drop_table("friendships")
