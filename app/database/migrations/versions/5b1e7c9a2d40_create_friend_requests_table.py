"""create friend_requests table

Revision ID: 5b1e7c9a2d40
Revises: c41e07b2a9d3
Create Date: 2026-10-12 10:21:47.518209

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy import func

# revision identifiers, used by Alembic.
revision: str = '5b1e7c9a2d40'
down_revision: Union[str, Sequence[str], None] = 'c41e07b2a9d3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "friend_requests",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("sender_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=func.now()),
        sa.Column("user_low", sa.Integer, nullable=False),
        sa.Column("user_high", sa.Integer, nullable=False),
        sa.UniqueConstraint("user_low", "user_high", name="uq_friend_request_pair"),
        sa.CheckConstraint("sender_id <> receiver_id", name="ck_friend_request_not_self"),
    )
    op.create_index("ix_friend_requests_receiver_status", "friend_requests", ["receiver_id", "status"])
    op.create_index("ix_friend_requests_sender_status", "friend_requests", ["sender_id", "status"])


def downgrade() -> None:
    op.drop_index("ix_friend_requests_sender_status", table_name="friend_requests")
    op.drop_index("ix_friend_requests_receiver_status", table_name="friend_requests")
    op.drop_table("friend_requests")
