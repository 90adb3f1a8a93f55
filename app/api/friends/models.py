from typing import Tuple

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.sql import func

from app.database.database import Base

REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"
REQUEST_REJECTED = "rejected"


def canonical_pair(user_a: int, user_b: int) -> Tuple[int, int]:
    """A symmetric relation is stored once, smaller id first."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class FriendRequest(Base):
    """
    Directed invitation. One row per unordered pair of users:
    user_low/user_high are derived from sender/receiver on construction
    and carry the uniqueness constraint.
    """
    __tablename__ = "friend_requests"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(16), nullable=False, default=REQUEST_PENDING)  # pending, accepted, rejected
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user_low = Column(Integer, nullable=False)
    user_high = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_low", "user_high", name="uq_friend_request_pair"),
        CheckConstraint("sender_id <> receiver_id", name="ck_friend_request_not_self"),
        Index("ix_friend_requests_receiver_status", "receiver_id", "status"),
        Index("ix_friend_requests_sender_status", "sender_id", "status"),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.user_low, self.user_high = canonical_pair(self.sender_id, self.receiver_id)

    def __repr__(self):
        return f"<FriendRequest(id={self.id}, {self.sender_id}->{self.receiver_id}, status={self.status})>"


class Friendship(Base):
    """
    Undirected friendship, one row per pair with user_id_1 < user_id_2.
    The constructor orders the pair, so Friendship(5, 2) is stored as (2, 5).
    """
    __tablename__ = "friendships"

    user_id_1 = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    user_id_2 = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("user_id_1 < user_id_2", name="ck_friendship_ordered_pair"),
        Index("ix_friendships_user_id_2", "user_id_2"),
    )

    def __init__(self, user_a: int, user_b: int, **kwargs):
        low, high = canonical_pair(user_a, user_b)
        super().__init__(user_id_1=low, user_id_2=high, **kwargs)

    def __repr__(self):
        return f"<Friendship({self.user_id_1}, {self.user_id_2})>"
