from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, Index
from sqlalchemy.sql import func

from app.database.database import Base

INTERACTION_LIKED = "liked"
INTERACTION_SKIPPED = "skipped"
INTERACTION_MATCHED = "matched"

HOBBY_FIELDS = (
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


class MatchProfile(Base):
    """
    Matchmaking profile, at most one per user.
    """
    __tablename__ = "match_profiles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    bio = Column(Text, nullable=False, default="")

    likes_hiking = Column(Boolean, nullable=False, default=False)
    likes_gardening = Column(Boolean, nullable=False, default=False)
    likes_board_games = Column(Boolean, nullable=False, default=False)
    likes_singing = Column(Boolean, nullable=False, default=False)
    likes_reading = Column(Boolean, nullable=False, default=False)
    likes_walking = Column(Boolean, nullable=False, default=False)
    likes_cooking = Column(Boolean, nullable=False, default=False)
    likes_movies = Column(Boolean, nullable=False, default=False)
    likes_tai_chi = Column(Boolean, nullable=False, default=False)

    last_updated = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def hobbies(self) -> dict:
        return {field: bool(getattr(self, field)) for field in HOBBY_FIELDS}

    def __repr__(self):
        return f"<MatchProfile(user_id={self.user_id})>"


class MatchInteraction(Base):
    """
    One user's disposition towards another: liked, skipped or matched.
    Keyed by the ordered pair, so it is updated in place, never duplicated.
    """
    __tablename__ = "match_interactions"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    target_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    status = Column(String(16), nullable=False)  # liked, skipped, matched
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_match_interactions_target", "target_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<MatchInteraction({self.user_id}->{self.target_user_id}, status={self.status})>"
