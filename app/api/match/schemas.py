from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_CAMEL = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class MatchProfileData(BaseModel):
    """
    Body of create/update. Update is a full replace: an omitted hobby
    is stored as False, same as on create.
    """
    bio: str = Field("", max_length=1000, description="Free-text introduction")
    likes_hiking: bool = False
    likes_gardening: bool = False
    likes_board_games: bool = False
    likes_singing: bool = False
    likes_reading: bool = False
    likes_walking: bool = False
    likes_cooking: bool = False
    likes_movies: bool = False
    likes_tai_chi: bool = False

    model_config = {**_CAMEL, "extra": "forbid"}


class MatchProfileOut(MatchProfileData):
    user_id: int = Field(gt=0)
    last_updated: Optional[datetime] = None

    model_config = {**_CAMEL, "from_attributes": True, "extra": "ignore"}


class PotentialMatch(MatchProfileOut):
    name: str
    hobby_match_score: int = Field(0, ge=0, description="Hobbies both users like")


class ProfileExists(BaseModel):
    exists: bool


class LikeResult(BaseModel):
    success: bool = True
    matched: bool


class SkipResult(BaseModel):
    success: bool = True
