from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.auth.dependencies import get_current_user_id
from app.api.friends.schemas import MessageResponse
from app.api.match.schemas import (
    LikeResult,
    MatchProfileData,
    MatchProfileOut,
    PotentialMatch,
    ProfileExists,
    SkipResult,
)
from app.api.match.service import MatchEngine
from app.database.database import get_db

router = APIRouter(prefix="/api/match", tags=["match"])


def get_match_engine(db: Session = Depends(get_db)) -> MatchEngine:
    return MatchEngine(db)


@router.get("/profile/check", response_model=ProfileExists)
def check_profile(
        current_user_id: int = Depends(get_current_user_id),
        match_engine: MatchEngine = Depends(get_match_engine)
):
    return {"exists": match_engine.has_match_profile(current_user_id)}


@router.get("/profile", response_model=MatchProfileOut)
def get_profile(
        current_user_id: int = Depends(get_current_user_id),
        match_engine: MatchEngine = Depends(get_match_engine)
):
    return match_engine.get_match_profile(current_user_id)


@router.post("/profile", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def create_profile(
        data: MatchProfileData,
        current_user_id: int = Depends(get_current_user_id),
        match_engine: MatchEngine = Depends(get_match_engine)
):
    match_engine.create_match_profile(current_user_id, data)
    return {"message": "Match profile created."}


@router.put("/profile", response_model=MessageResponse)
def update_profile(
        data: MatchProfileData,
        current_user_id: int = Depends(get_current_user_id),
        match_engine: MatchEngine = Depends(get_match_engine)
):
    match_engine.update_match_profile(current_user_id, data)
    return {"message": "Match profile updated."}


@router.get("/potential", response_model=List[PotentialMatch])
def potential_matches(
        current_user_id: int = Depends(get_current_user_id),
        match_engine: MatchEngine = Depends(get_match_engine)
):
    return match_engine.get_potential_matches(current_user_id)


@router.post("/like/{target_user_id}", response_model=LikeResult)
def like_user(
        target_user_id: int,
        current_user_id: int = Depends(get_current_user_id),
        match_engine: MatchEngine = Depends(get_match_engine)
):
    result = match_engine.like_user(current_user_id, target_user_id)
    return {"success": True, "matched": result["matched"]}


@router.post("/skip/{target_user_id}", response_model=SkipResult)
def skip_user(
        target_user_id: int,
        current_user_id: int = Depends(get_current_user_id),
        match_engine: MatchEngine = Depends(get_match_engine)
):
    match_engine.skip_user(current_user_id, target_user_id)
    return {"success": True}
