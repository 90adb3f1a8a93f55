from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.auth.dependencies import get_current_user_id
from app.api.users.schemas import UserShort
from app.api.users.service import UserDirectory
from app.core.exceptions import NotFound
from app.database.database import get_db

router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_directory(db: Session = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


@router.get("/me", response_model=UserShort)
def get_me(
        current_user_id: int = Depends(get_current_user_id),
        users: UserDirectory = Depends(get_user_directory)
):
    """Own display info, including the public UUID used in invite links."""
    return users.require_user(current_user_id)


@router.get("/uuid/{public_uuid}", response_model=UserShort)
def get_by_public_uuid(
        public_uuid: str,
        _current_user_id: int = Depends(get_current_user_id),
        users: UserDirectory = Depends(get_user_directory)
):
    """Invite page preview of the user behind a link."""
    user = users.get_active_user_by_public_uuid(public_uuid)
    if not user:
        raise NotFound("User not found")
    return user
