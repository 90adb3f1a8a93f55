from typing import Optional

from sqlalchemy.orm import Session

from app.api.users.models import User
from app.core.exceptions import NotFound


class UserDirectory:
    """Read-only lookups of users for the buddy system."""

    def __init__(self, db: Session):
        self.db = db

    def get_active_user_by_public_uuid(self, public_uuid: str) -> Optional[User]:
        return self.db.query(User).filter(
            User.public_uuid == public_uuid,
            User.is_active.is_(True)
        ).first()

    def get_active_user_id_by_public_uuid(self, public_uuid: str) -> Optional[int]:
        user = self.get_active_user_by_public_uuid(public_uuid)
        return user.id if user else None

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def require_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return user
