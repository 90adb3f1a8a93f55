import uuid

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func

from app.database.database import Base


def _new_public_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    Users table. Owned by the accounts module; the buddy system only reads it.
    public_uuid is what goes into friend-invite links.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    public_uuid = Column(String(36), unique=True, index=True, nullable=False, default=_new_public_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_active = Column(Boolean, default=True, nullable=False)
