from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict


class FriendshipStatus(str, Enum):
    FRIENDS = "friends"
    OUTGOING_PENDING = "outgoing_pending"
    INCOMING_PENDING = "incoming_pending"
    REJECTED = "rejected"


class RequestDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class PendingRequestItem(BaseModel):
    """A pending request as seen by one of its two parties."""
    id: int = Field(gt=0, description="Request ID")
    user_id: int = Field(gt=0, description="The other party of the request")
    name: str
    public_uuid: str
    direction: RequestDirection
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PendingRequests(BaseModel):
    incoming: List[PendingRequestItem] = Field(default_factory=list)
    outgoing: List[PendingRequestItem] = Field(default_factory=list)


class FriendItem(BaseModel):
    friend_id: int = Field(gt=0)
    name: str
    public_uuid: str
    friends_since: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FriendList(BaseModel):
    friends: List[FriendItem] = Field(default_factory=list)


class FriendshipStatusResponse(BaseModel):
    user_id: int
    status: Optional[FriendshipStatus] = None


class FriendRequestSent(BaseModel):
    message: str
    request_id: int


class MessageResponse(BaseModel):
    message: str
