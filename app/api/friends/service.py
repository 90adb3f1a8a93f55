import logging
from typing import List, Optional, Set

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.friends.models import (
    FriendRequest,
    Friendship,
    canonical_pair,
    REQUEST_ACCEPTED,
    REQUEST_PENDING,
    REQUEST_REJECTED,
)
from app.api.friends.schemas import (
    FriendItem,
    FriendshipStatus,
    PendingRequestItem,
    PendingRequests,
    RequestDirection,
)
from app.api.users.models import User
from app.api.users.service import UserDirectory
from app.core.exceptions import Conflict, InvalidOperation, NotFound, PersistenceError
from app.database.utils import insert_ignore, lock_pair

logger = logging.getLogger(__name__)

REQUEST_NOT_FOUND = "Friend request not found or unauthorized"

_CONFLICT_MESSAGES = {
    FriendshipStatus.FRIENDS: "You are already friends",
    FriendshipStatus.OUTGOING_PENDING:
        "You have already sent a request. Please wait for the other user to accept.",
    FriendshipStatus.INCOMING_PENDING:
        "The other user has sent you a request. Please accept it from your friend requests tab.",
    FriendshipStatus.REJECTED:
        "A friend request was previously rejected. You cannot send another request.",
}


def commit_or_raise(db: Session, conflict_message: str) -> None:
    """
    Commit the unit of work. A constraint violation means another request
    won a race on the same rows and is reported as Conflict.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Constraint violation on commit: %s", e.orig)
        raise Conflict(conflict_message) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Commit failed: %s", e, exc_info=True)
        raise PersistenceError() from e


class RelationshipService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserDirectory(db)

    # --- status -------------------------------------------------------------

    def are_friends(self, user_a: int, user_b: int) -> bool:
        low, high = canonical_pair(user_a, user_b)
        return self.db.query(Friendship).filter(
            Friendship.user_id_1 == low,
            Friendship.user_id_2 == high
        ).first() is not None

    def friend_ids(self, user_id: int) -> Set[int]:
        rows = self.db.query(Friendship.user_id_1, Friendship.user_id_2).filter(
            or_(Friendship.user_id_1 == user_id, Friendship.user_id_2 == user_id)
        ).all()
        return {u2 if u1 == user_id else u1 for u1, u2 in rows}

    def get_friendship_status(self, user_a: int, user_b: int) -> Optional[FriendshipStatus]:
        """
        Relationship of user_a towards user_b, first match wins:
        friendship, then a request sent by user_a, then one sent by user_b.
        None means a new request may be sent.
        """
        if self.are_friends(user_a, user_b):
            return FriendshipStatus.FRIENDS

        requests = self.db.query(FriendRequest).filter(
            or_(
                and_(FriendRequest.sender_id == user_a, FriendRequest.receiver_id == user_b),
                and_(FriendRequest.sender_id == user_b, FriendRequest.receiver_id == user_a)
            )
        ).all()

        outgoing = [r for r in requests if r.sender_id == user_a]
        incoming = [r for r in requests if r.sender_id == user_b]

        for request in outgoing:
            if request.status == REQUEST_PENDING:
                return FriendshipStatus.OUTGOING_PENDING
            if request.status == REQUEST_REJECTED:
                return FriendshipStatus.REJECTED
        for request in incoming:
            if request.status == REQUEST_PENDING:
                return FriendshipStatus.INCOMING_PENDING
            if request.status == REQUEST_REJECTED:
                return FriendshipStatus.REJECTED
        return None

    # --- requests -----------------------------------------------------------

    def send_friend_request(self, sender_id: int, receiver_public_id: str) -> int:
        receiver_id = self.users.get_active_user_id_by_public_uuid(receiver_public_id)
        if receiver_id is None:
            raise NotFound("User not found")

        if sender_id == receiver_id:
            raise InvalidOperation("Can't send request to yourself")

        lock_pair(self.db, sender_id, receiver_id)
        status = self.get_friendship_status(sender_id, receiver_id)
        if status is not None:
            logger.info("Friend request %s -> %s refused: %s", sender_id, receiver_id, status.value)
            raise Conflict(_CONFLICT_MESSAGES[status])

        # An accepted request whose friendship is gone no longer means anything
        low, high = canonical_pair(sender_id, receiver_id)
        self.db.query(FriendRequest).filter(
            FriendRequest.user_low == low,
            FriendRequest.user_high == high,
            FriendRequest.status == REQUEST_ACCEPTED
        ).delete(synchronize_session=False)

        request = FriendRequest(sender_id=sender_id, receiver_id=receiver_id, status=REQUEST_PENDING)
        self.db.add(request)
        commit_or_raise(self.db, "A friend request between you already exists")
        self.db.refresh(request)

        logger.info("Friend request %s sent: %s -> %s", request.id, sender_id, receiver_id)
        return request.id

    def _get_incoming_pending(self, user_id: int, request_id: int) -> FriendRequest:
        request = self.db.query(FriendRequest).filter(
            FriendRequest.id == request_id,
            FriendRequest.receiver_id == user_id,
            FriendRequest.status == REQUEST_PENDING
        ).with_for_update().first()
        if not request:
            raise NotFound(REQUEST_NOT_FOUND)
        return request

    def accept_friend_request(self, user_id: int, request_id: int) -> None:
        request = self._get_incoming_pending(user_id, request_id)

        self.ensure_friendship(request.sender_id, request.receiver_id)
        request.status = REQUEST_ACCEPTED
        commit_or_raise(self.db, "Friend request was already answered")

        logger.info("Friend request %s accepted by %s", request_id, user_id)

    def reject_friend_request(self, user_id: int, request_id: int) -> None:
        request = self._get_incoming_pending(user_id, request_id)

        request.status = REQUEST_REJECTED
        commit_or_raise(self.db, "Friend request was already answered")

        logger.info("Friend request %s rejected by %s", request_id, user_id)

    def remove_friend_request(self, request_id: int, sender_id: int) -> bool:
        """Withdraw an own pending request. False if there was nothing to withdraw."""
        deleted = self.db.query(FriendRequest).filter(
            FriendRequest.id == request_id,
            FriendRequest.sender_id == sender_id,
            FriendRequest.status == REQUEST_PENDING
        ).delete(synchronize_session=False)
        commit_or_raise(self.db, "Friend request changed concurrently")

        if deleted:
            logger.info("Friend request %s withdrawn by %s", request_id, sender_id)
        return deleted > 0

    def list_all_pending_requests(self, user_id: int) -> PendingRequests:
        incoming = self.db.query(FriendRequest, User).join(
            User, User.id == FriendRequest.sender_id
        ).filter(
            FriendRequest.receiver_id == user_id,
            FriendRequest.status == REQUEST_PENDING
        ).order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc()).all()

        outgoing = self.db.query(FriendRequest, User).join(
            User, User.id == FriendRequest.receiver_id
        ).filter(
            FriendRequest.sender_id == user_id,
            FriendRequest.status == REQUEST_PENDING
        ).order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc()).all()

        return PendingRequests(
            incoming=[self._pending_item(r, u, RequestDirection.INCOMING) for r, u in incoming],
            outgoing=[self._pending_item(r, u, RequestDirection.OUTGOING) for r, u in outgoing],
        )

    @staticmethod
    def _pending_item(request: FriendRequest, other: User, direction: RequestDirection) -> PendingRequestItem:
        return PendingRequestItem(
            id=request.id,
            user_id=other.id,
            name=other.name,
            public_uuid=other.public_uuid,
            direction=direction,
            created_at=request.created_at,
        )

    # --- friendships --------------------------------------------------------

    def ensure_friendship(self, user_a: int, user_b: int) -> bool:
        """
        Insert the canonical friendship row unless it already exists and mark
        a pending request between the pair as accepted.
        Returns True if this call created the friendship. Does not commit.
        """
        if user_a == user_b:
            raise InvalidOperation("Can't befriend yourself")

        friendship = Friendship(user_a, user_b)
        created = insert_ignore(
            self.db,
            Friendship.__table__,
            {"user_id_1": friendship.user_id_1, "user_id_2": friendship.user_id_2},
            index_elements=["user_id_1", "user_id_2"],
        )
        self.db.query(FriendRequest).filter(
            FriendRequest.user_low == friendship.user_id_1,
            FriendRequest.user_high == friendship.user_id_2,
            FriendRequest.status == REQUEST_PENDING
        ).update({"status": REQUEST_ACCEPTED}, synchronize_session=False)
        if created:
            logger.info("Friendship created: %s <-> %s", friendship.user_id_1, friendship.user_id_2)
        return created

    def list_friends(self, user_id: int) -> List[FriendItem]:
        rows = self.db.query(User, Friendship.created_at).join(
            Friendship,
            or_(
                and_(Friendship.user_id_1 == user_id, Friendship.user_id_2 == User.id),
                and_(Friendship.user_id_2 == user_id, Friendship.user_id_1 == User.id)
            )
        ).order_by(Friendship.created_at.desc(), User.id).all()

        return [
            FriendItem(
                friend_id=user.id,
                name=user.name,
                public_uuid=user.public_uuid,
                friends_since=created_at,
            )
            for user, created_at in rows
        ]

    def remove_friend(self, user_id: int, friend_id: int) -> bool:
        """
        Drop the friendship and any accepted request between the pair.
        False if neither existed.
        """
        low, high = canonical_pair(user_id, friend_id)

        removed = self.db.query(Friendship).filter(
            Friendship.user_id_1 == low,
            Friendship.user_id_2 == high
        ).delete(synchronize_session=False)
        removed += self.db.query(FriendRequest).filter(
            FriendRequest.user_low == low,
            FriendRequest.user_high == high,
            FriendRequest.status == REQUEST_ACCEPTED
        ).delete(synchronize_session=False)
        commit_or_raise(self.db, "Friendship changed concurrently")

        if removed:
            logger.info("Friendship removed: %s <-> %s", low, high)
        return removed > 0
