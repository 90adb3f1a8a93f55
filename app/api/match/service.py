import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.friends.service import RelationshipService, commit_or_raise
from app.api.match.models import (
    HOBBY_FIELDS,
    INTERACTION_LIKED,
    INTERACTION_MATCHED,
    INTERACTION_SKIPPED,
    MatchInteraction,
    MatchProfile,
)
from app.api.match.schemas import MatchProfileData, PotentialMatch
from app.api.users.models import User
from app.core.exceptions import Conflict, InvalidOperation, NotFound
from app.database.utils import lock_pair, upsert

logger = logging.getLogger(__name__)


def hobby_match_score(profile_a: Optional[MatchProfile], profile_b: Optional[MatchProfile]) -> int:
    """Number of hobbies both profiles like. Shared dislikes don't count."""
    if profile_a is None or profile_b is None:
        return 0
    return sum(
        1 for field in HOBBY_FIELDS
        if getattr(profile_a, field) and getattr(profile_b, field)
    )


def _profile_values(data: MatchProfileData) -> Dict[str, object]:
    values = {"bio": data.bio or ""}
    values.update({field: bool(getattr(data, field)) for field in HOBBY_FIELDS})
    return values


class MatchEngine:
    def __init__(self, db: Session, relationships: Optional[RelationshipService] = None):
        self.db = db
        self.relationships = relationships or RelationshipService(db)
        self.users = self.relationships.users

    # --- profiles -----------------------------------------------------------

    def has_match_profile(self, user_id: int) -> bool:
        return self.db.query(MatchProfile.user_id).filter(
            MatchProfile.user_id == user_id
        ).first() is not None

    def get_match_profile(self, user_id: int) -> MatchProfile:
        profile = self.db.get(MatchProfile, user_id)
        if not profile:
            raise NotFound("Profile not found.")
        return profile

    def create_match_profile(self, user_id: int, data: MatchProfileData) -> MatchProfile:
        if self.has_match_profile(user_id):
            raise Conflict("Match profile already exists.")

        profile = MatchProfile(
            user_id=user_id,
            last_updated=datetime.now(timezone.utc),
            **_profile_values(data)
        )
        self.db.add(profile)
        commit_or_raise(self.db, "Match profile already exists.")
        self.db.refresh(profile)

        logger.info("Match profile created for user %s", user_id)
        return profile

    def update_match_profile(self, user_id: int, data: MatchProfileData) -> MatchProfile:
        profile = self.db.get(MatchProfile, user_id)
        if not profile:
            raise NotFound("No match profile found to update.")

        for key, value in _profile_values(data).items():
            setattr(profile, key, value)
        profile.last_updated = datetime.now(timezone.utc)
        commit_or_raise(self.db, "Match profile changed concurrently.")
        self.db.refresh(profile)

        logger.info("Match profile updated for user %s", user_id)
        return profile

    # --- candidates ---------------------------------------------------------

    def get_potential_matches(self, user_id: int) -> List[PotentialMatch]:
        """
        Every other profile the user has not liked, skipped or befriended yet,
        best hobby overlap first, then most recently updated.
        """
        me = self.db.get(MatchProfile, user_id)
        interacted = select(MatchInteraction.target_user_id).where(
            MatchInteraction.user_id == user_id
        )

        query = self.db.query(MatchProfile, User).join(
            User, User.id == MatchProfile.user_id
        ).filter(
            MatchProfile.user_id != user_id,
            MatchProfile.user_id.not_in(interacted),
            User.is_active.is_(True)
        )
        friend_ids = self.relationships.friend_ids(user_id)
        if friend_ids:
            query = query.filter(MatchProfile.user_id.not_in(friend_ids))

        rows = query.order_by(MatchProfile.last_updated.desc(), MatchProfile.user_id).all()

        # list.sort is stable, so equal scores keep the recency order from SQL
        scored = [(hobby_match_score(me, profile), profile, user) for profile, user in rows]
        scored.sort(key=lambda item: item[0], reverse=True)

        return [
            PotentialMatch(
                user_id=profile.user_id,
                name=user.name,
                bio=profile.bio or "",
                last_updated=profile.last_updated,
                hobby_match_score=score,
                **profile.hobbies()
            )
            for score, profile, user in scored
        ]

    # --- interactions -------------------------------------------------------

    def _get_interaction(self, user_id: int, target_user_id: int) -> Optional[MatchInteraction]:
        return self.db.query(MatchInteraction).filter(
            MatchInteraction.user_id == user_id,
            MatchInteraction.target_user_id == target_user_id
        ).populate_existing().first()

    def _record_interaction(self, user_id: int, target_user_id: int, status: str) -> None:
        """Insert or overwrite the user's disposition. A matched row is never demoted."""
        table = MatchInteraction.__table__
        now = datetime.now(timezone.utc)
        upsert(
            self.db,
            table,
            {"user_id": user_id, "target_user_id": target_user_id, "status": status, "timestamp": now},
            index_elements=["user_id", "target_user_id"],
            update={"status": status, "timestamp": now},
            where=table.c.status != INTERACTION_MATCHED,
        )

    def like_user(self, user_id: int, target_user_id: int) -> Dict[str, bool]:
        if user_id == target_user_id:
            raise InvalidOperation("You cannot like yourself.")
        self.users.require_user(target_user_id)

        lock_pair(self.db, user_id, target_user_id)
        self._record_interaction(user_id, target_user_id, INTERACTION_LIKED)

        reciprocal = self._get_interaction(target_user_id, user_id)
        if reciprocal is None or reciprocal.status not in (INTERACTION_LIKED, INTERACTION_MATCHED):
            commit_or_raise(self.db, "Could not record like.")
            logger.info("User %s liked %s", user_id, target_user_id)
            return {"matched": False}

        now = datetime.now(timezone.utc)
        self.db.query(MatchInteraction).filter(
            ((MatchInteraction.user_id == user_id) & (MatchInteraction.target_user_id == target_user_id))
            | ((MatchInteraction.user_id == target_user_id) & (MatchInteraction.target_user_id == user_id)),
            MatchInteraction.status != INTERACTION_MATCHED
        ).update({"status": INTERACTION_MATCHED, "timestamp": now}, synchronize_session=False)
        self.relationships.ensure_friendship(user_id, target_user_id)
        commit_or_raise(self.db, "Could not record match.")

        logger.info("Users %s and %s matched", user_id, target_user_id)
        return {"matched": True}

    def skip_user(self, user_id: int, target_user_id: int) -> None:
        if user_id == target_user_id:
            raise InvalidOperation("You cannot skip yourself.")
        self.users.require_user(target_user_id)

        self._record_interaction(user_id, target_user_id, INTERACTION_SKIPPED)
        commit_or_raise(self.db, "Could not record skip.")

        logger.info("User %s skipped %s", user_id, target_user_id)
