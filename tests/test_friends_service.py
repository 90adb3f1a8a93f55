"""
RelationshipService: friend-request lifecycle and friendship storage.
"""
import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from app.api.friends.models import FriendRequest, Friendship, canonical_pair
from app.api.friends.schemas import FriendshipStatus
from app.api.friends.service import RelationshipService
from app.core.exceptions import Conflict, InvalidOperation, NotFound


@pytest.fixture
def service(db):
    return RelationshipService(db)


@pytest.fixture
def alice(make_user):
    return make_user("Alice")


@pytest.fixture
def bob(make_user):
    return make_user("Bob")


def _friendship_rows(db):
    return [(f.user_id_1, f.user_id_2) for f in db.query(Friendship).all()]


def test_canonical_pair_orders_ids():
    assert canonical_pair(5, 2) == (2, 5)
    assert canonical_pair(2, 5) == (2, 5)


def test_friendship_constructor_normalizes_order():
    friendship = Friendship(5, 2)
    assert (friendship.user_id_1, friendship.user_id_2) == (2, 5)


def test_friend_request_derives_pair_columns():
    request = FriendRequest(sender_id=9, receiver_id=3, status="pending")
    assert (request.user_low, request.user_high) == (3, 9)


def test_send_friend_request_creates_pending_row(db, service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)

    request = db.get(FriendRequest, request_id)
    assert request.sender_id == alice.id
    assert request.receiver_id == bob.id
    assert request.status == "pending"


def test_send_friend_request_unknown_uuid(service, alice):
    with pytest.raises(NotFound):
        service.send_friend_request(alice.id, str(uuid.uuid4()))


def test_send_friend_request_to_inactive_user(service, alice, make_user):
    ghost = make_user("Ghost", is_active=False)
    with pytest.raises(NotFound):
        service.send_friend_request(alice.id, ghost.public_uuid)


def test_send_friend_request_to_self(service, alice):
    with pytest.raises(InvalidOperation):
        service.send_friend_request(alice.id, alice.public_uuid)


def test_send_friend_request_twice_conflicts(service, alice, bob):
    service.send_friend_request(alice.id, bob.public_uuid)
    with pytest.raises(Conflict) as exc:
        service.send_friend_request(alice.id, bob.public_uuid)
    assert "already sent" in exc.value.message


def test_send_friend_request_when_incoming_pending(service, alice, bob):
    service.send_friend_request(bob.id, alice.public_uuid)
    with pytest.raises(Conflict) as exc:
        service.send_friend_request(alice.id, bob.public_uuid)
    assert "accept it" in exc.value.message


def test_rejected_request_blocks_both_directions(service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.reject_friend_request(bob.id, request_id)

    with pytest.raises(Conflict):
        service.send_friend_request(alice.id, bob.public_uuid)
    with pytest.raises(Conflict) as exc:
        service.send_friend_request(bob.id, alice.public_uuid)
    assert "rejected" in exc.value.message


def test_send_friend_request_when_already_friends(db, service, alice, bob):
    db.add(Friendship(alice.id, bob.id))
    db.commit()

    with pytest.raises(Conflict) as exc:
        service.send_friend_request(alice.id, bob.public_uuid)
    assert exc.value.message == "You are already friends"


def test_status_none_without_relationship(service, alice, bob):
    assert service.get_friendship_status(alice.id, bob.id) is None


def test_status_pending_is_mirrored(service, alice, bob):
    service.send_friend_request(alice.id, bob.public_uuid)

    assert service.get_friendship_status(alice.id, bob.id) == FriendshipStatus.OUTGOING_PENDING
    assert service.get_friendship_status(bob.id, alice.id) == FriendshipStatus.INCOMING_PENDING


def test_status_rejected_seen_by_both(service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.reject_friend_request(bob.id, request_id)

    assert service.get_friendship_status(alice.id, bob.id) == FriendshipStatus.REJECTED
    assert service.get_friendship_status(bob.id, alice.id) == FriendshipStatus.REJECTED


def test_status_friendship_takes_precedence_over_pending(db, service, alice, bob):
    db.add(FriendRequest(sender_id=alice.id, receiver_id=bob.id, status="pending"))
    db.add(Friendship(bob.id, alice.id))
    db.commit()

    assert service.get_friendship_status(alice.id, bob.id) == FriendshipStatus.FRIENDS
    assert service.get_friendship_status(bob.id, alice.id) == FriendshipStatus.FRIENDS


def test_accept_creates_canonical_friendship(db, make_user):
    # ids are assigned in creation order: receiver gets the smaller id
    receiver = make_user("Receiver")
    sender = make_user("Sender")
    service = RelationshipService(db)

    request_id = service.send_friend_request(sender.id, receiver.public_uuid)
    service.accept_friend_request(receiver.id, request_id)

    assert _friendship_rows(db) == [(receiver.id, sender.id)]
    assert db.get(FriendRequest, request_id).status == "accepted"
    assert service.get_friendship_status(sender.id, receiver.id) == FriendshipStatus.FRIENDS


def test_accept_twice_fails_and_keeps_one_friendship(db, service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.accept_friend_request(bob.id, request_id)

    with pytest.raises(NotFound):
        service.accept_friend_request(bob.id, request_id)
    assert len(_friendship_rows(db)) == 1


def test_only_receiver_can_accept_or_reject(service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)

    with pytest.raises(NotFound):
        service.accept_friend_request(alice.id, request_id)
    with pytest.raises(NotFound):
        service.reject_friend_request(alice.id, request_id)


def test_ensure_friendship_settles_pending_request(db, service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.ensure_friendship(bob.id, alice.id)
    db.commit()

    assert db.get(FriendRequest, request_id).status == "accepted"
    assert service.list_all_pending_requests(bob.id).incoming == []
    with pytest.raises(NotFound):
        service.accept_friend_request(bob.id, request_id)
    assert len(_friendship_rows(db)) == 1


def test_reject_does_not_create_friendship(db, service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.reject_friend_request(bob.id, request_id)

    assert db.get(FriendRequest, request_id).status == "rejected"
    assert _friendship_rows(db) == []


def test_withdraw_own_pending_request(db, service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)

    assert service.remove_friend_request(request_id, bob.id) is False
    assert service.remove_friend_request(request_id, alice.id) is True
    assert service.remove_friend_request(request_id, alice.id) is False
    assert db.get(FriendRequest, request_id) is None
    assert service.get_friendship_status(alice.id, bob.id) is None


def test_withdraw_ignores_answered_request(service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.reject_friend_request(bob.id, request_id)

    assert service.remove_friend_request(request_id, alice.id) is False


def test_list_pending_requests(service, alice, bob, make_user):
    carol = make_user("Carol")
    service.send_friend_request(bob.id, alice.public_uuid)
    service.send_friend_request(alice.id, carol.public_uuid)

    pending = service.list_all_pending_requests(alice.id)

    assert [(r.user_id, r.name, r.direction.value) for r in pending.incoming] == [(bob.id, "Bob", "incoming")]
    assert [(r.user_id, r.public_uuid, r.direction.value) for r in pending.outgoing] == [
        (carol.id, carol.public_uuid, "outgoing")
    ]


def test_list_pending_requests_skips_answered(service, alice, bob):
    request_id = service.send_friend_request(bob.id, alice.public_uuid)
    service.reject_friend_request(alice.id, request_id)

    pending = service.list_all_pending_requests(alice.id)
    assert pending.incoming == []
    assert pending.outgoing == []


def test_list_friends_from_either_side(db, service, alice, bob, make_user):
    carol = make_user("Carol")
    service.ensure_friendship(bob.id, alice.id)
    service.ensure_friendship(carol.id, bob.id)
    db.commit()

    assert {f.friend_id for f in service.list_friends(bob.id)} == {alice.id, carol.id}
    assert [f.name for f in service.list_friends(alice.id)] == ["Bob"]


def test_ensure_friendship_is_idempotent(db, service, alice, bob):
    assert service.ensure_friendship(bob.id, alice.id) is True
    assert service.ensure_friendship(alice.id, bob.id) is False
    db.commit()

    assert _friendship_rows(db) == [canonical_pair(alice.id, bob.id)]
    assert service.are_friends(alice.id, bob.id)
    assert service.friend_ids(alice.id) == {bob.id}


def test_ensure_friendship_with_self(service, alice):
    with pytest.raises(InvalidOperation):
        service.ensure_friendship(alice.id, alice.id)


def test_remove_friend_then_reread(db, service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.accept_friend_request(bob.id, request_id)

    assert service.remove_friend(alice.id, bob.id) is True
    assert service.remove_friend(alice.id, bob.id) is False

    assert service.list_friends(alice.id) == []
    assert db.get(FriendRequest, request_id) is None
    assert service.get_friendship_status(alice.id, bob.id) is None


def test_remove_friend_does_not_revive_settled_request(db, service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.ensure_friendship(alice.id, bob.id)
    db.commit()

    assert service.remove_friend(bob.id, alice.id) is True
    assert db.get(FriendRequest, request_id) is None
    assert service.get_friendship_status(alice.id, bob.id) is None


def test_request_after_friend_removed(service, alice, bob):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)
    service.accept_friend_request(bob.id, request_id)
    service.remove_friend(bob.id, alice.id)

    service.send_friend_request(bob.id, alice.public_uuid)
    assert service.get_friendship_status(bob.id, alice.id) == FriendshipStatus.OUTGOING_PENDING


def test_stale_accepted_request_does_not_block(db, service, alice, bob):
    db.add(FriendRequest(sender_id=alice.id, receiver_id=bob.id, status="accepted"))
    db.commit()

    assert service.get_friendship_status(alice.id, bob.id) is None
    request_id = service.send_friend_request(bob.id, alice.public_uuid)
    assert db.get(FriendRequest, request_id).status == "pending"


def test_concurrent_send_hits_pair_constraint(db, service, alice, bob, monkeypatch):
    service.send_friend_request(alice.id, bob.public_uuid)
    # the second sender did not see the first request when it checked
    monkeypatch.setattr(service, "get_friendship_status", lambda user_a, user_b: None)

    with pytest.raises(Conflict) as exc:
        service.send_friend_request(bob.id, alice.public_uuid)
    assert exc.value.message == "A friend request between you already exists"

    assert db.query(FriendRequest).count() == 1
    pending = service.list_all_pending_requests(bob.id)
    assert [r.user_id for r in pending.incoming] == [alice.id]


def test_accept_losing_a_race_reports_conflict(db, service, alice, bob, monkeypatch):
    request_id = service.send_friend_request(alice.id, bob.public_uuid)

    def commit():
        raise IntegrityError("UPDATE friend_requests", {}, Exception("constraint failed"))

    monkeypatch.setattr(db, "commit", commit)
    with pytest.raises(Conflict) as exc:
        service.accept_friend_request(bob.id, request_id)
    assert exc.value.message == "Friend request was already answered"
    monkeypatch.undo()

    assert db.get(FriendRequest, request_id).status == "pending"
    assert _friendship_rows(db) == []
