from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.auth.dependencies import get_current_user_id
from app.api.friends.schemas import (
    FriendList,
    FriendRequestSent,
    FriendshipStatusResponse,
    MessageResponse,
    PendingRequests,
)
from app.api.friends.service import RelationshipService
from app.database.database import get_db

router = APIRouter(prefix="/api", tags=["friends"])


def get_relationship_service(db: Session = Depends(get_db)) -> RelationshipService:
    return RelationshipService(db)


@router.post("/friend-invite/{uuid}", response_model=FriendRequestSent)
def send_friend_request(
        uuid: str,
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    request_id = relationship_service.send_friend_request(current_user_id, uuid)
    return {"message": "Friend request sent", "request_id": request_id}


@router.get("/friend-requests", response_model=PendingRequests)
def list_pending_requests(
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    return relationship_service.list_all_pending_requests(current_user_id)


@router.patch("/friend-requests/{request_id}/accept", response_model=MessageResponse)
def accept_request(
        request_id: int,
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    relationship_service.accept_friend_request(current_user_id, request_id)
    return {"message": "Friend request accepted"}


@router.patch("/friend-requests/{request_id}/reject", response_model=MessageResponse)
def reject_request(
        request_id: int,
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    relationship_service.reject_friend_request(current_user_id, request_id)
    return {"message": "Friend request rejected"}


@router.delete("/friend-requests/{request_id}", response_model=MessageResponse)
def withdraw_request(
        request_id: int,
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    if not relationship_service.remove_friend_request(request_id, current_user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend request not found")
    return {"message": "Friend request withdrawn"}


@router.get("/friends", response_model=FriendList)
def list_friends(
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    return {"friends": relationship_service.list_friends(current_user_id)}


@router.get("/friends/status/{user_id}", response_model=FriendshipStatusResponse)
def friendship_status(
        user_id: int,
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    return {
        "user_id": user_id,
        "status": relationship_service.get_friendship_status(current_user_id, user_id),
    }


@router.delete("/friends/{friend_id}", response_model=MessageResponse)
def remove_friend(
        friend_id: int,
        current_user_id: int = Depends(get_current_user_id),
        relationship_service: RelationshipService = Depends(get_relationship_service)
):
    if not relationship_service.remove_friend(current_user_id, friend_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend not found or already removed")
    return {"message": "Friend removed successfully"}
