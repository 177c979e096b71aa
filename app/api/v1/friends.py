"""Friendship endpoints: requests, acceptance, listing and removal."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, resolve_user
from app.core.permissions import find_friendship
from app.database import get_db
from app.models.friendship import (
    Friendship,
    FRIENDSHIP_ACCEPTED,
    FRIENDSHIP_PENDING,
    friendship_pair_key,
)
from app.models.user import User
from app.schemas.friendship import (
    FriendRequestCreate,
    FriendRequestResponse,
    FriendResponse,
    FriendshipResponse,
    SentFriendRequestResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_friendship_or_404(friendship_id: int, db: Session) -> Friendship:
    friendship = db.query(Friendship).filter(Friendship.id == friendship_id).first()
    if not friendship:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Friendship not found"
        )
    return friendship


@router.post("/request", response_model=FriendshipResponse, status_code=status.HTTP_201_CREATED)
def send_friend_request(
    request_data: FriendRequestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Send a friend request to a user identified by email or handle.

    Args:
        request_data: Target email or username
        current_user: Authenticated user (the requester)
        db: Database session

    Returns:
        The new pending friendship

    Raises:
        HTTPException: 404 if no such user, 400 if targeting yourself,
            409 if a pending or accepted friendship already exists in either direction
    """
    friend = resolve_user(db, request_data.identifier)

    if friend.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot add yourself as a friend"
        )

    existing = find_friendship(db, current_user.id, friend.id)
    if existing:
        if existing.status == FRIENDSHIP_ACCEPTED:
            detail = "You are already friends"
        else:
            detail = "Friend request already pending"
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )

    friendship = Friendship(
        requester_id=current_user.id,
        addressee_id=friend.id,
        pair_key=friendship_pair_key(current_user.id, friend.id),
        status=FRIENDSHIP_PENDING,
    )
    db.add(friendship)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent request for the same pair got there first
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Friend request already pending"
        )
    db.refresh(friendship)

    logger.info("User %s sent a friend request to user %s", current_user.id, friend.id)
    return friendship


@router.get("/requests", response_model=List[FriendRequestResponse])
def list_incoming_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List pending requests addressed to the caller."""
    rows = db.query(
        Friendship.id,
        Friendship.requester_id,
        Friendship.created_at,
        User.name,
        User.email,
    ).join(
        User, User.id == Friendship.requester_id
    ).filter(
        Friendship.addressee_id == current_user.id,
        Friendship.status == FRIENDSHIP_PENDING,
    ).order_by(Friendship.created_at.desc()).all()

    return [
        FriendRequestResponse(
            id=row.id,
            from_user_id=row.requester_id,
            from_name=row.name,
            from_email=row.email,
            created_at=row.created_at,
        )
        for row in rows
    ]


@router.get("/requests/sent", response_model=List[SentFriendRequestResponse])
def list_sent_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List pending requests the caller has sent."""
    rows = db.query(
        Friendship.id,
        Friendship.addressee_id,
        Friendship.created_at,
        User.name,
        User.email,
    ).join(
        User, User.id == Friendship.addressee_id
    ).filter(
        Friendship.requester_id == current_user.id,
        Friendship.status == FRIENDSHIP_PENDING,
    ).order_by(Friendship.created_at.desc()).all()

    return [
        SentFriendRequestResponse(
            id=row.id,
            to_user_id=row.addressee_id,
            to_name=row.name,
            to_email=row.email,
            created_at=row.created_at,
        )
        for row in rows
    ]


@router.post("/accept/{friendship_id}", response_model=FriendshipResponse)
def accept_friend_request(
    friendship_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Accept a pending friend request.

    Raises:
        HTTPException: 404 if the request does not exist,
            403 if the caller is not its addressee
    """
    friendship = get_friendship_or_404(friendship_id, db)

    if friendship.addressee_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the recipient can accept this request"
        )

    friendship.status = FRIENDSHIP_ACCEPTED
    db.commit()
    db.refresh(friendship)

    logger.info("User %s accepted friendship %s", current_user.id, friendship.id)
    return friendship


@router.get("", response_model=List[FriendResponse])
def list_friends(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the other party of every accepted friendship involving the caller."""
    friendships = db.query(Friendship).filter(
        or_(
            Friendship.requester_id == current_user.id,
            Friendship.addressee_id == current_user.id,
        ),
        Friendship.status == FRIENDSHIP_ACCEPTED,
    ).order_by(Friendship.created_at.asc()).all()

    friends = []
    for friendship in friendships:
        if friendship.requester_id == current_user.id:
            other = friendship.addressee
        else:
            other = friendship.requester
        friends.append(
            FriendResponse(
                friendship_id=friendship.id,
                friend_id=other.id,
                friend_name=other.name,
                friend_email=other.email,
                friend_username=other.username,
            )
        )

    return friends


@router.delete("/{friendship_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_friendship(
    friendship_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Remove a friendship or decline/cancel a pending request.

    Either party may delete the row.

    Raises:
        HTTPException: 404 if not found, 403 if the caller is not a party
    """
    friendship = get_friendship_or_404(friendship_id, db)

    if not friendship.involves(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not part of this friendship"
        )

    db.delete(friendship)
    db.commit()

    logger.info("User %s removed friendship %s", current_user.id, friendship_id)
    return None
