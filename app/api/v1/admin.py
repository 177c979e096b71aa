"""Admin reporting endpoints (read-only)."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.deps import get_current_admin
from app.api.v1.cards import serialize_card
from app.api.v1.groups import list_memberships
from app.database import get_db
from app.models.card import BingoCard
from app.models.comment import Comment
from app.models.friendship import Friendship, FRIENDSHIP_ACCEPTED
from app.models.group import Group, GroupComment, MEMBERSHIP_ACCEPTED
from app.models.user import User
from app.schemas.admin import AdminUserDetail, AdminUserSummary, AnalyticsResponse
from app.schemas.card import CardResponse
from app.schemas.group import GroupSummary
from app.schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Aggregate counts; admins are excluded from the user total."""
    return AnalyticsResponse(
        total_users=count(db, User.id, User.is_admin.is_(False)),
        total_cards=count(db, BingoCard.id),
        total_groups=count(db, Group.id),
        total_friendships=count(db, Friendship.id, Friendship.status == FRIENDSHIP_ACCEPTED),
        total_comments=count(db, Comment.id) + count(db, GroupComment.id),
    )


@router.get("/users", response_model=List[AdminUserSummary])
def list_all_users(
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """List every user with whether they have saved a card."""
    rows = db.query(User, BingoCard.id).outerjoin(
        BingoCard, BingoCard.user_id == User.id
    ).order_by(User.created_at.desc()).all()

    return [
        AdminUserSummary(
            **UserResponse.model_validate(user).model_dump(),
            has_card=card_id is not None,
        )
        for user, card_id in rows
    ]


def lookup_card(user_id: int, db: Session) -> Optional[CardResponse]:
    card = db.query(BingoCard).filter(BingoCard.user_id == user_id).first()
    return serialize_card(card) if card else None


def lookup_groups(user_id: int, db: Session) -> List[GroupSummary]:
    return list_memberships(user_id, MEMBERSHIP_ACCEPTED, db)


def lookup_friend_count(user_id: int, db: Session) -> int:
    return count(
        db,
        Friendship.id,
        or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
        Friendship.status == FRIENDSHIP_ACCEPTED,
    )


@router.get("/users/{user_id}", response_model=AdminUserDetail)
def get_user_detail(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Drill down into one user.

    Card, groups and friend count are looked up independently; if one
    lookup fails it is logged and that field falls back to its empty value
    while the rest of the response is still returned.

    Raises:
        HTTPException: 404 if the user does not exist
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    detail = AdminUserDetail(user=UserResponse.model_validate(user))

    lookups = (
        ("card", lookup_card),
        ("groups", lookup_groups),
        ("friend_count", lookup_friend_count),
    )
    for field, lookup in lookups:
        try:
            setattr(detail, field, lookup(user_id, db))
        except Exception:
            logger.exception("Admin lookup of %s failed for user %s", field, user_id)
            db.rollback()

    return detail
