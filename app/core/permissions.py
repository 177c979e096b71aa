"""
Authorization rules for cards, comments and groups.

Every check is re-derived from the current database state on each request:
friendships and memberships can be revoked between two calls, so nothing
here is cached.
"""

from typing import Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from app.models.comment import Comment
from app.models.friendship import Friendship, FRIENDSHIP_ACCEPTED
from app.models.group import (
    Group,
    GroupComment,
    GroupMember,
    MEMBERSHIP_ACCEPTED,
    ROLE_ADMIN,
)


def find_friendship(db: Session, user_a_id: int, user_b_id: int) -> Optional[Friendship]:
    """Return the friendship row for the unordered pair {a, b}, whatever its status."""
    return db.query(Friendship).filter(
        or_(
            and_(Friendship.requester_id == user_a_id, Friendship.addressee_id == user_b_id),
            and_(Friendship.requester_id == user_b_id, Friendship.addressee_id == user_a_id),
        )
    ).first()


def are_accepted_friends(db: Session, user_a_id: int, user_b_id: int) -> bool:
    """True iff an accepted friendship exists between the two users, in either direction."""
    friendship = find_friendship(db, user_a_id, user_b_id)
    return friendship is not None and friendship.status == FRIENDSHIP_ACCEPTED


def can_view_card(db: Session, viewer_id: int, owner_id: int) -> bool:
    """A card (and its comments) is visible to its owner and the owner's accepted friends."""
    if viewer_id == owner_id:
        return True
    return are_accepted_friends(db, viewer_id, owner_id)


def get_membership(db: Session, group_id: int, user_id: int) -> Optional[GroupMember]:
    return db.query(GroupMember).filter(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id,
    ).first()


def is_group_member(db: Session, user_id: int, group_id: int) -> bool:
    """Pending invitations do not count as membership."""
    membership = get_membership(db, group_id, user_id)
    return membership is not None and membership.status == MEMBERSHIP_ACCEPTED


def is_group_admin(db: Session, user_id: int, group_id: int) -> bool:
    membership = get_membership(db, group_id, user_id)
    return (
        membership is not None
        and membership.status == MEMBERSHIP_ACCEPTED
        and membership.role == ROLE_ADMIN
    )


def comment_visible_to(comment: Comment, viewer_id: int) -> bool:
    """Private comments are only visible to their author and the card owner."""
    if not comment.is_private:
        return True
    return viewer_id in (comment.author_id, comment.card_owner_id)


def group_comment_visible_to(comment: GroupComment, viewer_id: int, viewer_is_admin: bool) -> bool:
    """Private group comments are only visible to their author and the group's admins."""
    if not comment.is_private:
        return True
    return viewer_is_admin or comment.author_id == viewer_id


def filter_visible_comments(comments: Iterable[Comment], viewer_id: int) -> List[Comment]:
    """Drop the comments ``viewer_id`` may not see; applied after every comment query."""
    return [comment for comment in comments if comment_visible_to(comment, viewer_id)]


def require_card_access(db: Session, viewer_id: int, owner_id: int, detail: str) -> None:
    """
    Raise 403 unless ``viewer_id`` may see ``owner_id``'s card.

    Args:
        db: Database session
        viewer_id: Acting user
        owner_id: Card owner
        detail: Error message for the 403 response

    Raises:
        HTTPException: 403 if not self and not an accepted friend
    """
    if not can_view_card(db, viewer_id, owner_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


def require_group_member(db: Session, group_id: int, user_id: int) -> Group:
    """
    Verify that a user is an accepted member of a group and return the group.

    Raises:
        HTTPException: 404 if group not found, 403 if user not a member
    """
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Group not found"
        )

    if not is_group_member(db, user_id, group_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this group"
        )

    return group


def require_group_admin(db: Session, group_id: int, user_id: int) -> Group:
    """
    Verify that a user is an admin of a group and return the group.

    Raises:
        HTTPException: 404 if group not found, 403 if not a member or not an admin
    """
    group = require_group_member(db, group_id, user_id)

    if not is_group_admin(db, user_id, group_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only group admins can perform this action"
        )

    return group
