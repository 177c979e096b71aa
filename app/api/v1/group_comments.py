"""Group board comment and reaction endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.api.deps import get_current_user
from app.core.permissions import group_comment_visible_to, is_group_admin, require_group_member
from app.database import get_db
from app.models.group import GroupComment, GroupCommentReaction
from app.models.user import User
from app.schemas.comment import EmojiPayload
from app.schemas.group import GroupCommentCreate, GroupCommentResponse, GroupReactionResponse

router = APIRouter()


def serialize_group_reaction(reaction: GroupCommentReaction) -> GroupReactionResponse:
    return GroupReactionResponse(
        id=reaction.id,
        group_comment_id=reaction.group_comment_id,
        user_id=reaction.user_id,
        user_name=reaction.user.name,
        emoji=reaction.emoji,
        created_at=reaction.created_at,
    )


def serialize_group_comment(comment: GroupComment) -> GroupCommentResponse:
    return GroupCommentResponse(
        id=comment.id,
        group_id=comment.group_id,
        author_id=comment.author_id,
        author_name=comment.author.name,
        text=comment.text,
        is_private=comment.is_private,
        created_at=comment.created_at,
        reactions=[serialize_group_reaction(r) for r in comment.reactions],
    )


def get_visible_group_comment(group_id: int, comment_id: int, user_id: int, db: Session) -> GroupComment:
    """
    Load a comment from a group's board that the member may see.

    Raises:
        HTTPException: 404 if the group or comment is missing or the comment
            is private to someone else, 403 if not a member
    """
    require_group_member(db, group_id, user_id)

    comment = db.query(GroupComment).filter(
        GroupComment.id == comment_id,
        GroupComment.group_id == group_id,
    ).first()

    if not comment or not group_comment_visible_to(comment, user_id, is_group_admin(db, user_id, group_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    return comment


@router.post("", response_model=GroupCommentResponse, status_code=status.HTTP_201_CREATED)
def create_group_comment(
    group_id: int,
    comment_data: GroupCommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Post on a group's board.

    Any accepted member can post. Private posts are only visible to the
    author and the group's admins.

    Raises:
        HTTPException: 404 if group not found, 403 if not a member
    """
    require_group_member(db, group_id, current_user.id)

    comment = GroupComment(
        group_id=group_id,
        author_id=current_user.id,
        text=comment_data.text,
        is_private=comment_data.is_private,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return serialize_group_comment(comment)


@router.get("", response_model=List[GroupCommentResponse])
def list_group_comments(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the group's visible comments, newest first."""
    require_group_member(db, group_id, current_user.id)
    viewer_is_admin = is_group_admin(db, current_user.id, group_id)

    comments = db.query(GroupComment).options(
        selectinload(GroupComment.author),
        selectinload(GroupComment.reactions).selectinload(GroupCommentReaction.user),
    ).filter(
        GroupComment.group_id == group_id
    ).order_by(GroupComment.created_at.desc(), GroupComment.id.desc()).all()

    return [
        serialize_group_comment(comment)
        for comment in comments
        if group_comment_visible_to(comment, current_user.id, viewer_is_admin)
    ]


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group_comment(
    group_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete one of the caller's own group comments.

    Raises:
        HTTPException: 404 if no comment by the caller has that ID in this group
    """
    require_group_member(db, group_id, current_user.id)

    deleted = db.query(GroupComment).filter(
        GroupComment.id == comment_id,
        GroupComment.group_id == group_id,
        GroupComment.author_id == current_user.id,
    ).delete(synchronize_session=False)
    db.commit()

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    return None


@router.post(
    "/{comment_id}/reactions",
    response_model=GroupReactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_group_reaction(
    group_id: int,
    comment_id: int,
    reaction_data: EmojiPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    React to a group comment.

    Raises:
        HTTPException: 409 if the caller already reacted with this emoji
    """
    comment = get_visible_group_comment(group_id, comment_id, current_user.id, db)

    reaction = GroupCommentReaction(
        group_comment_id=comment.id,
        user_id=current_user.id,
        emoji=reaction_data.emoji,
    )
    db.add(reaction)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You already reacted with this emoji"
        )
    db.refresh(reaction)

    return serialize_group_reaction(reaction)


@router.delete("/{comment_id}/reactions", status_code=status.HTTP_204_NO_CONTENT)
def remove_group_reaction(
    group_id: int,
    comment_id: int,
    reaction_data: EmojiPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Remove the caller's reaction from a group comment.

    Raises:
        HTTPException: 404 if the caller has no such reaction
    """
    comment = get_visible_group_comment(group_id, comment_id, current_user.id, db)

    deleted = db.query(GroupCommentReaction).filter(
        GroupCommentReaction.group_comment_id == comment.id,
        GroupCommentReaction.user_id == current_user.id,
        GroupCommentReaction.emoji == reaction_data.emoji,
    ).delete(synchronize_session=False)
    db.commit()

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reaction not found"
        )

    return None


@router.get("/{comment_id}/reactions", response_model=List[GroupReactionResponse])
def list_group_reactions(
    group_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List reactions on a group comment, oldest first."""
    comment = get_visible_group_comment(group_id, comment_id, current_user.id, db)
    return [serialize_group_reaction(r) for r in comment.reactions]
