"""Card comment endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.api.deps import get_current_user
from app.core.permissions import filter_visible_comments, require_card_access
from app.database import get_db
from app.models.comment import Comment, Reaction
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentResponse, ReactionResponse


router = APIRouter()


def serialize_reaction(reaction: Reaction) -> ReactionResponse:
    return ReactionResponse(
        id=reaction.id,
        comment_id=reaction.comment_id,
        user_id=reaction.user_id,
        user_name=reaction.user.name,
        emoji=reaction.emoji,
        created_at=reaction.created_at,
    )


def serialize_comment(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        author_id=comment.author_id,
        author_name=comment.author.name,
        card_owner_id=comment.card_owner_id,
        row=comment.row,
        col=comment.col,
        text=comment.text,
        is_private=comment.is_private,
        created_at=comment.created_at,
        reactions=[serialize_reaction(r) for r in comment.reactions],
    )


def fetch_visible_comments(
    db: Session,
    viewer_id: int,
    card_owner_id: int,
    row: Optional[int] = None,
    col: Optional[int] = None,
) -> List[Comment]:
    """
    Load the comments on a card (optionally one cell) that ``viewer_id`` may see.

    Access is checked first; private comments are filtered out after the query.
    """
    require_card_access(
        db, viewer_id, card_owner_id,
        detail="You can only view comments on friends' cards"
    )

    query = db.query(Comment).options(
        selectinload(Comment.author),
        selectinload(Comment.reactions).selectinload(Reaction.user),
    ).filter(Comment.card_owner_id == card_owner_id)

    if row is not None and col is not None:
        query = query.filter(Comment.row == row, Comment.col == col)

    comments = query.order_by(Comment.created_at.desc(), Comment.id.desc()).all()
    return filter_visible_comments(comments, viewer_id)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Comment on a cell of a card.

    Commenting on your own card is allowed; otherwise the card owner must be
    an accepted friend. Cell coordinates are not checked against the card.

    Raises:
        HTTPException: 404 if the card owner does not exist, 403 if not friends
    """
    owner = db.query(User).filter(User.id == comment_data.card_owner_id).first()
    if not owner:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    require_card_access(
        db, current_user.id, owner.id,
        detail="You can only comment on friends' cards"
    )

    comment = Comment(
        author_id=current_user.id,
        card_owner_id=owner.id,
        row=comment_data.row,
        col=comment_data.col,
        text=comment_data.text,
        is_private=comment_data.is_private,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return serialize_comment(comment)


@router.get("/{card_owner_id}", response_model=List[CommentResponse])
def list_card_comments(
    card_owner_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List visible comments on a card, newest first."""
    comments = fetch_visible_comments(db, current_user.id, card_owner_id)
    return [serialize_comment(c) for c in comments]


@router.get("/{card_owner_id}/{row}/{col}", response_model=List[CommentResponse])
def list_cell_comments(
    card_owner_id: int,
    row: int,
    col: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List visible comments on a single cell of a card, newest first."""
    comments = fetch_visible_comments(db, current_user.id, card_owner_id, row, col)
    return [serialize_comment(c) for c in comments]


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete one of the caller's own comments.

    Matching is on comment ID and author together, so someone else's
    comment is reported exactly like a missing one.

    Raises:
        HTTPException: 404 if no comment by the caller has that ID
    """
    deleted = db.query(Comment).filter(
        Comment.id == comment_id,
        Comment.author_id == current_user.id,
    ).delete(synchronize_session=False)
    db.commit()

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    return None
