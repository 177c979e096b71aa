"""Card comment reaction endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.api.v1.comments import fetch_visible_comments, serialize_reaction
from app.core.permissions import comment_visible_to, require_card_access
from app.database import get_db
from app.models.comment import Comment, Reaction
from app.models.user import User
from app.schemas.comment import CardReactionResponse, ReactionCreate, ReactionResponse

router = APIRouter()


def get_visible_comment(comment_id: int, user_id: int, db: Session) -> Comment:
    """
    Load a comment the user is allowed to see.

    Raises:
        HTTPException: 404 if missing or private to someone else,
            403 if the card owner is not an accepted friend
    """
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment or not comment_visible_to(comment, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    require_card_access(
        db, user_id, comment.card_owner_id,
        detail="You can only react to comments on friends' cards"
    )

    return comment


@router.post("", response_model=ReactionResponse, status_code=status.HTTP_201_CREATED)
def add_reaction(
    reaction_data: ReactionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    React to a comment with an emoji.

    A user can react once per emoji per comment, with as many different
    emoji as they like.

    Raises:
        HTTPException: 409 if the caller already reacted with this emoji
    """
    comment = get_visible_comment(reaction_data.comment_id, current_user.id, db)

    reaction = Reaction(
        comment_id=comment.id,
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

    return serialize_reaction(reaction)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def remove_reaction(
    reaction_data: ReactionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Remove the caller's reaction.

    Raises:
        HTTPException: 404 if the caller has no such reaction
    """
    deleted = db.query(Reaction).filter(
        Reaction.comment_id == reaction_data.comment_id,
        Reaction.user_id == current_user.id,
        Reaction.emoji == reaction_data.emoji,
    ).delete(synchronize_session=False)
    db.commit()

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reaction not found"
        )

    return None


@router.get("/card/{card_owner_id}", response_model=List[CardReactionResponse])
def list_card_reactions(
    card_owner_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List reactions on every visible comment of a card, newest first."""
    comments = fetch_visible_comments(db, current_user.id, card_owner_id)

    reactions = []
    for comment in comments:
        for reaction in comment.reactions:
            reactions.append(
                CardReactionResponse(
                    **serialize_reaction(reaction).model_dump(),
                    row=comment.row,
                    col=comment.col,
                )
            )

    reactions.sort(key=lambda r: r.created_at, reverse=True)
    return reactions


@router.get("/{comment_id}", response_model=List[ReactionResponse])
def list_comment_reactions(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List reactions on a comment, oldest first."""
    comment = get_visible_comment(comment_id, current_user.id, db)
    return [serialize_reaction(r) for r in comment.reactions]
