"""Bingo card endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.permissions import require_card_access
from app.database import get_db
from app.models.card import BingoCard
from app.models.user import User
from app.schemas.card import CardSave, CardResponse

router = APIRouter()


def serialize_card(card: BingoCard) -> CardResponse:
    """Decode the stored JSON matrices into a response model."""
    return CardResponse(
        owner_id=card.user_id,
        size=card.size,
        grid=card.grid,
        completed=card.completed,
        created_at=card.created_at,
        updated_at=card.updated_at,
    )


def get_card_for_user(user_id: int, db: Session) -> BingoCard:
    return db.query(BingoCard).filter(BingoCard.user_id == user_id).first()


@router.post("", response_model=CardResponse)
def save_card(
    card_data: CardSave,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create or replace the caller's bingo card.

    The previous grid and completion matrix are overwritten; no history
    is kept.

    Args:
        card_data: Size, grid cells and completion matrix
        current_user: Authenticated user
        db: Database session

    Returns:
        The saved card
    """
    grid = card_data.stored_grid()

    card = get_card_for_user(current_user.id, db)
    if card:
        card.size = card_data.size
        card.grid = grid
        card.completed = card_data.completed
        card.updated_at = datetime.utcnow()
    else:
        card = BingoCard(user_id=current_user.id, size=card_data.size)
        card.grid = grid
        card.completed = card_data.completed
        db.add(card)

    try:
        db.commit()
    except IntegrityError:
        # A concurrent first save created the row; overwrite it instead
        db.rollback()
        card = get_card_for_user(current_user.id, db)
        card.size = card_data.size
        card.grid = grid
        card.completed = card_data.completed
        card.updated_at = datetime.utcnow()
        db.commit()
    db.refresh(card)

    return serialize_card(card)


@router.get("/me", response_model=CardResponse)
def get_my_card(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the caller's own card.

    Raises:
        HTTPException: 404 if the caller has not saved a card yet
    """
    card = get_card_for_user(current_user.id, db)
    if not card:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No bingo card found"
        )

    return serialize_card(card)


@router.get("/{user_id}", response_model=CardResponse)
def get_friend_card(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get another user's card.

    Args:
        user_id: ID of the card owner
        current_user: Authenticated user
        db: Database session

    Raises:
        HTTPException: 403 unless the owner is an accepted friend,
            404 if the friend has no card
    """
    require_card_access(
        db, current_user.id, user_id,
        detail="You can only view cards of accepted friends"
    )

    card = get_card_for_user(user_id, db)
    if not card:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Friend has no bingo card"
        )

    return serialize_card(card)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_card(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete the caller's card. Succeeds even if there was none."""
    db.query(BingoCard).filter(BingoCard.user_id == current_user.id).delete()
    db.commit()

    return None
