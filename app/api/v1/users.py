"""User directory endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.user import UserPublic

router = APIRouter()

SEARCH_LIMIT = 10


@router.get("", response_model=List[UserPublic])
def list_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List every user except the caller."""
    return db.query(User).filter(User.id != current_user.id).order_by(User.name.asc()).all()


@router.get("/search", response_model=List[UserPublic])
def search_users(
    email: str = Query("", description="Substring of an email address or handle"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Search users by email or handle.

    Raises:
        HTTPException: 400 if the query is empty
    """
    term = email.strip()
    if not term:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email query parameter required"
        )

    pattern = f"%{term}%"
    return db.query(User).filter(
        or_(User.email.ilike(pattern), User.username.ilike(pattern)),
        User.id != current_user.id,
    ).limit(SEARCH_LIMIT).all()
