"""Pydantic schemas for card comments and reactions."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for commenting on a card cell."""
    card_owner_id: int
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    text: str = Field(..., min_length=1, max_length=2000)
    is_private: bool = False


class ReactionCreate(BaseModel):
    """Schema for adding or removing a reaction on a card comment."""
    comment_id: int
    emoji: str = Field(..., min_length=1, max_length=32)


class EmojiPayload(BaseModel):
    """Emoji body for reactions addressed by URL."""
    emoji: str = Field(..., min_length=1, max_length=32)


class ReactionResponse(BaseModel):
    """Schema for reaction responses."""
    id: int
    comment_id: int
    user_id: int
    user_name: str
    emoji: str
    created_at: datetime


class CardReactionResponse(ReactionResponse):
    """Reaction with the coordinates of the comment it belongs to."""
    row: int
    col: int


class CommentResponse(BaseModel):
    """Schema for comment responses."""
    id: int
    author_id: int
    author_name: str
    card_owner_id: int
    row: int
    col: int
    text: str
    is_private: bool
    created_at: datetime
    reactions: List[ReactionResponse] = []

    model_config = ConfigDict(from_attributes=True)
