"""Pydantic schemas for admin reporting."""

from typing import List, Optional

from pydantic import BaseModel

from app.schemas.card import CardResponse
from app.schemas.group import GroupSummary
from app.schemas.user import UserResponse


class AnalyticsResponse(BaseModel):
    """Aggregate counts across the whole system."""
    total_users: int
    total_cards: int
    total_groups: int
    total_friendships: int
    total_comments: int


class AdminUserSummary(UserResponse):
    """User row in the admin directory."""
    has_card: bool


class AdminUserDetail(BaseModel):
    """Per-user drill-down; each section degrades independently."""
    user: UserResponse
    card: Optional[CardResponse] = None
    groups: List[GroupSummary] = []
    friend_count: int = 0
