"""Pydantic schemas for friendships."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FriendRequestCreate(BaseModel):
    """Send a friend request to a user identified by email or handle."""
    identifier: str = Field(..., min_length=1)


class FriendshipResponse(BaseModel):
    """Raw friendship row."""
    id: int
    requester_id: int
    addressee_id: int
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FriendRequestResponse(BaseModel):
    """Incoming pending request, with the requester's details."""
    id: int
    from_user_id: int
    from_name: str
    from_email: str
    created_at: datetime


class SentFriendRequestResponse(BaseModel):
    """Outgoing pending request, with the addressee's details."""
    id: int
    to_user_id: int
    to_name: str
    to_email: str
    created_at: datetime


class FriendResponse(BaseModel):
    """The other party of an accepted friendship."""
    friendship_id: int
    friend_id: int
    friend_name: str
    friend_email: str
    friend_username: Optional[str] = None
