"""Pydantic schemas for Group model."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class GroupBase(BaseModel):
    """Base group schema with common fields."""
    name: str = Field(..., min_length=1, max_length=100)


class GroupCreate(GroupBase):
    """Schema for creating a new group."""
    pass


class GroupResponse(GroupBase):
    """Schema for group responses."""
    id: int
    created_at: datetime
    created_by: Optional[int]

    model_config = ConfigDict(from_attributes=True)


class GroupSummary(GroupResponse):
    """Group as seen by one of its members or invitees."""
    role: str
    status: str


class GroupInvite(BaseModel):
    """Invite a user identified by email or handle."""
    identifier: str = Field(..., min_length=1)


class GroupRoleUpdate(BaseModel):
    """Change a member's role."""
    role: Literal["admin", "member"]


class GroupMemberResponse(BaseModel):
    """Schema for group member information."""
    id: int
    email: str
    name: str
    username: Optional[str] = None
    role: str
    status: str
    joined_at: datetime


class GroupDetail(GroupResponse):
    """Group with its accepted members."""
    members: List[GroupMemberResponse] = []


class GroupCommentCreate(BaseModel):
    """Schema for posting on a group's board."""
    text: str = Field(..., min_length=1, max_length=2000)
    is_private: bool = False


class GroupReactionResponse(BaseModel):
    """Schema for group comment reaction responses."""
    id: int
    group_comment_id: int
    user_id: int
    user_name: str
    emoji: str
    created_at: datetime


class GroupCommentResponse(BaseModel):
    """Schema for group comment responses."""
    id: int
    group_id: int
    author_id: int
    author_name: str
    text: str
    is_private: bool
    created_at: datetime
    reactions: List[GroupReactionResponse] = []
