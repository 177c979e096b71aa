"""SQLAlchemy models for the Bingo Board API."""

from app.models.user import User
from app.models.card import BingoCard
from app.models.friendship import Friendship
from app.models.comment import Comment, Reaction
from app.models.group import Group, GroupMember, GroupComment, GroupCommentReaction

__all__ = [
    "User",
    "BingoCard",
    "Friendship",
    "Comment",
    "Reaction",
    "Group",
    "GroupMember",
    "GroupComment",
    "GroupCommentReaction",
]
