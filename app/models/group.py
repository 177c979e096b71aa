from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from app.database import Base


ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

MEMBERSHIP_PENDING = "pending"
MEMBERSHIP_ACCEPTED = "accepted"


class Group(Base):
    """Group of users sharing a comment board."""

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    # One-to-many with memberships (pending invitations included)
    memberships = relationship(
        "GroupMember",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # One-to-many with group comments
    comments = relationship(
        "GroupComment",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Many-to-one with creator
    creator = relationship("User", foreign_keys=[created_by])


class GroupMember(Base):
    """Membership of a user in a group, with role and invitation status."""

    __tablename__ = "group_members"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), default=ROLE_MEMBER, nullable=False)
    status = Column(String(20), default=MEMBERSHIP_PENDING, nullable=False)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    group = relationship("Group", back_populates="memberships")
    user = relationship("User", back_populates="memberships", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
        CheckConstraint("role IN ('admin', 'member')", name="ck_group_members_role"),
        CheckConstraint("status IN ('pending', 'accepted')", name="ck_group_members_status"),
    )


class GroupComment(Base):
    """Comment posted on a group's board."""

    __tablename__ = "group_comments"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    group = relationship("Group", back_populates="comments")
    author = relationship("User", foreign_keys=[author_id])
    reactions = relationship(
        "GroupCommentReaction",
        back_populates="comment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="GroupCommentReaction.created_at",
    )


class GroupCommentReaction(Base):
    """Emoji reaction on a group comment; one per (comment, user, emoji)."""

    __tablename__ = "group_comment_reactions"

    id = Column(Integer, primary_key=True, index=True)
    group_comment_id = Column(
        Integer, ForeignKey("group_comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    emoji = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    comment = relationship("GroupComment", back_populates="reactions")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint(
            "group_comment_id", "user_id", "emoji", name="uq_group_comment_reactions_comment_user_emoji"
        ),
    )
