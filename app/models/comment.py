from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from app.database import Base


class Comment(Base):
    """Comment attached to a cell of a user's card (by owner ID + coordinates)."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Not a FK to bingo_cards: comments survive the card being replaced
    card_owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    row = Column(Integer, nullable=False)
    col = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    author = relationship("User", foreign_keys=[author_id])
    reactions = relationship(
        "Reaction",
        back_populates="comment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Reaction.created_at",
    )

    __table_args__ = (
        Index("ix_comments_owner_cell", "card_owner_id", "row", "col"),
    )


class Reaction(Base):
    """Emoji reaction on a card comment; one per (comment, user, emoji)."""

    __tablename__ = "reactions"

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    emoji = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    comment = relationship("Comment", back_populates="reactions")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", "emoji", name="uq_reactions_comment_user_emoji"),
    )
