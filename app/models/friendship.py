from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.database import Base


FRIENDSHIP_PENDING = "pending"
FRIENDSHIP_ACCEPTED = "accepted"


def friendship_pair_key(user_a_id: int, user_b_id: int) -> str:
    """Canonical key for an unordered pair of user IDs (lesser ID first)."""
    low, high = sorted((user_a_id, user_b_id))
    return f"{low}:{high}"


class Friendship(Base):
    """
    Friendship between two users.

    Created as pending by the requester; only the addressee can accept it.
    Declining or removing deletes the row.
    """

    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    addressee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Same value for (a, b) and (b, a), so the unique index rejects either direction
    pair_key = Column(String(64), unique=True, nullable=False)
    status = Column(String(20), default=FRIENDSHIP_PENDING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    requester = relationship("User", foreign_keys=[requester_id])
    addressee = relationship("User", foreign_keys=[addressee_id])

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'accepted')", name="ck_friendships_status"),
    )

    def other_user_id(self, user_id: int) -> int:
        """Return whichever side of the friendship is not ``user_id``."""
        return self.addressee_id if self.requester_id == user_id else self.requester_id

    def involves(self, user_id: int) -> bool:
        return user_id in (self.requester_id, self.addressee_id)
