import json
from datetime import datetime

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class BingoCard(Base):
    """A user's bingo card: an N x N task grid plus a completion matrix."""

    __tablename__ = "bingo_cards"

    id = Column(Integer, primary_key=True, index=True)
    # unique: at most one card per user
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )
    size = Column(Integer, nullable=False)
    # Nested arrays serialized as JSON text
    grid_data = Column(Text, nullable=False)
    completed_data = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="card")

    @property
    def grid(self):
        return json.loads(self.grid_data)

    @grid.setter
    def grid(self, value):
        self.grid_data = json.dumps(value)

    @property
    def completed(self):
        return json.loads(self.completed_data)

    @completed.setter
    def completed(self, value):
        self.completed_data = json.dumps(value)
