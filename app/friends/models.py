from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.db.session import Base
from app.users.models import utcnow


class FriendshipStatus(str, Enum):
    pending = "pending"     # En attente d'approbation
    accepted = "accepted"   # Acceptée


class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # "petit:grand" : une seule relation par paire, dans un sens ou dans l'autre
    pair_key = Column(String(50), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default=FriendshipStatus.pending.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    requester = relationship("User", foreign_keys=[requester_id], lazy="selectin")
    recipient = relationship("User", foreign_keys=[recipient_id], lazy="selectin")

    def __repr__(self):
        return (
            f"<Friendship(id={self.id}, requester={self.requester_id}, "
            f"recipient={self.recipient_id}, status='{self.status}')>"
        )

    @staticmethod
    def make_pair_key(user_a: int, user_b: int) -> str:
        low, high = sorted((user_a, user_b))
        return f"{low}:{high}"

    def other_user_id(self, user_id: int) -> int:
        return self.recipient_id if self.requester_id == user_id else self.requester_id
