from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship

from app.db.session import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    # Unicité insensible à la casse
    name_key = Column(String(100), unique=True, nullable=False, index=True)
    address = Column(String(255), nullable=False)
    hashed_password = Column(String, nullable=False)

    # Profil
    bio = Column(Text, nullable=False, default="")
    hometown = Column(String(255), nullable=False, default="")
    age = Column(Integer, nullable=True)
    profile_picture = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    posts = relationship("Post", back_populates="owner", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}')>"

    @staticmethod
    def normalize_name(name: str) -> str:
        return name.strip().lower()
