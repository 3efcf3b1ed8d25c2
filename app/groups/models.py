from sqlalchemy import (
    Column, Integer, String, DateTime, Float, ForeignKey, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.db.session import Base
from app.users.models import utcnow


class TravelGroup(Base):
    __tablename__ = "travel_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    members = relationship(
        "GroupMember",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMember.id",
        lazy="selectin",
    )
    activities = relationship(
        "Activity",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="Activity.id",
        lazy="selectin",
    )
    final_activities = relationship(
        "FinalActivity",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="FinalActivity.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<TravelGroup(id={self.id}, name='{self.name}', creator_id={self.creator_id})>"

    @property
    def member_count(self) -> int:
        return len(self.members)

    def has_member(self, user_id: int) -> bool:
        return any(m.user_id == user_id for m in self.members)

    def find_activity(self, activity_id: int):
        return next((a for a in self.activities if a.id == activity_id), None)

    def find_final_activity(self, final_id: int):
        return next((a for a in self.final_activities if a.id == final_id), None)


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("travel_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    added_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    group = relationship("TravelGroup", back_populates="members")
    user = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<GroupMember(group_id={self.group_id}, user_id={self.user_id})>"


class PlaceMixin:
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False, default="")
    place_id = Column(String(255), nullable=True, index=True)
    rating = Column(Float, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    types = Column(JSON, nullable=False, default=list)
    added_by = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Activity(PlaceMixin, Base):
    """Activité proposée, en attente de votes."""

    __tablename__ = "group_activities"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("travel_groups.id", ondelete="CASCADE"), nullable=False, index=True)

    group = relationship("TravelGroup", back_populates="activities")
    vote_rows = relationship(
        "ActivityVote",
        back_populates="activity",
        cascade="all, delete-orphan",
        order_by="ActivityVote.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Activity(id={self.id}, group_id={self.group_id}, name='{self.name}')>"

    @property
    def votes(self):
        return [v.user_id for v in self.vote_rows]


class ActivityVote(Base):
    __tablename__ = "activity_votes"
    __table_args__ = (UniqueConstraint("activity_id", "user_id", name="uq_activity_vote"),)

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("group_activities.id", ondelete="CASCADE"), nullable=False, index=True)
    # Identité du votant, sans clé étrangère : un membre retiré garde son vote
    user_id = Column(Integer, nullable=False)
    voted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    activity = relationship("Activity", back_populates="vote_rows")


class FinalActivity(PlaceMixin, Base):
    """Copie d'une activité proposée, validée par le groupe."""

    __tablename__ = "group_final_activities"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("travel_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    # Id de la proposition d'origine (pas de clé étrangère, elle est supprimée)
    activity_id = Column(Integer, nullable=False)
    votes = Column(JSON, nullable=False, default=list)
    agreed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    group = relationship("TravelGroup", back_populates="final_activities")

    def __repr__(self):
        return f"<FinalActivity(id={self.id}, group_id={self.group_id}, name='{self.name}')>"
