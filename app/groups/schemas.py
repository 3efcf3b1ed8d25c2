from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.users.schemas import UserOut
from app.utils.schemas import APIModel


# ===========================
# GROUPES & MEMBRES
# ===========================
class GroupCreate(APIModel):
    name: str = Field(..., min_length=1)
    creator_id: int

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Name and creatorId required")
        return v.strip()


class MemberAdd(APIModel):
    user_id: int


class MemberOut(APIModel):
    user_id: int
    added_at: datetime


class GroupMemberUser(UserOut):
    added_at: datetime


# ===========================
# ACTIVITÉS
# ===========================
class PlaceIn(APIModel):
    name: str = Field(..., min_length=1)
    address: str = ""
    place_id: Optional[str] = None
    rating: Optional[float] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    types: List[str] = Field(default_factory=list)


class ActivityCreate(APIModel):
    activity: PlaceIn
    user_id: int


class ActivityOut(APIModel):
    id: int
    group_id: int
    name: str
    address: str
    place_id: Optional[str] = None
    rating: Optional[float] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    types: List[str] = []
    added_by: int
    added_at: datetime
    votes: List[int] = []


class FinalActivityOut(ActivityOut):
    activity_id: int
    agreed_at: datetime


class VoteIn(APIModel):
    user_id: int


class VoteResult(APIModel):
    success: bool = True
    activity: ActivityOut
    votes: int
    votes_needed: int
    auto_finalized: bool
    finalized: bool = False


class GroupOut(APIModel):
    id: int
    name: str
    creator_id: int
    created_at: datetime
    members: List[MemberOut] = []
    activities: List[ActivityOut] = []
    final_activities: List[FinalActivityOut] = []
