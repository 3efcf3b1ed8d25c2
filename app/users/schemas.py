from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.utils.schemas import APIModel


class UserCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("name", "address")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Name, address, and password required")
        return v.strip()


class AddressUpdate(APIModel):
    address: str = Field(..., min_length=1, max_length=255)


class PasswordUpdate(APIModel):
    password: str = Field(..., min_length=1)


class ProfileUpdate(APIModel):
    bio: Optional[str] = None
    hometown: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    profile_picture: Optional[str] = None


class UserOut(APIModel):
    id: int
    name: str
    address: str
    bio: str = ""
    hometown: str = ""
    age: Optional[int] = None
    profile_picture: Optional[str] = None
    created_at: datetime


class UserSummary(APIModel):
    id: int
    name: str
    profile_picture: Optional[str] = None


class StatsOut(APIModel):
    total_users: int
    total_groups: int
    total_friendships: int
    total_posts: int
