from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.users.schemas import UserSummary
from app.utils.schemas import APIModel


class PostCreate(APIModel):
    user_id: int
    caption: str = ""
    image_url: str = Field(..., min_length=1)


class PostOwnerAction(APIModel):
    user_id: int


class PostOut(APIModel):
    id: int
    user_id: int
    caption: str
    image_url: str
    likes: List[int] = []
    created_at: datetime


class FeedPostOut(PostOut):
    user: Optional[UserSummary] = None


class LikeResult(APIModel):
    success: bool = True
    post: PostOut
    liked: bool
