from datetime import datetime
from typing import Optional

from pydantic import Field

from app.users.schemas import UserOut
from app.utils.schemas import APIModel


class FriendRequestCreate(APIModel):
    friend_name: str = Field(..., min_length=1)


class FriendshipOut(APIModel):
    id: int
    requester_id: int
    recipient_id: int
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class FriendRequestOut(FriendshipOut):
    # L'autre utilisateur de la demande
    friend: Optional[UserOut] = None
