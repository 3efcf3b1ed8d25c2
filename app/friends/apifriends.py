from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.locks import LockRegistry, get_lock_registry
from app.db.session import get_db
from app.friends.schemas import FriendRequestCreate, FriendRequestOut, FriendshipOut
from app.friends.services import FriendshipService
from app.users.schemas import UserOut
from app.utils.schemas import SuccessResponse

router = APIRouter(prefix="/api", tags=["friends"])


def get_friendship_service(
    db: AsyncSession = Depends(get_db),
    locks: LockRegistry = Depends(get_lock_registry),
) -> FriendshipService:
    return FriendshipService(db, locks)


# ─────────────────────────────────────────────
# 1. Envoyer une demande d'amitié
# ─────────────────────────────────────────────
@router.post("/users/{user_id}/friends", response_model=FriendshipOut)
async def send_friend_request(
    user_id: int,
    payload: FriendRequestCreate,
    service: FriendshipService = Depends(get_friendship_service),
):
    return await service.send_request(user_id, payload.friend_name)


# ─────────────────────────────────────────────
# 2. Voir la liste des amis d'un utilisateur
# ─────────────────────────────────────────────
@router.get("/users/{user_id}/friends", response_model=List[UserOut])
async def get_friends(user_id: int, service: FriendshipService = Depends(get_friendship_service)):
    return await service.get_friends(user_id)


# ─────────────────────────────────────────────
# 3. Demandes envoyées / reçues (en attente)
# ─────────────────────────────────────────────
@router.get("/users/{user_id}/friends/sent", response_model=List[FriendRequestOut])
async def get_sent_requests(user_id: int, service: FriendshipService = Depends(get_friendship_service)):
    return await service.get_sent_requests(user_id)


@router.get("/users/{user_id}/friends/received", response_model=List[FriendRequestOut])
async def get_received_requests(user_id: int, service: FriendshipService = Depends(get_friendship_service)):
    return await service.get_received_requests(user_id)


# ─────────────────────────────────────────────
# 4. Accepter / refuser une demande
# ─────────────────────────────────────────────
@router.post("/friends/{friendship_id}/accept", response_model=FriendshipOut)
async def accept_friend_request(friendship_id: int, service: FriendshipService = Depends(get_friendship_service)):
    return await service.accept_request(friendship_id)


@router.post("/friends/{friendship_id}/reject", response_model=SuccessResponse)
async def reject_friend_request(friendship_id: int, service: FriendshipService = Depends(get_friendship_service)):
    await service.reject_request(friendship_id)
    return SuccessResponse()


# ─────────────────────────────────────────────
# 5. Supprimer un ami
# ─────────────────────────────────────────────
@router.delete("/users/{user_id}/friends/{friend_id}", response_model=SuccessResponse)
async def remove_friend(user_id: int, friend_id: int, service: FriendshipService = Depends(get_friendship_service)):
    await service.remove_friend(user_id, friend_id)
    return SuccessResponse()
