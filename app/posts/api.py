from typing import List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.locks import LockRegistry, get_lock_registry
from app.db.session import get_db
from app.posts.schemas import FeedPostOut, LikeResult, PostCreate, PostOut, PostOwnerAction
from app.posts.services import PostService
from app.utils.schemas import SuccessResponse

router = APIRouter(prefix="/api/posts", tags=["posts"])


def get_post_service(
    db: AsyncSession = Depends(get_db),
    locks: LockRegistry = Depends(get_lock_registry),
) -> PostService:
    return PostService(db, locks)


@router.post("", response_model=PostOut)
async def create_post(payload: PostCreate, service: PostService = Depends(get_post_service)):
    return await service.create_post(payload)


@router.get("", response_model=List[FeedPostOut])
async def get_feed(service: PostService = Depends(get_post_service)):
    return await service.get_feed()


@router.get("/user/{user_id}", response_model=List[PostOut])
async def get_user_posts(user_id: int, service: PostService = Depends(get_post_service)):
    return await service.get_user_posts(user_id)


@router.post("/{post_id}/like", response_model=LikeResult)
async def like_post(post_id: int, payload: PostOwnerAction, service: PostService = Depends(get_post_service)):
    return await service.toggle_like(post_id, payload.user_id)


@router.delete("/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: int,
    payload: PostOwnerAction = Body(...),
    service: PostService = Depends(get_post_service),
):
    await service.delete_post(post_id, payload.user_id)
    return SuccessResponse()
