from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.locks import LockRegistry, get_lock_registry
from app.db.session import get_db
from app.utils.schemas import SuccessResponse
from app.groups.schemas import (
    ActivityCreate, ActivityOut, FinalActivityOut, GroupCreate, GroupMemberUser,
    GroupOut, MemberAdd, VoteIn, VoteResult,
)
from app.groups.services import GroupService

router = APIRouter(prefix="/api/groups", tags=["groups"])


def get_group_service(
    db: AsyncSession = Depends(get_db),
    locks: LockRegistry = Depends(get_lock_registry),
) -> GroupService:
    return GroupService(db, locks)


# ===============================
# GROUPS
# ===============================
@router.post("", response_model=GroupOut)
async def create_group(payload: GroupCreate, service: GroupService = Depends(get_group_service)):
    return await service.create_group(payload.name, payload.creator_id)


@router.get("", response_model=List[GroupOut])
async def list_groups(
    user_id: Optional[int] = Query(None, alias="userId", description="Only groups this user belongs to"),
    service: GroupService = Depends(get_group_service),
):
    return await service.list_groups(user_id)


@router.get("/{group_id}", response_model=GroupOut)
async def get_group(group_id: int, service: GroupService = Depends(get_group_service)):
    return await service.get_group(group_id)


@router.delete("/{group_id}", response_model=SuccessResponse)
async def delete_group(group_id: int, service: GroupService = Depends(get_group_service)):
    await service.delete_group(group_id)
    return SuccessResponse()


# ===============================
# MEMBERS
# ===============================
@router.post("/{group_id}/members", response_model=GroupOut)
async def add_member(group_id: int, payload: MemberAdd, service: GroupService = Depends(get_group_service)):
    return await service.add_member(group_id, payload.user_id)


@router.get("/{group_id}/members", response_model=List[GroupMemberUser])
async def get_members(group_id: int, service: GroupService = Depends(get_group_service)):
    return await service.get_members(group_id)


@router.delete("/{group_id}/members/{user_id}", response_model=SuccessResponse)
async def remove_member(group_id: int, user_id: int, service: GroupService = Depends(get_group_service)):
    await service.remove_member(group_id, user_id)
    return SuccessResponse()


# ===============================
# PROPOSED ACTIVITIES
# ===============================
@router.post("/{group_id}/activities", response_model=ActivityOut)
async def propose_activity(group_id: int, payload: ActivityCreate, service: GroupService = Depends(get_group_service)):
    return await service.propose_activity(group_id, payload.activity, payload.user_id)


@router.get("/{group_id}/activities", response_model=List[ActivityOut])
async def list_activities(group_id: int, service: GroupService = Depends(get_group_service)):
    return await service.list_activities(group_id)


@router.post("/{group_id}/activities/{activity_id}/vote", response_model=VoteResult)
async def vote_for_activity(
    group_id: int,
    activity_id: int,
    payload: VoteIn,
    service: GroupService = Depends(get_group_service),
):
    return await service.vote(group_id, activity_id, payload.user_id)


@router.post("/{group_id}/activities/{activity_id}/finalize", response_model=FinalActivityOut)
async def finalize_activity(group_id: int, activity_id: int, service: GroupService = Depends(get_group_service)):
    return await service.finalize_activity(group_id, activity_id)


@router.delete("/{group_id}/activities/{activity_id}", response_model=SuccessResponse)
async def remove_activity(group_id: int, activity_id: int, service: GroupService = Depends(get_group_service)):
    await service.remove_activity(group_id, activity_id)
    return SuccessResponse()


# ===============================
# FINAL ACTIVITIES
# ===============================
@router.get("/{group_id}/final-activities", response_model=List[FinalActivityOut])
async def list_final_activities(group_id: int, service: GroupService = Depends(get_group_service)):
    return await service.list_final_activities(group_id)


@router.delete("/{group_id}/final-activities/{final_id}", response_model=SuccessResponse)
async def remove_final_activity(group_id: int, final_id: int, service: GroupService = Depends(get_group_service)):
    await service.remove_final_activity(group_id, final_id)
    return SuccessResponse()
