from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.db.exceptions import ConflictError
from app.db.session import get_db
from app.users.schemas import (
    AddressUpdate, PasswordUpdate, ProfileUpdate, StatsOut, UserCreate, UserOut,
)
from app.users.services import UserService
from app.utils.image_utils import delete_local_upload, save_uploaded_image
from app.utils.schemas import SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])
stats_router = APIRouter(prefix="/api", tags=["stats"])


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ➕ POST /api/users - Inscription
@router.post("", response_model=UserOut)
async def create_user(payload: UserCreate, service: UserService = Depends(get_user_service)):
    try:
        return await service.create_user(payload)
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur création utilisateur: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


# 📋 GET /api/users - Lister les utilisateurs
@router.get("", response_model=List[UserOut])
async def list_users(service: UserService = Depends(get_user_service)):
    return await service.list_users()


# 🔍 GET /api/users/search?q= - Recherche par nom ou adresse
@router.get("/search", response_model=List[UserOut])
async def search_users(q: str = "", service: UserService = Depends(get_user_service)):
    return await service.search_users(q)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    user = await service.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ✏️ PUT /api/users/{id}/address|password|profile
@router.put("/{user_id}/address", response_model=UserOut)
async def update_address(user_id: int, payload: AddressUpdate, service: UserService = Depends(get_user_service)):
    user = await service.update_address(user_id, payload.address)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/{user_id}/password", response_model=UserOut)
async def update_password(user_id: int, payload: PasswordUpdate, service: UserService = Depends(get_user_service)):
    user = await service.update_password(user_id, payload.password)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/{user_id}/profile", response_model=UserOut)
async def update_profile(user_id: int, payload: ProfileUpdate, service: UserService = Depends(get_user_service)):
    # Seuls les champs envoyés sont modifiés
    update_data = payload.model_dump(exclude_unset=True)
    user = await service.update_profile(user_id, update_data)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# 📸 POST /api/users/{id}/avatar - Changer la photo de profil
@router.post("/{user_id}/avatar", response_model=UserOut)
async def change_avatar(
    user_id: int,
    image: UploadFile = File(None),
    service: UserService = Depends(get_user_service),
):
    user = await service.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    old_picture = user.profile_picture
    url = await save_uploaded_image(image, prefix="avatar-")
    try:
        updated = await service.update_profile(user_id, {"profile_picture": url})
    except Exception as e:
        delete_local_upload(url)
        logger.error(f"Erreur changement avatar: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if old_picture != url:
        delete_local_upload(old_picture)
    return updated


# 🗑️ DELETE /api/users/{id}
@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    deleted = await service.delete_user(user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return SuccessResponse()


@stats_router.get("/stats", response_model=StatsOut)
async def get_stats(service: UserService = Depends(get_user_service)):
    return await service.get_stats()
