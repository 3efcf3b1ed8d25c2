from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.auth import jwt_handler
from app.auth.dependencies import get_current_user
from app.auth.schemas import LoginResponse, UserLogin
from app.db.session import get_db
from app.users.models import User
from app.users.schemas import UserOut
from app.users.services import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    try:
        user = await UserService(db).authenticate(credentials.name, credentials.password)
        if not user:
            raise HTTPException(status_code=401, detail="Invalid name or password")

        access_token = jwt_handler.create_access_token({"user_id": user.id, "name": user.name})
        return LoginResponse(
            **UserOut.model_validate(user).model_dump(),
            access_token=access_token,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Erreur login")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/me", response_model=UserOut)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user
