from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.db.session import get_db
from app.auth import jwt_handler
from app.users.models import User
from app.users.services import UserService

logger = logging.getLogger(__name__)

# Utilisé pour extraire le token depuis le header Authorization
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    🔐 Récupère l'utilisateur courant à partir du token JWT.
    """
    if not token:
        logger.warning("⛔ Accès refusé : token manquant")
        raise _unauthorized("Missing authentication token")

    payload = jwt_handler.decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    try:
        user_id = int(payload.get("user_id", payload["sub"]))
    except (ValueError, TypeError) as e:
        logger.warning(f"⚠️ Champ 'user_id' mal formé dans token : {payload.get('user_id')} ({e})")
        raise _unauthorized("Invalid token")

    user = await UserService(db).get_user(user_id)
    if not user:
        logger.warning(f"❌ Utilisateur introuvable : id={user_id}")
        raise _unauthorized("User not found")

    logger.info(f"✅ Utilisateur authentifié : id={user.id}, name={user.name}")
    return user
