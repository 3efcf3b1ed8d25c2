from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Optional
from app.config import settings
import logging

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crée un token JWT signé avec les informations fournies.

    :param data: Dictionnaire avec les données à encoder (ex: {"user_id": 5})
    :param expires_delta: Durée de validité du token (timedelta)
    :return: Token JWT encodé
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})

    if "user_id" in to_encode:
        to_encode["sub"] = str(to_encode["user_id"])

    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    logger.info(f"✅ Token généré pour user_id={data.get('user_id')}, expire à {expire}")
    return token


def decode_access_token(token: str) -> Optional[dict]:
    """
    🔐 Décode et vérifie un token JWT.

    Retourne le payload si le token est valide, sinon None.
    Vérifie aussi la présence du champ 'sub' (subject).
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"❌ Échec de décodage du token : {e}")
        return None

    if not payload.get("sub"):
        logger.warning("⚠️ Token valide mais champ 'sub' manquant dans le payload.")
        return None

    return payload
