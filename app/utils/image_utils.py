# app/utils/image_utils.py - Utilitaires pour la gestion des images uploadées
import logging
import secrets
import time
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import HTTPException, UploadFile

from app.config import settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
UPLOAD_URL_PREFIX = "/uploads/"


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_image_file(file: Optional[UploadFile]) -> str:
    """Valide le fichier image uploadé et retourne son extension"""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    return ext


def _create_unique_filename(extension: str, prefix: str = "") -> str:
    """Nom de fichier unique : <timestamp ms>-<aléatoire>.<ext>"""
    stamp = f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}"
    return f"{prefix}{stamp}.{extension}"


async def save_uploaded_image(file: UploadFile, prefix: str = "") -> str:
    """Sauvegarde l'image sur disque et retourne son URL publique"""
    ext = validate_image_file(file)
    content = await file.read()

    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File too large")

    filename = _create_unique_filename(ext, prefix)
    filepath = upload_dir() / filename
    async with aiofiles.open(filepath, "wb") as f:
        await f.write(content)

    logger.info(f"Image sauvegardée: {filepath}")
    return f"{UPLOAD_URL_PREFIX}{filename}"


def is_local_upload(url: Optional[str]) -> bool:
    """Vérifie si l'URL correspond à un fichier uploadé localement"""
    return bool(url) and url.startswith(UPLOAD_URL_PREFIX)


def delete_local_upload(url: Optional[str]) -> None:
    """Supprime un fichier uploadé localement ; les URLs externes sont ignorées"""
    if not is_local_upload(url):
        return
    filename = Path(url[len(UPLOAD_URL_PREFIX):]).name
    filepath = Path(settings.UPLOAD_DIR) / filename
    try:
        filepath.unlink(missing_ok=True)
        logger.info(f"Ancienne image supprimée: {filepath}")
    except OSError as e:
        logger.warning(f"Erreur lors de la suppression de l'ancienne image: {e}")
