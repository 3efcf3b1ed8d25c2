from typing import Optional

from fastapi import APIRouter, File, UploadFile

from app.utils.image_utils import save_uploaded_image
from app.utils.schemas import APIModel

router = APIRouter(prefix="/api", tags=["uploads"])


class UploadResult(APIModel):
    image_url: str


# 📸 POST /api/upload - image servie ensuite sous /uploads/<fichier>
@router.post("/upload", response_model=UploadResult)
async def upload_image(image: Optional[UploadFile] = File(None)):
    url = await save_uploaded_image(image)
    return UploadResult(image_url=url)
