from __future__ import annotations

from fastapi import APIRouter

from renderhub.uploads.models import ImageUploadRequest, ImageUploadResponse
from renderhub.uploads.service import get_upload_service

router = APIRouter(prefix="/upload", tags=["uploads"])


@router.post("/image", response_model=ImageUploadResponse)
async def upload_image(req: ImageUploadRequest):
    filename = await get_upload_service().save_inline_image(req.base64Data)
    return ImageUploadResponse(filename=filename, url=f"/public/{filename}")
