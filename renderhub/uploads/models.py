from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ImageUploadRequest(BaseModel):
    base64Data: Optional[str] = Field(default=None, description="data:image/<type>;base64,<data>")


class ImageUploadResponse(BaseModel):
    success: bool = True
    message: str = "Image uploaded successfully"
    filename: str
    url: str
