from __future__ import annotations

from fastapi import APIRouter

from renderhub.renders.models import (
    DeleteRenderResponse,
    RenderListResponse,
    RenderResult,
    RenderStillRequest,
    RenderVideoRequest,
)
from renderhub.renders.service import get_render_service

router = APIRouter(tags=["renders"])


@router.post("/render/video", response_model=RenderResult)
async def render_video(req: RenderVideoRequest):
    return await get_render_service().render_video(req)


@router.post("/render/still", response_model=RenderResult)
async def render_still(req: RenderStillRequest):
    return await get_render_service().render_still(req)


@router.get("/renders", response_model=RenderListResponse)
def list_renders():
    return RenderListResponse(files=get_render_service().list_renders())


@router.delete("/renders/{filename}", response_model=DeleteRenderResponse)
def delete_render(filename: str):
    message = get_render_service().delete_render(filename)
    return DeleteRenderResponse(message=message)
