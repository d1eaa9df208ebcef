from __future__ import annotations

from fastapi import APIRouter

from renderhub.assets.models import AssetsResponse
from renderhub.assets.service import get_asset_service

router = APIRouter(tags=["assets"])


@router.get("/assets", response_model=AssetsResponse)
def list_assets():
    """Media assets (videos, backdrops, avatars, root files) for prompt crafting."""
    return get_asset_service().collect_assets()
