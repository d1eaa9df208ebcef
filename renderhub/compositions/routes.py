from __future__ import annotations

from fastapi import APIRouter

from renderhub.assets.service import get_asset_service
from renderhub.compositions.models import CompositionListResponse, CompositionSummary
from renderhub.compositions.registry import get_composition_registry

router = APIRouter(tags=["compositions"])


@router.get("/compositions", response_model=CompositionListResponse)
def list_compositions():
    registry = get_composition_registry()
    return CompositionListResponse(
        compositions=[CompositionSummary.from_descriptor(d) for d in registry.list()],
        publicFileTree=get_asset_service().public_file_tree(),
    )
