from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from renderhub.render_engine.base import VideoCodec

ArtifactKind = Literal["video", "still"]

ARTIFACT_EXTENSIONS: Dict[str, str] = {"video": "mp4", "still": "png"}


class _RenderRequestBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    composition_id: str = Field(alias="compositionId", min_length=1)
    input_props: Optional[Dict[str, Any]] = Field(default=None, alias="inputProps")
    composition_cache: bool = Field(default=False, alias="compositionCache")

    @property
    def props(self) -> Dict[str, Any]:
        return self.input_props or {}


class RenderVideoRequest(_RenderRequestBase):
    codec: VideoCodec = "h264"


class RenderStillRequest(_RenderRequestBase):
    pass


class RenderedArtifact(BaseModel):
    filename: str
    path: str
    kind: ArtifactKind
    composition_id: str
    cache_key: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RenderResult(BaseModel):
    success: bool = True
    message: str
    filename: str
    url: str
    cached: bool


class RenderFileInfo(BaseModel):
    filename: str
    size: int
    created: datetime
    modified: datetime
    type: Literal["video", "still", "unknown"]


class RenderListResponse(BaseModel):
    success: bool = True
    files: List[RenderFileInfo] = Field(default_factory=list)


class DeleteRenderResponse(BaseModel):
    success: bool = True
    message: str
